from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

_FORBIDDEN_CONTEXT_KEYS = {
    "email",
    "buyer_email",
    "customer_email",
    "password",
    "phone",
    "token",
    "authorization",
    "card_number",
}


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def log_event(
    logger: logging.Logger,
    module: str,
    action: str,
    outcome: str,
    *,
    merchant_id: str | None = None,
    trace_id: str | None = None,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    illegal = sorted(key for key in context if key.lower() in _FORBIDDEN_CONTEXT_KEYS)
    if illegal:
        raise ValueError(f"PII-like keys are forbidden in log context: {illegal}")
    record: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": logging.getLevelName(level),
        "module": module,
        "action": action,
        "merchant_id": merchant_id,
        "trace_id": trace_id,
        "outcome": outcome,
    }
    if context:
        record["context"] = context
    logger.log(level, json.dumps(record, default=str, sort_keys=True))
