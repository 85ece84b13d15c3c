"""Cash-drawer session and end-of-day reconciliation.

The register only remembers when it was opened and with what float. Sales,
refunds and voids all live on the server; the report is recomputed from the
recent-sales feed every time it is asked for.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from typing import Callable, Iterable

from pydantic import ValidationError

from .kv_store import KeyValueStore
from .models_cart import RegisterState
from .models_orders import PosSaleOrder
from .observability import get_logger, log_event

logger = get_logger(__name__)

CASH_METHOD_DESCRIPTION = "Cash"


class VarianceStatus(str, Enum):
    BALANCED = "Balanced"
    OVER = "Over"
    SHORT = "Short"


def register_key(merchant_id: str) -> str:
    return f"pos-register-{merchant_id}"


def local_day(moment: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day of ``moment`` in ``tz`` (the machine's local zone when None)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz) if tz is not None else moment.astimezone()
    return moment.astimezone(tz).date()


@dataclass(frozen=True)
class RegisterReport:
    opening_float: int
    cash_total: int
    cash_sale_count: int
    terminal_total: int
    terminal_sale_count: int
    refunds_today: int
    currency: str | None = None

    @property
    def grand_total(self) -> int:
        return self.cash_total + self.terminal_total

    @property
    def expected_cash(self) -> int:
        return self.opening_float + self.cash_total - self.refunds_today

    def variance(self, counted_cash: int) -> int:
        return counted_cash - self.expected_cash

    def classify(self, counted_cash: int) -> VarianceStatus:
        difference = self.variance(counted_cash)
        if difference == 0:
            return VarianceStatus.BALANCED
        return VarianceStatus.OVER if difference > 0 else VarianceStatus.SHORT


def todays_sales(sales: Iterable[PosSaleOrder], today: date, tz: tzinfo | None = None) -> list[PosSaleOrder]:
    return [sale for sale in sales if sale.voided_at is None and local_day(sale.created_date, tz) == today]


def reconcile(
    session: RegisterState | None,
    sales: Iterable[PosSaleOrder],
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> RegisterReport:
    today = local_day(now or datetime.now(timezone.utc), tz)
    cash_total = terminal_total = refunds_today = 0
    cash_count = terminal_count = 0
    for sale in todays_sales(sales, today, tz):
        payment = sale.first_payment
        paid = payment.paid if payment else 0
        if payment is not None and payment.method_description == CASH_METHOD_DESCRIPTION:
            cash_total += paid
            cash_count += 1
        else:
            terminal_total += paid
            terminal_count += 1
        refunds_today += sum(refund.amount for refund in sale.pos_refunds if local_day(refund.date, tz) == today)
    return RegisterReport(
        opening_float=session.opening_float if session else 0,
        cash_total=cash_total,
        cash_sale_count=cash_count,
        terminal_total=terminal_total,
        terminal_sale_count=terminal_count,
        refunds_today=refunds_today,
        currency=session.currency if session else None,
    )


class RegisterSessionStore:
    def __init__(
        self,
        merchant_id: str,
        store: KeyValueStore,
        *,
        clock: Callable[[], datetime] | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.merchant_id = merchant_id
        self.store = store
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.tz = tz
        self._state: RegisterState | None = self._load()

    @property
    def key(self) -> str:
        return register_key(self.merchant_id)

    @property
    def current(self) -> RegisterState | None:
        if self._state is not None and self._is_stale(self._state):
            self._discard_stale()
        return self._state

    @property
    def is_open(self) -> bool:
        return self.current is not None

    def open(self, opening_float: int, currency: str) -> RegisterState | None:
        if isinstance(opening_float, bool) or not isinstance(opening_float, int) or opening_float < 0:
            log_event(logger, "register", "open", "rejected", merchant_id=self.merchant_id)
            return None
        self._state = RegisterState(opened_at=self.clock(), opening_float=opening_float, currency=currency)
        self._write(self._state.model_dump_json(), "open")
        log_event(logger, "register", "open", "success", merchant_id=self.merchant_id, opening_float=opening_float)
        return self._state

    def close(self) -> None:
        self._state = None
        self._write(None, "close")

    def report(self, sales: Iterable[PosSaleOrder]) -> RegisterReport:
        return reconcile(self.current, sales, now=self.clock(), tz=self.tz)

    def _is_stale(self, state: RegisterState) -> bool:
        return local_day(state.opened_at, self.tz) != local_day(self.clock(), self.tz)

    def _discard_stale(self) -> None:
        self._state = None
        self._write(None, "discard_stale")
        log_event(logger, "register", "load", "stale_discarded", merchant_id=self.merchant_id)

    def _load(self) -> RegisterState | None:
        try:
            raw = self.store.get(self.key)
        except OSError as exc:
            log_event(
                logger,
                "register",
                "load",
                "read_failed",
                merchant_id=self.merchant_id,
                level=logging.WARNING,
                error=str(exc),
            )
            return None
        if raw is None:
            return None
        try:
            state = RegisterState.model_validate_json(raw)
        except ValidationError:
            log_event(logger, "register", "load", "corrupt", merchant_id=self.merchant_id, level=logging.WARNING)
            return None
        if self._is_stale(state):
            self._discard_stale()
            return None
        return state

    def _write(self, value: str | None, action: str) -> None:
        try:
            if value is None:
                self.store.remove(self.key)
            else:
                self.store.set(self.key, value)
        except OSError as exc:
            log_event(
                logger,
                "register",
                action,
                "write_failed",
                merchant_id=self.merchant_id,
                level=logging.WARNING,
                error=str(exc),
            )
