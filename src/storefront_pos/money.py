"""Integer minor-unit money helpers.

Every amount handled by the engine is an ``int`` in the currency's minor unit.
Percentages may be fractional; they are applied through ``Decimal`` so that the
only rounding step is the final round-half-up to a whole minor unit.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Sequence

from .exceptions import InvalidAmount

_ZERO_DECIMAL_CURRENCIES = frozenset(
    {"BIF", "CLP", "DJF", "GNF", "ISK", "JPY", "KMF", "KRW", "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF"}
)
_THREE_DECIMAL_CURRENCIES = frozenset({"BHD", "IQD", "JOD", "KWD", "LYD", "OMR", "TND"})


def _require_amount(value: object, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{field} must be an integer amount of minor units, got {value!r}")
    if value < 0:
        raise InvalidAmount(f"{field} must be >= 0, got {value}")
    return value


def _require_percentage(value: object) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidAmount(f"percentage must be a number, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidAmount(f"percentage must be finite, got {value!r}")
    pct = Decimal(str(value))
    if not pct.is_finite():
        raise InvalidAmount(f"percentage must be finite, got {value!r}")
    if pct < 0:
        raise InvalidAmount(f"percentage must be >= 0, got {value}")
    return pct


def percent_of(amount: int, pct: int | float | Decimal) -> int:
    amount = _require_amount(amount, "amount")
    share = Decimal(amount) * _require_percentage(pct) / Decimal(100)
    return int(share.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def capped_subtract(a: int, b: int) -> int:
    return max(0, a - b)


def proportional_split(amount: int, weights: Sequence[int]) -> list[int]:
    """Split ``amount`` across ``weights`` so the parts sum to ``amount`` exactly.

    Uses the largest-remainder method; ties go to the earlier weight.
    """
    amount = _require_amount(amount, "amount")
    for index, weight in enumerate(weights):
        _require_amount(weight, f"weights[{index}]")
    total_weight = sum(weights)
    if total_weight == 0:
        if amount:
            raise InvalidAmount("cannot split a non-zero amount across zero weights")
        return [0 for _ in weights]

    parts = [amount * weight // total_weight for weight in weights]
    remainders = [amount * weight % total_weight for weight in weights]
    leftover = amount - sum(parts)
    order = sorted(range(len(weights)), key=lambda idx: (-remainders[idx], idx))
    for idx in order[:leftover]:
        parts[idx] += 1
    return parts


def currency_exponent(currency: str) -> int:
    code = (currency or "").strip().upper()
    if code in _ZERO_DECIMAL_CURRENCIES:
        return 0
    if code in _THREE_DECIMAL_CURRENCIES:
        return 3
    return 2


def parse_major_amount(text: str | None, currency: str) -> int | None:
    """Convert typed major-unit input ("12.50") to minor units.

    Returns ``None`` for blank, non-numeric or negative input.
    """
    if text is None or not str(text).strip():
        return None
    try:
        value = Decimal(str(text).strip())
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0:
        return None
    scaled = value * (Decimal(10) ** currency_exponent(currency))
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_money(amount: int, currency: str) -> str:
    exponent = currency_exponent(currency)
    major = Decimal(abs(amount)).scaleb(-exponent).quantize(Decimal(1).scaleb(-exponent))
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency.upper()} {major}"
