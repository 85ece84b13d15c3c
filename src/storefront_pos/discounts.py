from __future__ import annotations

import math
from dataclasses import dataclass

from .models_cart import Discount, DiscountKind, FixedDiscount, PercentageDiscount
from .money import percent_of


@dataclass(frozen=True)
class DiscountValidationIssue:
    field: str
    reason: str


@dataclass(frozen=True)
class DiscountValidationResult:
    ok: bool
    issues: list[DiscountValidationIssue]


def compute_discount(subtotal: int, discount: Discount | None) -> int:
    """Discount amount in minor units, always within ``[0, subtotal]``."""
    if discount is None or subtotal <= 0:
        return 0
    if discount.kind == DiscountKind.PERCENTAGE:
        return min(percent_of(subtotal, discount.value), subtotal)
    return min(max(discount.value, 0), subtotal)


def validate_discount(discount: Discount | None) -> DiscountValidationResult:
    issues: list[DiscountValidationIssue] = []
    if isinstance(discount, PercentageDiscount):
        if not math.isfinite(discount.value) or not 0 <= discount.value <= 100:
            issues.append(DiscountValidationIssue(field="discount.value", reason="percentage must be between 0 and 100"))
    elif isinstance(discount, FixedDiscount):
        if discount.value < 0:
            issues.append(DiscountValidationIssue(field="discount.value", reason="fixed discount must be >= 0"))
    return DiscountValidationResult(ok=not issues, issues=issues)
