from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from .models_orders import OrderLine, PosSaleOrder, RefundLineRequest, RefundPosSaleInput

NO_SELECTION = "NO_SELECTION"


@dataclass(frozen=True)
class RefundIssue:
    code: str
    reason: str


@dataclass(frozen=True)
class RefundRequestResult:
    ok: bool
    total: int
    request: RefundPosSaleInput | None
    issues: list[RefundIssue]


def max_refundable(line: OrderLine) -> int:
    return max(line.quantity - line.refunded_quantity, 0)


def eligible_lines(sale: PosSaleOrder) -> list[OrderLine]:
    return [line for line in sale.lines if max_refundable(line) > 0]


def _clamped(requested: int, line: OrderLine) -> int:
    return min(max(requested, 0), max_refundable(line))


def compute_refund_total(lines: Sequence[OrderLine], requested: Mapping[str, int]) -> int:
    """Refund amount for ``requested`` quantities, clamped per line.

    Over-requests and unknown line ids never raise; they count for at most the
    line's remaining refundable quantity, or nothing.
    """
    return sum(line.price.amount * _clamped(requested.get(line.id, 0), line) for line in lines)


def select_all_for_full_refund(lines: Sequence[OrderLine]) -> dict[str, int]:
    return {line.id: max_refundable(line) for line in lines if max_refundable(line) > 0}


def build_refund_request(
    sale: PosSaleOrder,
    requested: Mapping[str, int],
    reason: str | None = None,
) -> RefundRequestResult:
    lines = eligible_lines(sale)
    request_lines = [
        RefundLineRequest(line_id=line.id, quantity=_clamped(requested.get(line.id, 0), line))
        for line in lines
        if _clamped(requested.get(line.id, 0), line) > 0
    ]
    if not request_lines:
        return RefundRequestResult(
            ok=False,
            total=0,
            request=None,
            issues=[RefundIssue(code=NO_SELECTION, reason="select at least one item to refund")],
        )
    return RefundRequestResult(
        ok=True,
        total=compute_refund_total(lines, requested),
        request=RefundPosSaleInput(order_id=sale.id, lines=request_lines, reason=(reason or "").strip() or None),
        issues=[],
    )
