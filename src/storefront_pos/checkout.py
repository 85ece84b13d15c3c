from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .cart import cart_totals
from .clients.pos_sales_client import PosSalesClient
from .exceptions import ApiError, EmptyCartError
from .models_cart import CartLine, CartState
from .models_orders import (
    CreatePosSaleInput,
    DiscountInput,
    PosMutationResponse,
    PosSaleLineInput,
    PosSaleOrder,
    RefundPosSaleInput,
)
from .money import proportional_split
from .observability import get_logger, log_event

logger = get_logger(__name__)


@dataclass(frozen=True)
class SaleOutcome:
    ok: bool
    message: str
    order: PosSaleOrder | None = None
    code: str | None = None
    trace_id: str | None = None


def line_descriptor(line: CartLine) -> str:
    if line.variant_name and line.variant_name != line.product_name:
        return f"{line.product_name} - {line.variant_name}"
    return line.product_name


def build_sale_input(state: CartState, merchant_id: str, default_currency: str = "USD") -> CreatePosSaleInput:
    if not state.lines:
        raise EmptyCartError("At least one line item is required")
    totals = cart_totals(state, default_currency)
    shares = proportional_split(totals.discount_amount, [line.line_total for line in state.lines])
    lines = [
        PosSaleLineInput(
            id=line.variant_id,
            merchant_id=merchant_id,
            for_object=line.for_object,
            variant_id=None if line.is_custom else line.variant_id,
            descriptor=line_descriptor(line),
            quantity=line.quantity,
            price=line.unit_price,
            discount_amount=share,
        )
        for line, share in zip(state.lines, shares)
    ]
    discount = None
    if state.discount is not None and totals.discount_amount > 0:
        discount = DiscountInput(
            kind=state.discount.kind,
            value=state.discount.value,
            reason=state.discount.reason or None,
            amount=totals.discount_amount,
        )
    return CreatePosSaleInput(
        customer_email=state.buyer_email.strip() or None,
        lines=lines,
        payment_method=state.payment_method.value,
        notes=state.notes.strip() or None,
        discount=discount,
    )


class SaleService:
    """Talks to the sale/void/refund mutations and folds every failure into a SaleOutcome."""

    def __init__(self, client: PosSalesClient, merchant_id: str) -> None:
        self.client = client
        self.merchant_id = merchant_id

    def submit(self, request: CreatePosSaleInput) -> SaleOutcome:
        return self._call("create_pos_sale", lambda: self.client.create_sale(self.merchant_id, request))

    def void(self, order_id: str, reason: str | None = None) -> SaleOutcome:
        return self._call("void_pos_sale", lambda: self.client.void_sale(order_id, reason))

    def refund(self, request: RefundPosSaleInput) -> SaleOutcome:
        return self._call("refund_pos_sale", lambda: self.client.refund_sale(request))

    def recent_sales(self, limit: int = 50) -> list[PosSaleOrder]:
        return self.client.recent_sales(self.merchant_id, limit=limit)

    def _call(self, operation: str, send: Callable[[], PosMutationResponse]) -> SaleOutcome:
        try:
            response: PosMutationResponse = send()
        except ApiError as exc:
            log_event(
                logger,
                "checkout",
                operation,
                "error",
                merchant_id=self.merchant_id,
                trace_id=exc.trace_id,
                level=logging.WARNING,
                code=exc.code,
            )
            return SaleOutcome(ok=False, message=exc.message, code=exc.code, trace_id=exc.trace_id)
        trace_id = self.client.http.trace_id
        if not response.success:
            log_event(
                logger,
                "checkout",
                operation,
                "rejected",
                merchant_id=self.merchant_id,
                trace_id=trace_id,
                level=logging.WARNING,
                code=response.code,
            )
            return SaleOutcome(
                ok=False,
                message=response.message or "Request failed",
                code=response.code,
                trace_id=trace_id,
            )
        log_event(logger, "checkout", operation, "success", merchant_id=self.merchant_id, trace_id=trace_id)
        return SaleOutcome(
            ok=True,
            message=response.message or "",
            order=response.order,
            code=response.code,
            trace_id=trace_id,
        )
