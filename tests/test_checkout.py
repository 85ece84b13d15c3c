from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from storefront_pos.checkout import SaleService, build_sale_input, line_descriptor
from storefront_pos.exceptions import EmptyCartError, TransportError
from storefront_pos.inventory import custom_line
from storefront_pos.models_cart import EMPTY_CART, CartState, FixedDiscount, PaymentMethod, PercentageDiscount
from storefront_pos.models_orders import PosMutationResponse, PosSaleOrder
from tests.pos_helpers import make_line, order_payload


def test_build_sale_input_requires_lines() -> None:
    with pytest.raises(EmptyCartError):
        build_sale_input(EMPTY_CART, "m-1")


def test_build_sale_input_splits_discount_across_lines() -> None:
    state = CartState(
        lines=(make_line("v-1", price=1000, quantity=1), make_line("v-2", price=2000, quantity=1)),
        discount=FixedDiscount(value=301, reason="promo"),
        buyer_email="  ",
        notes=" leave at desk ",
        payment_method=PaymentMethod.EXTERNAL_TERMINAL,
    )
    request = build_sale_input(state, "m-1")
    assert [line.discount_amount for line in request.lines] == [100, 201]
    assert sum(line.discount_amount for line in request.lines) == 301
    assert request.discount is not None
    assert request.discount.amount == 301
    assert request.discount.kind == "FIXED"
    wire_discount = request.model_dump(mode="json", by_alias=True)["discount"]
    assert wire_discount["value"] == 301
    assert isinstance(wire_discount["value"], int)
    assert request.customer_email is None
    assert request.notes == "leave at desk"
    assert request.payment_method == "EXTERNAL_TERMINAL"
    assert request.lines[0].merchant_id == "m-1"


def test_build_sale_input_omits_zero_discount_and_custom_variant() -> None:
    state = CartState(
        lines=(custom_line("Gift wrap", 300, "USD"),),
        discount=PercentageDiscount(value=0),
        buyer_email="buyer@example.com",
    )
    request = build_sale_input(state, "m-1")
    assert request.discount is None
    assert request.lines[0].variant_id is None
    assert request.lines[0].for_object is None
    assert request.lines[0].descriptor == "Gift wrap"
    assert request.customer_email == "buyer@example.com"


def test_line_descriptor() -> None:
    assert line_descriptor(make_line()) == "Mug - Blue"
    assert line_descriptor(custom_line("Repair", 100, "USD")) == "Repair"


@dataclass
class _Http:
    trace_id: str | None = "trace-1"


@dataclass
class _FakeSalesClient:
    response: PosMutationResponse | None = None
    error: Exception | None = None
    calls: list[tuple] = field(default_factory=list)
    http: _Http = field(default_factory=_Http)

    def _reply(self, *args) -> PosMutationResponse:
        self.calls.append(args)
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    def create_sale(self, merchant_id, payload):
        return self._reply("create", merchant_id, payload)

    def void_sale(self, order_id, reason=None):
        return self._reply("void", order_id, reason)

    def refund_sale(self, payload):
        return self._reply("refund", payload)

    def recent_sales(self, merchant_id, *, limit=50, offset=0):
        self.calls.append(("recent", merchant_id, limit))
        return [PosSaleOrder.model_validate(order_payload("o-1"))]


def _sale_request():
    return build_sale_input(CartState(lines=(make_line(),)), "m-1")


def test_submit_success() -> None:
    client = _FakeSalesClient(
        response=PosMutationResponse.model_validate(
            {"code": "200", "success": True, "message": "Sale recorded", "order": order_payload("o-1")}
        )
    )
    outcome = SaleService(client, "m-1").submit(_sale_request())
    assert outcome.ok is True
    assert outcome.order is not None and outcome.order.id == "o-1"
    assert outcome.trace_id == "trace-1"


def test_submit_rejected_by_server() -> None:
    client = _FakeSalesClient(response=PosMutationResponse(code="400", success=False, message="Out of stock"))
    outcome = SaleService(client, "m-1").submit(_sale_request())
    assert outcome.ok is False
    assert outcome.message == "Out of stock"
    assert outcome.code == "400"


def test_submit_rejected_without_message() -> None:
    client = _FakeSalesClient(response=PosMutationResponse(success=False))
    assert SaleService(client, "m-1").void("o-1").message == "Request failed"


def test_submit_transport_error_becomes_outcome() -> None:
    error = TransportError(
        code="TRANSPORT_ERROR",
        message="connection refused",
        details=None,
        trace_id="trace-2",
        status_code=0,
    )
    outcome = SaleService(_FakeSalesClient(error=error), "m-1").submit(_sale_request())
    assert outcome.ok is False
    assert outcome.message == "connection refused"
    assert outcome.code == "TRANSPORT_ERROR"
    assert outcome.trace_id == "trace-2"


def test_recent_sales_passes_merchant_and_limit() -> None:
    client = _FakeSalesClient()
    sales = SaleService(client, "m-1").recent_sales(limit=5)
    assert [sale.id for sale in sales] == ["o-1"]
    assert client.calls == [("recent", "m-1", 5)]
