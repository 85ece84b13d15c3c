from __future__ import annotations

import pytest
from pydantic import ValidationError

from storefront_pos.cart import (
    AddItem,
    CartEngine,
    Clear,
    RemoveItem,
    Restore,
    SetDiscount,
    SetPaymentMethod,
    SwitchDiscountKind,
    UpdateQuantity,
    cart_totals,
    reduce_cart,
)
from storefront_pos.models_cart import (
    EMPTY_CART,
    CartState,
    DiscountKind,
    FixedDiscount,
    Money,
    PaymentMethod,
    PercentageDiscount,
)
from tests.pos_helpers import make_line


def test_add_new_line_appends() -> None:
    state = reduce_cart(EMPTY_CART, AddItem(line=make_line("v-1", quantity=2)))
    assert [line.variant_id for line in state.lines] == ["v-1"]
    assert state.lines[0].quantity == 2


def test_add_existing_line_merges_quantity() -> None:
    state = reduce_cart(EMPTY_CART, AddItem(line=make_line("v-1", quantity=2)))
    state = reduce_cart(state, AddItem(line=make_line("v-1", quantity=3)))
    assert len(state.lines) == 1
    assert state.lines[0].quantity == 5


def test_add_over_ceiling_is_rejected_and_state_unchanged() -> None:
    state = reduce_cart(EMPTY_CART, AddItem(line=make_line("v1", quantity=2, max_quantity=5)))
    rejected = reduce_cart(state, AddItem(line=make_line("v1", quantity=4)))
    assert rejected is state
    assert rejected.lines[0].quantity == 2


def test_add_up_to_ceiling_is_accepted() -> None:
    state = reduce_cart(EMPTY_CART, AddItem(line=make_line("v1", quantity=2, max_quantity=5)))
    state = reduce_cart(state, AddItem(line=make_line("v1", quantity=3)))
    assert state.lines[0].quantity == 5


def test_add_new_line_beyond_its_own_ceiling_is_rejected() -> None:
    assert reduce_cart(EMPTY_CART, AddItem(line=make_line("v1", quantity=3, max_quantity=2))) is EMPTY_CART
    assert reduce_cart(EMPTY_CART, AddItem(line=make_line("v1", quantity=1, max_quantity=0))) is EMPTY_CART


def test_add_zero_quantity_is_rejected() -> None:
    zero = make_line("v1").model_copy(update={"quantity": 0})
    assert reduce_cart(EMPTY_CART, AddItem(line=zero)) is EMPTY_CART


def test_cart_line_requires_positive_quantity() -> None:
    with pytest.raises(ValidationError):
        make_line("v1", quantity=0)
    with pytest.raises(ValidationError):
        CartState.model_validate({"lines": [{**make_line("v1").model_dump(), "quantity": 0}]})


def test_negative_unit_price_is_refused() -> None:
    with pytest.raises(ValidationError):
        make_line("v1", price=-500)
    negative = make_line("v1").model_copy(update={"unit_price": Money.model_construct(amount=-500, currency="USD")})
    state = reduce_cart(EMPTY_CART, AddItem(line=make_line("v0", price=200)))
    assert reduce_cart(state, AddItem(line=negative)) is state
    totals = cart_totals(state)
    assert totals.subtotal == 200
    assert totals.total == 200


def test_update_quantity_sets_value_without_enforcing_ceiling() -> None:
    state = reduce_cart(EMPTY_CART, AddItem(line=make_line("v1", quantity=1, max_quantity=3)))
    state = reduce_cart(state, UpdateQuantity(variant_id="v1", quantity=7))
    assert state.lines[0].quantity == 7


def test_update_quantity_to_zero_removes_line() -> None:
    state = reduce_cart(EMPTY_CART, AddItem(line=make_line("v1")))
    state = reduce_cart(state, AddItem(line=make_line("v2")))
    state = reduce_cart(state, UpdateQuantity(variant_id="v1", quantity=0))
    assert [line.variant_id for line in state.lines] == ["v2"]
    state = reduce_cart(state, UpdateQuantity(variant_id="v2", quantity=-3))
    assert state.lines == ()


def test_update_unknown_line_is_noop() -> None:
    state = reduce_cart(EMPTY_CART, AddItem(line=make_line("v1")))
    assert reduce_cart(state, UpdateQuantity(variant_id="nope", quantity=4)) is state


def test_remove_item_preserves_order() -> None:
    state = EMPTY_CART
    for variant_id in ("a", "b", "c"):
        state = reduce_cart(state, AddItem(line=make_line(variant_id)))
    state = reduce_cart(state, RemoveItem(variant_id="b"))
    assert [line.variant_id for line in state.lines] == ["a", "c"]
    assert reduce_cart(state, RemoveItem(variant_id="b")) is state


def test_reducer_does_not_mutate_input() -> None:
    original = reduce_cart(EMPTY_CART, AddItem(line=make_line("v1", quantity=1)))
    reduce_cart(original, AddItem(line=make_line("v1", quantity=2)))
    reduce_cart(original, SetPaymentMethod(payment_method=PaymentMethod.EXTERNAL_TERMINAL))
    assert original.lines[0].quantity == 1
    assert original.payment_method == PaymentMethod.CASH


def test_invalid_discount_is_rejected() -> None:
    state = reduce_cart(EMPTY_CART, SetDiscount(discount=PercentageDiscount(value=150)))
    assert state is EMPTY_CART
    state = reduce_cart(EMPTY_CART, SetDiscount(discount=FixedDiscount(value=-5)))
    assert state is EMPTY_CART


def test_switch_discount_kind_resets_discount() -> None:
    state = reduce_cart(EMPTY_CART, SetDiscount(discount=PercentageDiscount(value=15, reason="staff")))
    state = reduce_cart(state, SwitchDiscountKind(kind=DiscountKind.FIXED))
    assert state.discount is None


def test_restore_replaces_state_and_clear_empties() -> None:
    snapshot = CartState(lines=(make_line("v9", quantity=4),), notes="gift wrap")
    state = reduce_cart(EMPTY_CART, AddItem(line=make_line("v1")))
    state = reduce_cart(state, Restore(snapshot=snapshot))
    assert state == snapshot
    assert reduce_cart(state, Clear()) == EMPTY_CART


def test_totals_with_percentage_discount() -> None:
    state = CartState(lines=(make_line("v1", price=5000, quantity=2),), discount=PercentageDiscount(value=15))
    totals = cart_totals(state)
    assert totals.subtotal == 10000
    assert totals.discount_amount == 1500
    assert totals.total == 8500
    assert totals.item_count == 2
    assert totals.line_count == 1


def test_totals_with_fixed_discount_larger_than_subtotal() -> None:
    state = CartState(lines=(make_line("v1", price=1000, quantity=3),), discount=FixedDiscount(value=5000))
    totals = cart_totals(state)
    assert totals.discount_amount == 3000
    assert totals.total == 0


def test_totals_currency_comes_from_first_line() -> None:
    assert cart_totals(EMPTY_CART, "AUD").currency == "AUD"
    state = CartState(lines=(make_line("v1", currency="NZD"), make_line("v2", currency="USD")))
    assert cart_totals(state, "AUD").currency == "NZD"


def test_engine_dispatch_reports_rejection() -> None:
    engine = CartEngine(default_currency="AUD", merchant_id="m-1")
    assert engine.is_empty
    assert engine.add_item(make_line("v1", quantity=2, max_quantity=2)) is True
    assert engine.add_item(make_line("v1", quantity=1)) is False
    assert engine.state.lines[0].quantity == 2
    assert engine.set_payment_method("EXTERNAL_TERMINAL") is True
    assert engine.state.payment_method == PaymentMethod.EXTERNAL_TERMINAL
    assert engine.set_discount(FixedDiscount(value=500)) is True
    assert engine.totals.total == 1500
    assert engine.switch_discount_kind("PERCENTAGE") is True
    assert engine.state.discount is None
    assert engine.clear() is True
    assert engine.is_empty
