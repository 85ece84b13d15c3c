"""Cart reducer for the in-progress sale.

``reduce_cart`` is a pure function over frozen ``CartState`` values. A rejected
action returns the very same state object, so callers detect rejection with an
identity check rather than an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from .discounts import compute_discount, validate_discount
from .inventory import can_add
from .models_cart import EMPTY_CART, CartLine, CartState, Discount, DiscountKind, PaymentMethod
from .observability import get_logger, log_event

logger = get_logger(__name__)


@dataclass(frozen=True)
class AddItem:
    line: CartLine


@dataclass(frozen=True)
class UpdateQuantity:
    variant_id: str
    quantity: int


@dataclass(frozen=True)
class RemoveItem:
    variant_id: str


@dataclass(frozen=True)
class SetPaymentMethod:
    payment_method: PaymentMethod


@dataclass(frozen=True)
class SetBuyerEmail:
    buyer_email: str


@dataclass(frozen=True)
class SetNotes:
    notes: str


@dataclass(frozen=True)
class SetDiscount:
    discount: Discount | None


@dataclass(frozen=True)
class SwitchDiscountKind:
    kind: DiscountKind


@dataclass(frozen=True)
class Restore:
    snapshot: CartState


@dataclass(frozen=True)
class Clear:
    pass


CartAction = Union[
    AddItem,
    UpdateQuantity,
    RemoveItem,
    SetPaymentMethod,
    SetBuyerEmail,
    SetNotes,
    SetDiscount,
    SwitchDiscountKind,
    Restore,
    Clear,
]


def _add_item(state: CartState, action: AddItem) -> CartState:
    incoming = action.line
    if incoming.quantity < 1 or incoming.unit_price.amount < 0:
        return state
    existing = state.find_line(incoming.variant_id)
    if existing is None:
        if not can_add(0, incoming.quantity, incoming.max_quantity):
            return state
        return state.model_copy(update={"lines": (*state.lines, incoming)})
    if not can_add(existing.quantity, incoming.quantity, existing.max_quantity):
        return state
    merged = existing.model_copy(update={"quantity": existing.quantity + incoming.quantity})
    lines = tuple(merged if line.variant_id == existing.variant_id else line for line in state.lines)
    return state.model_copy(update={"lines": lines})


def _update_quantity(state: CartState, action: UpdateQuantity) -> CartState:
    if state.find_line(action.variant_id) is None:
        return state
    if action.quantity <= 0:
        return _remove_item(state, RemoveItem(variant_id=action.variant_id))
    # The ceiling is enforced by the caller before dispatching (see inventory.clamp_quantity).
    lines = tuple(
        line.model_copy(update={"quantity": action.quantity}) if line.variant_id == action.variant_id else line
        for line in state.lines
    )
    return state.model_copy(update={"lines": lines})


def _remove_item(state: CartState, action: RemoveItem) -> CartState:
    if state.find_line(action.variant_id) is None:
        return state
    lines = tuple(line for line in state.lines if line.variant_id != action.variant_id)
    return state.model_copy(update={"lines": lines})


def _set_discount(state: CartState, action: SetDiscount) -> CartState:
    if not validate_discount(action.discount).ok:
        return state
    return state.model_copy(update={"discount": action.discount})


_REDUCERS: dict[type, Callable[[CartState, object], CartState]] = {
    AddItem: _add_item,
    UpdateQuantity: _update_quantity,
    RemoveItem: _remove_item,
    SetPaymentMethod: lambda state, action: state.model_copy(update={"payment_method": action.payment_method}),
    SetBuyerEmail: lambda state, action: state.model_copy(update={"buyer_email": action.buyer_email}),
    SetNotes: lambda state, action: state.model_copy(update={"notes": action.notes}),
    SetDiscount: _set_discount,
    SwitchDiscountKind: lambda state, action: state.model_copy(update={"discount": None}),
    Restore: lambda state, action: action.snapshot,
    Clear: lambda state, action: EMPTY_CART,
}


def reduce_cart(state: CartState, action: CartAction) -> CartState:
    reducer = _REDUCERS.get(type(action))
    if reducer is None:
        return state
    return reducer(state, action)


@dataclass(frozen=True)
class CartTotals:
    subtotal: int
    discount_amount: int
    total: int
    item_count: int
    line_count: int
    currency: str


def cart_totals(state: CartState, default_currency: str = "USD") -> CartTotals:
    subtotal = sum(line.line_total for line in state.lines)
    discount_amount = compute_discount(subtotal, state.discount)
    # Mixed-currency carts are not supported; the first line decides.
    currency = state.lines[0].unit_price.currency if state.lines else default_currency
    return CartTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        total=subtotal - discount_amount,
        item_count=sum(line.quantity for line in state.lines),
        line_count=len(state.lines),
        currency=currency,
    )


class CartEngine:
    """Holds the live cart for one merchant session."""

    def __init__(
        self,
        state: CartState | None = None,
        *,
        default_currency: str = "USD",
        merchant_id: str | None = None,
    ) -> None:
        self._state = state if state is not None else EMPTY_CART
        self.default_currency = default_currency
        self.merchant_id = merchant_id

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def totals(self) -> CartTotals:
        return cart_totals(self._state, self.default_currency)

    @property
    def is_empty(self) -> bool:
        return not self._state.lines

    def dispatch(self, action: CartAction) -> bool:
        """Apply ``action``; returns False when the state did not change."""
        previous = self._state
        self._state = reduce_cart(previous, action)
        accepted = self._state is not previous
        if not accepted and isinstance(action, (AddItem, SetDiscount)):
            log_event(
                logger,
                "cart",
                type(action).__name__,
                "rejected",
                merchant_id=self.merchant_id,
                variant_id=getattr(getattr(action, "line", None), "variant_id", None),
            )
        return accepted

    def add_item(self, line: CartLine) -> bool:
        return self.dispatch(AddItem(line=line))

    def update_quantity(self, variant_id: str, quantity: int) -> bool:
        return self.dispatch(UpdateQuantity(variant_id=variant_id, quantity=quantity))

    def remove_item(self, variant_id: str) -> bool:
        return self.dispatch(RemoveItem(variant_id=variant_id))

    def set_payment_method(self, payment_method: PaymentMethod | str) -> bool:
        return self.dispatch(SetPaymentMethod(payment_method=PaymentMethod(payment_method)))

    def set_buyer_email(self, buyer_email: str) -> bool:
        return self.dispatch(SetBuyerEmail(buyer_email=buyer_email))

    def set_notes(self, notes: str) -> bool:
        return self.dispatch(SetNotes(notes=notes))

    def set_discount(self, discount: Discount | None) -> bool:
        return self.dispatch(SetDiscount(discount=discount))

    def switch_discount_kind(self, kind: DiscountKind | str) -> bool:
        return self.dispatch(SwitchDiscountKind(kind=DiscountKind(kind)))

    def restore(self, snapshot: CartState) -> bool:
        return self.dispatch(Restore(snapshot=snapshot))

    def clear(self) -> bool:
        return self.dispatch(Clear())
