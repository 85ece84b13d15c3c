from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class PaymentMethod(str, Enum):
    CASH = "CASH"
    EXTERNAL_TERMINAL = "EXTERNAL_TERMINAL"


class DiscountKind(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class Money(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: int = Field(ge=0)
    currency: str


class CatalogRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    partition: tuple[str, ...] = ()


class CartLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str | None = None
    variant_id: str
    product_name: str
    variant_name: str
    image: str | None = None
    unit_price: Money
    quantity: int = Field(ge=1)
    # None means the variant does not track inventory.
    max_quantity: int | None = None
    is_custom: bool = False
    for_object: CatalogRef | None = None

    @property
    def line_total(self) -> int:
        return self.unit_price.amount * self.quantity


class PercentageDiscount(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["PERCENTAGE"] = "PERCENTAGE"
    value: float
    reason: str = ""


class FixedDiscount(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["FIXED"] = "FIXED"
    value: int
    reason: str = ""


Discount = Annotated[Union[PercentageDiscount, FixedDiscount], Field(discriminator="kind")]


class CartState(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: tuple[CartLine, ...] = ()
    payment_method: PaymentMethod = PaymentMethod.CASH
    buyer_email: str = ""
    notes: str = ""
    discount: Discount | None = None

    def find_line(self, variant_id: str) -> CartLine | None:
        for line in self.lines:
            if line.variant_id == variant_id:
                return line
        return None


EMPTY_CART = CartState()


class ParkedSale(CartState):
    id: str
    label: str
    parked_at: datetime

    def cart_state(self) -> CartState:
        return CartState(
            lines=self.lines,
            payment_method=self.payment_method,
            buyer_email=self.buyer_email,
            notes=self.notes,
            discount=self.discount,
        )


class RegisterState(BaseModel):
    model_config = ConfigDict(frozen=True)

    opened_at: datetime
    opening_float: int
    currency: str
