from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .models_cart import CatalogRef, Money


class OrderCharge(BaseModel):
    model_config = ConfigDict(extra="allow")

    subtotal: int = 0
    tax: int = 0
    paid: int = 0


class OrderPayment(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    code: str | None = None
    method_description: str | None = None
    currency: str | None = None
    date: datetime | None = None
    charge: OrderCharge | None = None

    @property
    def paid(self) -> int:
        return self.charge.paid if self.charge else 0


class OrderLine(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    descriptor: str | None = None
    variant_id: str | None = Field(default=None, alias="variantId")
    quantity: int
    price: Money
    refunded_quantity: int = Field(default=0, alias="refundedQuantity")


class PosRefund(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    date: datetime
    amount: int
    reason: str | None = None


class PosSaleOrder(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    code: str | None = None
    created_date: datetime = Field(alias="createdDate")
    voided_at: datetime | None = Field(default=None, alias="voidedAt")
    customer_email: str | None = Field(default=None, alias="customerEmail")
    notes: str | None = None
    lines: list[OrderLine] = Field(default_factory=list)
    payments: list[OrderPayment] = Field(default_factory=list)
    pos_refunds: list[PosRefund] = Field(default_factory=list, alias="posRefunds")

    @property
    def first_payment(self) -> OrderPayment | None:
        return self.payments[0] if self.payments else None


class PosSaleLineInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    merchant_id: str = Field(alias="merchantId")
    for_object: CatalogRef | None = Field(default=None, alias="forObject")
    variant_id: str | None = Field(default=None, alias="variantId")
    descriptor: str
    quantity: int
    price: Money
    discount_amount: int = Field(default=0, alias="discountAmount")


class DiscountInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["PERCENTAGE", "FIXED"]
    value: float | int
    reason: str | None = None
    amount: int


class CreatePosSaleInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_email: str | None = Field(default=None, alias="customerEmail")
    lines: list[PosSaleLineInput]
    payment_method: Literal["CASH", "EXTERNAL_TERMINAL"] = Field(alias="paymentMethod")
    notes: str | None = None
    discount: DiscountInput | None = None


class RefundLineRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    line_id: str = Field(alias="lineId")
    quantity: int


class RefundPosSaleInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(alias="orderId")
    lines: list[RefundLineRequest]
    reason: str | None = None


class PosMutationResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    code: str | None = None
    success: bool = False
    message: str | None = None
    order: PosSaleOrder | None = None
