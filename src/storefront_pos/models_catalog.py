from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .models_cart import CatalogRef, Money


class InventoryRecord(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    track_inventory: bool = False
    qty_on_hand: int = 0
    qty_committed: int = 0
    low_stock_threshold: int | None = None


class CatalogVariant(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    name: str
    code: str | None = None
    default_price: Money
    image: str | None = None
    inventory: InventoryRecord | None = None


class CatalogProduct(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    name: str
    ref: CatalogRef
    image: str | None = None
    variants: tuple[CatalogVariant, ...] = Field(default_factory=tuple)
