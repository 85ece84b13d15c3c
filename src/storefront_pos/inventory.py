"""Stock ceilings and barcode matching for the cart.

Nothing here mutates the cart. The UI layer consults these helpers before it
dispatches cart actions; the reducer only re-checks the add ceiling.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from .models_cart import CartLine, CartState, CatalogRef, Money
from .models_catalog import CatalogProduct, CatalogVariant, InventoryRecord

# A ceiling of None means the variant does not track inventory.
UNLIMITED = None


class StockStatus(str, Enum):
    UNTRACKED = "UNTRACKED"
    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class ScanOutcome(str, Enum):
    MATCHED = "MATCHED"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    NO_MATCH = "NO_MATCH"


@dataclass(frozen=True)
class ScanResult:
    outcome: ScanOutcome
    code: str
    product: CatalogProduct | None = None
    variant: CatalogVariant | None = None

    @property
    def addable(self) -> bool:
        return self.outcome == ScanOutcome.MATCHED


@dataclass(frozen=True)
class AddCheck:
    ok: bool
    reason: str | None = None
    available: int | None = None


def max_allowed(record: InventoryRecord | None) -> int | None:
    if record is None or not record.track_inventory:
        return UNLIMITED
    return record.qty_on_hand - record.qty_committed


def can_add(existing_quantity: int, requested_quantity: int, ceiling: int | None) -> bool:
    return ceiling is UNLIMITED or existing_quantity + requested_quantity <= ceiling


def clamp_quantity(requested: int, ceiling: int | None) -> int:
    """Quantity to pass to ``UpdateQuantity`` after applying the line ceiling."""
    if ceiling is UNLIMITED:
        return requested
    return min(requested, ceiling)


def stock_status(record: InventoryRecord | None) -> StockStatus:
    ceiling = max_allowed(record)
    if ceiling is UNLIMITED:
        return StockStatus.UNTRACKED
    if ceiling <= 0:
        return StockStatus.OUT_OF_STOCK
    threshold = record.low_stock_threshold if record is not None else None
    if threshold is not None and ceiling <= threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def _normalize_code(code: str | None) -> str:
    return (code or "").strip().lower()


def match_barcode(
    products: Iterable[CatalogProduct],
    code: str,
    *,
    quantity_in_cart: int = 0,
) -> ScanResult:
    """First product/variant whose code matches ``code``, in catalog order.

    Duplicate codes later in the catalog are never considered.
    """
    needle = _normalize_code(code)
    if not needle:
        return ScanResult(outcome=ScanOutcome.NO_MATCH, code=code)
    for product in products:
        for variant in product.variants:
            if _normalize_code(variant.code) != needle:
                continue
            ceiling = max_allowed(variant.inventory)
            if not can_add(quantity_in_cart, 1, ceiling):
                return ScanResult(outcome=ScanOutcome.OUT_OF_STOCK, code=code, product=product, variant=variant)
            return ScanResult(outcome=ScanOutcome.MATCHED, code=code, product=product, variant=variant)
    return ScanResult(outcome=ScanOutcome.NO_MATCH, code=code)


def search_products(products: Sequence[CatalogProduct], query: str) -> list[CatalogProduct]:
    needle = query.strip().lower()
    if not needle:
        return list(products)
    return [
        product
        for product in products
        if needle in product.name.lower()
        or any(needle in variant.name.lower() or needle in _normalize_code(variant.code) for variant in product.variants)
    ]


def add_check(state: CartState, product: CatalogProduct, variant: CatalogVariant, quantity: int = 1) -> AddCheck:
    ceiling = max_allowed(variant.inventory)
    if ceiling is UNLIMITED:
        return AddCheck(ok=True)
    if ceiling <= 0:
        return AddCheck(ok=False, reason=f"{product.name} is out of stock", available=ceiling)
    existing = state.find_line(variant.id)
    in_cart = existing.quantity if existing else 0
    if not can_add(in_cart, quantity, ceiling):
        return AddCheck(ok=False, reason=f"Only {ceiling} available for {product.name}", available=ceiling)
    return AddCheck(ok=True, available=ceiling)


def line_for_variant(product: CatalogProduct, variant: CatalogVariant, quantity: int = 1) -> CartLine:
    return CartLine(
        product_id=product.id,
        variant_id=variant.id,
        product_name=product.name,
        variant_name=variant.name,
        image=variant.image or product.image,
        unit_price=variant.default_price,
        quantity=quantity,
        max_quantity=max_allowed(variant.inventory),
        is_custom=False,
        for_object=CatalogRef(id=product.ref.id, partition=product.ref.partition),
    )


def custom_line(description: str, unit_price: int, currency: str, quantity: int = 1) -> CartLine:
    return CartLine(
        product_id=None,
        variant_id=f"custom-{uuid.uuid4()}",
        product_name=description,
        variant_name=description,
        unit_price=Money(amount=unit_price, currency=currency),
        quantity=quantity,
        max_quantity=UNLIMITED,
        is_custom=True,
        for_object=None,
    )
