from __future__ import annotations

from dataclasses import dataclass

from ..models_catalog import CatalogProduct
from .base import BaseClient

POS_PRODUCTS = """
query posProducts($merchantId: ID!, $search: String) {
  posProducts(merchantId: $merchantId, search: $search) {
    id
    name
    image
    ref { id partition }
    variants {
      id
      name
      code
      image
      default_price { amount currency }
      inventory { track_inventory qty_on_hand qty_committed low_stock_threshold }
    }
  }
}
"""


@dataclass
class CatalogClient(BaseClient):
    def merchant_products(self, merchant_id: str, search: str | None = None) -> list[CatalogProduct]:
        data = self._query(
            POS_PRODUCTS,
            {"merchantId": merchant_id, "search": search or None},
            operation="posProducts",
        )
        rows = data.get("posProducts")
        if not isinstance(rows, list):
            raise ValueError("Expected posProducts to be a JSON array")
        return [CatalogProduct.model_validate(row) for row in rows]
