from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models_orders import CreatePosSaleInput, PosMutationResponse, PosSaleOrder, RefundPosSaleInput
from .base import BaseClient, _coerce_model

ORDER_FIELDS = """
    id
    code
    createdDate
    voidedAt
    customerEmail
    notes
    lines { id descriptor variantId quantity refundedQuantity price { amount currency } }
    payments { id code method_description currency date charge { subtotal tax paid } }
    posRefunds { id date amount reason }
"""

CREATE_POS_SALE = f"""
mutation create_pos_sale($merchantId: ID!, $input: PosSaleInput!) {{
  create_pos_sale(merchantId: $merchantId, input: $input) {{
    code
    success
    message
    order {{ {ORDER_FIELDS} }}
  }}
}}
"""

VOID_POS_SALE = f"""
mutation void_pos_sale($orderId: ID!, $reason: String) {{
  void_pos_sale(orderId: $orderId, reason: $reason) {{
    code
    success
    message
    order {{ {ORDER_FIELDS} }}
  }}
}}
"""

REFUND_POS_SALE = f"""
mutation refund_pos_sale($orderId: ID!, $lines: [PosRefundLineInput!]!, $reason: String) {{
  refund_pos_sale(orderId: $orderId, lines: $lines, reason: $reason) {{
    code
    success
    message
    order {{ {ORDER_FIELDS} }}
  }}
}}
"""

POS_SALES = f"""
query posSales($vendorId: ID!, $limit: Int, $offset: Int) {{
  posSales(vendorId: $vendorId, limit: $limit, offset: $offset) {{ {ORDER_FIELDS} }}
}}
"""


@dataclass
class PosSalesClient(BaseClient):
    def create_sale(self, merchant_id: str, payload: CreatePosSaleInput | Mapping[str, Any]) -> PosMutationResponse:
        request = _coerce_model(payload, CreatePosSaleInput)
        data = self._mutate(
            CREATE_POS_SALE,
            {"merchantId": merchant_id, "input": request.model_dump(mode="json", by_alias=True, exclude_none=True)},
            operation="create_pos_sale",
        )
        return _mutation_response(data, "create_pos_sale")

    def void_sale(self, order_id: str, reason: str | None = None) -> PosMutationResponse:
        data = self._mutate(VOID_POS_SALE, {"orderId": order_id, "reason": reason}, operation="void_pos_sale")
        return _mutation_response(data, "void_pos_sale")

    def refund_sale(self, payload: RefundPosSaleInput | Mapping[str, Any]) -> PosMutationResponse:
        request = _coerce_model(payload, RefundPosSaleInput)
        body = request.model_dump(mode="json", by_alias=True)
        data = self._mutate(REFUND_POS_SALE, body, operation="refund_pos_sale")
        return _mutation_response(data, "refund_pos_sale")

    def recent_sales(self, merchant_id: str, *, limit: int = 50, offset: int = 0) -> list[PosSaleOrder]:
        data = self._query(
            POS_SALES,
            {"vendorId": merchant_id, "limit": limit, "offset": offset},
            operation="posSales",
        )
        rows = data.get("posSales")
        if not isinstance(rows, list):
            raise ValueError("Expected posSales to be a JSON array")
        return [PosSaleOrder.model_validate(row) for row in rows]


def _mutation_response(data: Mapping[str, Any], field: str) -> PosMutationResponse:
    payload = data.get(field)
    if not isinstance(payload, dict):
        raise ValueError(f"Expected {field} response to be a JSON object")
    return PosMutationResponse.model_validate(payload)
