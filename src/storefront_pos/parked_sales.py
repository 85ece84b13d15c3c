"""Held ("parked") carts, persisted per merchant.

The persisted list is read once when the store is created. Every mutation is
written straight through; a failed write is logged and the in-memory list
keeps the change.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from pydantic import TypeAdapter, ValidationError

from .kv_store import KeyValueStore
from .models_cart import CartState, ParkedSale
from .observability import get_logger, log_event

logger = get_logger(__name__)

_PARKED_LIST = TypeAdapter(list[ParkedSale])


def parked_sales_key(merchant_id: str) -> str:
    return f"pos-parked-sales-{merchant_id}"


def default_label(state: CartState) -> str:
    count = len(state.lines)
    return f"Sale ({count} item{'' if count == 1 else 's'})"


class ParkedSaleStore:
    def __init__(
        self,
        merchant_id: str,
        store: KeyValueStore,
        *,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.merchant_id = merchant_id
        self.store = store
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._sales: list[ParkedSale] = self._load()

    @property
    def key(self) -> str:
        return parked_sales_key(self.merchant_id)

    @property
    def sales(self) -> list[ParkedSale]:
        return list(self._sales)

    def get(self, parked_id: str) -> ParkedSale | None:
        for sale in self._sales:
            if sale.id == parked_id:
                return sale
        return None

    def park(self, state: CartState, label: str | None = None) -> ParkedSale:
        parked = ParkedSale(
            id=self.id_factory(),
            label=(label or "").strip() or default_label(state),
            parked_at=self.clock(),
            lines=state.lines,
            payment_method=state.payment_method,
            buyer_email=state.buyer_email,
            notes=state.notes,
            discount=state.discount,
        )
        self._sales.append(parked)
        self._persist("park")
        return parked

    def restore(self, parked_id: str) -> CartState | None:
        parked = self.get(parked_id)
        if parked is None:
            return None
        self._sales = [sale for sale in self._sales if sale.id != parked_id]
        self._persist("restore")
        return parked.cart_state()

    def discard(self, parked_id: str) -> bool:
        if self.get(parked_id) is None:
            return False
        self._sales = [sale for sale in self._sales if sale.id != parked_id]
        self._persist("discard")
        return True

    def _load(self) -> list[ParkedSale]:
        try:
            raw = self.store.get(self.key)
        except OSError as exc:
            log_event(
                logger,
                "parked_sales",
                "load",
                "read_failed",
                merchant_id=self.merchant_id,
                level=logging.WARNING,
                error=str(exc),
            )
            return []
        if raw is None:
            return []
        try:
            return _PARKED_LIST.validate_json(raw)
        except ValidationError:
            log_event(logger, "parked_sales", "load", "corrupt", merchant_id=self.merchant_id, level=logging.WARNING)
            return []

    def _persist(self, action: str) -> None:
        try:
            if self._sales:
                self.store.set(self.key, _PARKED_LIST.dump_json(self._sales).decode("utf-8"))
            else:
                self.store.remove(self.key)
        except OSError as exc:
            log_event(
                logger,
                "parked_sales",
                action,
                "write_failed",
                merchant_id=self.merchant_id,
                level=logging.WARNING,
                error=str(exc),
            )
