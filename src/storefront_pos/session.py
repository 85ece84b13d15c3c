from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Callable, Iterable, Mapping

from .cart import CartEngine, CartTotals
from .checkout import SaleOutcome, SaleService, build_sale_input
from .clients.pos_sales_client import PosSalesClient
from .config import ClientConfig
from .exceptions import ApiError
from .http_client import HttpClient
from .inventory import (
    AddCheck,
    ScanOutcome,
    ScanResult,
    add_check,
    clamp_quantity,
    custom_line,
    line_for_variant,
    match_barcode,
)
from .kv_store import KeyValueStore, store_from_config
from .models_cart import ParkedSale, RegisterState
from .models_catalog import CatalogProduct, CatalogVariant
from .models_orders import PosSaleOrder
from .observability import get_logger, log_event
from .parked_sales import ParkedSaleStore
from .refunds import RefundRequestResult, build_refund_request
from .register import RegisterReport, RegisterSessionStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class RefundAttempt:
    validation: RefundRequestResult
    outcome: SaleOutcome | None = None


class PosSession:
    """Everything one register needs for one merchant.

    Owns the live cart, the parked-sale list and the register session. The
    sales client is optional so the cart can be driven offline; network
    operations report a failed ``SaleOutcome`` when it is missing.
    """

    def __init__(
        self,
        merchant_id: str,
        *,
        store: KeyValueStore | None = None,
        config: ClientConfig | None = None,
        sales_client: PosSalesClient | None = None,
        clock: Callable[[], datetime] | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.merchant_id = merchant_id
        self.config = config
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        store = store if store is not None else store_from_config(config)
        default_currency = config.default_currency if config else "USD"
        if sales_client is None and config is not None:
            sales_client = PosSalesClient(http=HttpClient(config=config))
        self.cart = CartEngine(default_currency=default_currency, merchant_id=merchant_id)
        self.parked = ParkedSaleStore(merchant_id, store, clock=self.clock)
        self.register = RegisterSessionStore(merchant_id, store, clock=self.clock, tz=tz)
        self.sales = SaleService(sales_client, merchant_id) if sales_client is not None else None
        self.last_order: PosSaleOrder | None = None

    @property
    def totals(self) -> CartTotals:
        return self.cart.totals

    # Cart

    def add_variant(self, product: CatalogProduct, variant: CatalogVariant, quantity: int = 1) -> AddCheck:
        if quantity < 1:
            return AddCheck(ok=False, reason="Quantity must be at least 1")
        check = add_check(self.cart.state, product, variant, quantity)
        if not check.ok or self.cart.add_item(line_for_variant(product, variant, quantity)):
            return check
        # The line in the cart keeps the ceiling it was added with.
        existing = self.cart.state.find_line(variant.id)
        ceiling = existing.max_quantity if existing else check.available
        return AddCheck(ok=False, reason=f"Only {ceiling} available for {product.name}", available=ceiling)

    def add_custom_item(self, description: str, unit_price: int, quantity: int = 1, currency: str | None = None) -> bool:
        if not description.strip() or unit_price < 0 or quantity < 1:
            return False
        return self.cart.add_item(custom_line(description.strip(), unit_price, currency or self.totals.currency, quantity))

    def scan(self, products: Iterable[CatalogProduct], code: str) -> ScanResult:
        catalog = list(products)
        first = match_barcode(catalog, code)
        if first.variant is None:
            return first
        existing = self.cart.state.find_line(first.variant.id)
        result = match_barcode(catalog, code, quantity_in_cart=existing.quantity if existing else 0)
        if result.outcome == ScanOutcome.MATCHED and result.product and result.variant:
            if not self.cart.add_item(line_for_variant(result.product, result.variant)):
                return ScanResult(ScanOutcome.OUT_OF_STOCK, code, result.product, result.variant)
        return result

    def set_line_quantity(self, variant_id: str, quantity: int) -> int | None:
        """Clamp to the line's ceiling, then update. Returns the quantity now held."""
        line = self.cart.state.find_line(variant_id)
        if line is None:
            return None
        self.cart.update_quantity(variant_id, clamp_quantity(quantity, line.max_quantity))
        updated = self.cart.state.find_line(variant_id)
        return updated.quantity if updated else 0

    # Parked sales

    def park(self, label: str | None = None) -> ParkedSale | None:
        if self.cart.is_empty:
            return None
        parked = self.parked.park(self.cart.state, label)
        self.cart.clear()
        return parked

    def resume(self, parked_id: str) -> bool:
        snapshot = self.parked.restore(parked_id)
        if snapshot is None:
            return False
        self.cart.restore(snapshot)
        return True

    def discard_parked(self, parked_id: str) -> bool:
        return self.parked.discard(parked_id)

    # Sales

    def complete_sale(self) -> SaleOutcome:
        if self.cart.is_empty:
            return SaleOutcome(ok=False, message="At least one line item is required")
        if self.sales is None:
            return SaleOutcome(ok=False, message="Sales service is not configured")
        request = build_sale_input(self.cart.state, self.merchant_id, self.cart.default_currency)
        outcome = self.sales.submit(request)
        if outcome.ok:
            self.last_order = outcome.order
        return outcome

    def new_sale(self) -> None:
        self.cart.clear()
        self.last_order = None

    def void_sale(self, order_id: str, reason: str | None = None) -> SaleOutcome:
        if self.sales is None:
            return SaleOutcome(ok=False, message="Sales service is not configured")
        return self.sales.void(order_id, reason)

    def refund_sale(
        self,
        sale: PosSaleOrder,
        requested: Mapping[str, int],
        reason: str | None = None,
    ) -> RefundAttempt:
        validation = build_refund_request(sale, requested, reason)
        if not validation.ok or validation.request is None:
            return RefundAttempt(validation=validation)
        if self.sales is None:
            return RefundAttempt(
                validation=validation,
                outcome=SaleOutcome(ok=False, message="Sales service is not configured"),
            )
        return RefundAttempt(validation=validation, outcome=self.sales.refund(validation.request))

    # Register

    def open_register(self, opening_float: int, currency: str | None = None) -> RegisterState | None:
        return self.register.open(opening_float, currency or self.totals.currency)

    def close_register(self) -> None:
        self.register.close()

    def register_report(self, sales: Iterable[PosSaleOrder] | None = None) -> RegisterReport | None:
        """Reconcile against ``sales``, or fetch the recent-sales feed when omitted.

        Returns None when the feed cannot be fetched.
        """
        if sales is None:
            if self.sales is None:
                return None
            try:
                sales = self.sales.recent_sales()
            except ApiError as exc:
                log_event(
                    logger,
                    "register",
                    "report",
                    "error",
                    merchant_id=self.merchant_id,
                    trace_id=exc.trace_id,
                    level=logging.WARNING,
                    code=exc.code,
                )
                return None
        return self.register.report(sales)
