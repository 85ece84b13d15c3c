from .cart import CartEngine, CartTotals, cart_totals, reduce_cart
from .checkout import SaleOutcome, SaleService, build_sale_input
from .config import ClientConfig, ConfigError, load_config
from .discounts import compute_discount, validate_discount
from .exceptions import ApiError, EmptyCartError, InvalidAmount, PosError, TransportError
from .http_client import HttpClient
from .inventory import UNLIMITED, ScanOutcome, ScanResult, add_check, match_barcode
from .kv_store import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .models_cart import (
    EMPTY_CART,
    CartLine,
    CartState,
    CatalogRef,
    DiscountKind,
    FixedDiscount,
    Money,
    ParkedSale,
    PaymentMethod,
    PercentageDiscount,
    RegisterState,
)
from .models_catalog import CatalogProduct, CatalogVariant, InventoryRecord
from .models_orders import PosSaleOrder
from .money import capped_subtract, format_money, percent_of, proportional_split
from .parked_sales import ParkedSaleStore
from .refunds import build_refund_request, compute_refund_total
from .register import RegisterReport, RegisterSessionStore, VarianceStatus, reconcile
from .session import PosSession

__all__ = [
    "ApiError",
    "CartEngine",
    "CartLine",
    "CartState",
    "CartTotals",
    "CatalogProduct",
    "CatalogRef",
    "CatalogVariant",
    "ClientConfig",
    "ConfigError",
    "DiscountKind",
    "EMPTY_CART",
    "EmptyCartError",
    "FileKeyValueStore",
    "FixedDiscount",
    "HttpClient",
    "InvalidAmount",
    "InventoryRecord",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "Money",
    "ParkedSale",
    "ParkedSaleStore",
    "PaymentMethod",
    "PercentageDiscount",
    "PosError",
    "PosSaleOrder",
    "PosSession",
    "RegisterReport",
    "RegisterSessionStore",
    "RegisterState",
    "SaleOutcome",
    "SaleService",
    "ScanOutcome",
    "ScanResult",
    "TransportError",
    "UNLIMITED",
    "VarianceStatus",
    "add_check",
    "build_refund_request",
    "build_sale_input",
    "capped_subtract",
    "cart_totals",
    "compute_discount",
    "compute_refund_total",
    "format_money",
    "load_config",
    "match_barcode",
    "percent_of",
    "proportional_split",
    "reconcile",
    "reduce_cart",
    "validate_discount",
]
