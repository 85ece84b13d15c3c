from .base import BaseClient
from .catalog_client import CatalogClient
from .pos_sales_client import PosSalesClient

__all__ = ["BaseClient", "CatalogClient", "PosSalesClient"]
