"""
Supplier adapters.

Components:
- types: normalized product/inventory/order contracts and the SupplierAdapter protocol
- credentials: per-type credential models (discriminated union)
- registry: supplier type -> adapter class, and the factory
- gigab2b, shopify, woocommerce, custom_api: one adapter per upstream API family

Importing this package registers every built-in adapter.
"""

from .registry import AdapterOptions, AdapterRegistry, adapter_registry, create_supplier_adapter
from .credentials import (
    SupplierCredentials,
    get_required_credential_fields,
    has_credentials,
    parse_credentials,
    validate_credentials,
)
from .types import (
    ConnectionTestResult,
    NormalizedInventory,
    NormalizedOrder,
    NormalizedProduct,
    OrderCreateRequest,
    OrderCreateResponse,
    PaginatedResult,
    SupplierAdapter,
    SupplierType,
    TrackingInfo,
)
from .gigab2b import GigaB2BAdapter
from .shopify import ShopifyAdapter
from .woocommerce import WooCommerceAdapter
from .custom_api import CustomApiAdapter

__all__ = [
    # Registry
    "AdapterOptions",
    "AdapterRegistry",
    "adapter_registry",
    "create_supplier_adapter",
    # Credentials
    "SupplierCredentials",
    "get_required_credential_fields",
    "has_credentials",
    "parse_credentials",
    "validate_credentials",
    # Contracts
    "ConnectionTestResult",
    "NormalizedInventory",
    "NormalizedOrder",
    "NormalizedProduct",
    "OrderCreateRequest",
    "OrderCreateResponse",
    "PaginatedResult",
    "SupplierAdapter",
    "SupplierType",
    "TrackingInfo",
    # Adapters
    "GigaB2BAdapter",
    "ShopifyAdapter",
    "WooCommerceAdapter",
    "CustomApiAdapter",
]
