"""Normalized data contracts shared by all supplier adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")

# Untracked upstream inventory means "unlimited"; reported as this quantity.
UNTRACKED_INVENTORY_QUANTITY = 999


class SupplierType(str, Enum):
    """Upstream API families."""

    GIGAB2B = "gigab2b"  # HMAC-signed REST
    SHOPIFY = "shopify"  # GraphQL with cursor pagination
    WOOCOMMERCE = "woocommerce"  # Basic-auth REST
    CUSTOM = "custom"  # Generic REST
    AMAZON = "amazon"  # Generic REST with Amazon-ish endpoints


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class TrackingStatus(str, Enum):
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    EXCEPTION = "exception"


@dataclass
class ProductImage:
    url: str
    alt: Optional[str] = None
    position: Optional[int] = None


@dataclass
class ProductVariant:
    id: str
    sku: str
    title: str
    price: float
    cost: float = 0.0
    inventory_quantity: int = 0
    barcode: Optional[str] = None
    compare_at_price: Optional[float] = None
    weight: Optional[float] = None
    weight_unit: Optional[str] = None
    options: Dict[str, str] = field(default_factory=dict)


@dataclass
class NormalizedProduct:
    """Supplier-agnostic product.

    supplier_product_id is unique within a supplier and stable across syncs.
    """

    supplier_product_id: str
    title: str
    variants: List[ProductVariant]
    description: str = ""
    category: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    images: List[ProductImage] = field(default_factory=list)
    supplier_sku: str = ""
    supplier_price: float = 0.0

    def __post_init__(self):
        if not self.variants:
            raise ValueError(f"Product {self.supplier_product_id} has no variants")

    @property
    def total_inventory(self) -> int:
        return sum(v.inventory_quantity for v in self.variants)


@dataclass
class NormalizedInventory:
    supplier_product_id: str
    variant_id: str
    sku: str
    quantity: int
    available: Optional[bool] = None

    def __post_init__(self):
        self.quantity = max(int(self.quantity or 0), 0)
        if self.available is None:
            self.available = self.quantity > 0


@dataclass
class ShippingAddress:
    first_name: str
    last_name: str
    address1: str
    city: str
    country: str
    zip: str
    address2: Optional[str] = None
    province: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass
class OrderItem:
    supplier_product_id: str
    variant_id: str
    sku: str
    quantity: int
    price: float


@dataclass
class OrderCreateRequest:
    items: List[OrderItem]
    shipping_address: ShippingAddress
    note: Optional[str] = None


@dataclass
class OrderCreateResponse:
    supplier_order_id: str
    status: str
    total_cost: float
    message: Optional[str] = None
    raw_response: Any = None


@dataclass
class NormalizedOrderItem:
    supplier_product_id: str
    variant_id: str
    quantity: int
    price: float
    fulfillment_status: Optional[str] = None


@dataclass
class NormalizedOrder:
    supplier_order_id: str
    status: OrderStatus
    items: List[NormalizedOrderItem]
    total_cost: float
    created_at: str
    updated_at: Optional[str] = None


@dataclass
class TrackingEvent:
    date: str
    status: str
    location: Optional[str] = None
    description: Optional[str] = None


@dataclass
class TrackingInfo:
    tracking_number: str
    carrier: str
    status: TrackingStatus
    tracking_url: Optional[str] = None
    estimated_delivery: Optional[str] = None
    last_update: Optional[str] = None
    events: List[TrackingEvent] = field(default_factory=list)

    def __post_init__(self):
        # ISO-8601 strings sort chronologically
        self.events = sorted(self.events, key=lambda e: e.date or "")


@dataclass
class SupplierCapabilities:
    read_products: bool = True
    read_inventory: bool = True
    create_orders: bool = True
    read_orders: bool = True
    get_tracking: bool = True


@dataclass
class ConnectionTestResult:
    success: bool
    message: str
    products_count: Optional[int] = None
    api_version: Optional[str] = None
    store_name: Optional[str] = None
    capabilities: Optional[SupplierCapabilities] = None


@dataclass
class PaginatedResult(Generic[T]):
    items: List[T]
    total: int = -1  # -1 when the upstream does not report a total
    page: int = 1
    page_size: int = 50
    has_more: bool = False
    next_cursor: Optional[str] = None


@runtime_checkable
class SupplierAdapter(Protocol):
    """Contract every supplier adapter implements.

    fetch_product, get_order and get_tracking return None for a not-found
    condition and raise SupplierAPIError for anything else. test_connection
    never raises.
    """

    type: str

    async def test_connection(self) -> ConnectionTestResult: ...

    async def fetch_products(
        self, page: int = 1, page_size: int = 50, cursor: Optional[str] = None
    ) -> PaginatedResult[NormalizedProduct]: ...

    async def fetch_product(self, supplier_product_id: str) -> Optional[NormalizedProduct]: ...

    async def fetch_inventory(
        self, supplier_product_ids: Optional[List[str]] = None
    ) -> List[NormalizedInventory]: ...

    async def create_order(self, order: OrderCreateRequest) -> OrderCreateResponse: ...

    async def get_order(self, supplier_order_id: str) -> Optional[NormalizedOrder]: ...

    async def get_tracking(self, supplier_order_id: str) -> Optional[TrackingInfo]: ...

    async def aclose(self) -> None: ...


def to_float(value: Any, default: float = 0.0) -> float:
    """Parse a price-like value, tolerating strings, None and garbage."""
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default
