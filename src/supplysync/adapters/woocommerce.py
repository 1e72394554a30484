"""WooCommerce supplier adapter (REST v3, Basic auth)."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from ..errors import SupplierAPIError
from .credentials import WooCommerceCredentials
from .http import build_client, decode_json, send
from .registry import AdapterOptions, adapter_registry
from .types import (
    ConnectionTestResult,
    NormalizedInventory,
    NormalizedOrder,
    NormalizedOrderItem,
    NormalizedProduct,
    OrderCreateRequest,
    OrderCreateResponse,
    OrderStatus,
    PaginatedResult,
    ProductImage,
    ProductVariant,
    SupplierCapabilities,
    TrackingInfo,
    TrackingStatus,
    to_float,
    to_int,
)

logger = logging.getLogger(__name__)

API_PATH = "/wp-json/wc/v3"
MAX_PER_PAGE = 100

TRACKING_NUMBER_RE = re.compile(r"tracking[:\s]+([A-Z0-9]+)", re.IGNORECASE)

ORDER_STATUS_MAP = {
    "pending": OrderStatus.PENDING,
    "processing": OrderStatus.PROCESSING,
    "on-hold": OrderStatus.CONFIRMED,
    "completed": OrderStatus.DELIVERED,
    "cancelled": OrderStatus.CANCELLED,
    "refunded": OrderStatus.CANCELLED,
    "failed": OrderStatus.CANCELLED,
}


def _stock_available(item: Dict[str, Any]) -> Optional[bool]:
    """Availability as reported by the store, or None to derive from quantity."""
    if item.get("stock_status") is not None:
        return item["stock_status"] == "instock"
    if item.get("in_stock") is not None:
        return bool(item["in_stock"])
    return None


@adapter_registry.register("woocommerce")
class WooCommerceAdapter:
    """Adapter for a WooCommerce store acting as a supplier."""

    type = "woocommerce"

    def __init__(self, credentials: WooCommerceCredentials, options: Optional[AdapterOptions] = None):
        options = options or AdapterOptions()
        self.credentials = credentials
        self._client = build_client(
            base_url=credentials.store_url.rstrip("/") + API_PATH,
            headers={"Content-Type": "application/json"},
            timeout=options.timeout,
            transport=options.transport,
            auth=httpx.BasicAuth(credentials.consumer_key, credentials.consumer_secret),
        )

    async def __aenter__(self) -> "WooCommerceAdapter":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, **params: Any) -> httpx.Response:
        return await send(self._client, "GET", path, self.type, params=params or None)

    async def _get_json(self, path: str, **params: Any) -> Any:
        return decode_json(await self._get(path, **params), self.type)

    async def test_connection(self) -> ConnectionTestResult:
        try:
            response = await self._get("/products", per_page=1)
        except Exception as e:
            logger.warning(f"WooCommerce connection test failed: {e}")
            return ConnectionTestResult(
                success=False, message=str(e) or "Failed to connect to WooCommerce"
            )

        total = response.headers.get("X-WP-Total")
        return ConnectionTestResult(
            success=True,
            message="Connected to WooCommerce successfully",
            products_count=to_int(total, default=-1) if total is not None else -1,
            api_version="wc/v3",
            capabilities=SupplierCapabilities(),
        )

    async def fetch_products(
        self, page: int = 1, page_size: int = 50, cursor: Optional[str] = None
    ) -> PaginatedResult[NormalizedProduct]:
        per_page = max(1, min(page_size, MAX_PER_PAGE))
        response = await self._get("/products", page=page, per_page=per_page)
        rows = decode_json(response, self.type) or []

        products = []
        for row in rows:
            product = await self._build_product(row)
            if product is not None:
                products.append(product)

        total_header = response.headers.get("X-WP-Total")
        pages_header = response.headers.get("X-WP-TotalPages")
        if pages_header is not None:
            has_more = page < to_int(pages_header)
        else:
            has_more = len(rows) == per_page

        return PaginatedResult(
            items=products,
            total=to_int(total_header, default=-1) if total_header is not None else -1,
            page=page,
            page_size=per_page,
            has_more=has_more,
        )

    async def fetch_product(self, supplier_product_id: str) -> Optional[NormalizedProduct]:
        try:
            row = await self._get_json(f"/products/{supplier_product_id}")
        except SupplierAPIError as e:
            if e.is_not_found:
                return None
            raise
        if not row:
            return None
        return await self._build_product(row)

    async def fetch_inventory(
        self, supplier_product_ids: Optional[List[str]] = None
    ) -> List[NormalizedInventory]:
        if supplier_product_ids:
            rows = []
            for product_id in supplier_product_ids:
                try:
                    rows.append(await self._get_json(f"/products/{product_id}"))
                except SupplierAPIError as e:
                    if not e.is_not_found:
                        raise
                    logger.debug(f"WooCommerce product {product_id} no longer exists")
        else:
            rows = await self._all_products()

        inventory: List[NormalizedInventory] = []
        for row in rows:
            product_id = str(row.get("id"))
            if row.get("type") == "variable" and row.get("variations"):
                for variation in await self._variations(product_id):
                    inventory.append(
                        NormalizedInventory(
                            supplier_product_id=product_id,
                            variant_id=str(variation.get("id")),
                            sku=variation.get("sku") or "",
                            quantity=to_int(variation.get("stock_quantity")),
                            available=_stock_available(variation),
                        )
                    )
            else:
                inventory.append(
                    NormalizedInventory(
                        supplier_product_id=product_id,
                        variant_id=product_id,
                        sku=row.get("sku") or "",
                        quantity=to_int(row.get("stock_quantity")),
                        available=_stock_available(row),
                    )
                )
        return inventory

    async def _all_products(self) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        page = 1
        while True:
            response = await self._get("/products", page=page, per_page=MAX_PER_PAGE)
            batch = decode_json(response, self.type) or []
            rows.extend(batch)
            pages_header = response.headers.get("X-WP-TotalPages")
            done = page >= to_int(pages_header) if pages_header is not None else len(batch) < MAX_PER_PAGE
            if not batch or done:
                return rows
            page += 1

    async def _variations(self, product_id: str) -> List[Dict[str, Any]]:
        return await self._get_json(f"/products/{product_id}/variations", per_page=MAX_PER_PAGE) or []

    async def create_order(self, order: OrderCreateRequest) -> OrderCreateResponse:
        address = order.shipping_address
        shipping = {
            "first_name": address.first_name,
            "last_name": address.last_name,
            "address_1": address.address1,
            "address_2": address.address2 or "",
            "city": address.city,
            "state": address.province or "",
            "postcode": address.zip,
            "country": address.country,
        }
        line_items = []
        for item in order.items:
            line: Dict[str, Any] = {"product_id": to_int(item.supplier_product_id), "quantity": item.quantity}
            if item.variant_id and item.variant_id != item.supplier_product_id:
                line["variation_id"] = to_int(item.variant_id)
            line_items.append(line)

        body = {
            "payment_method": "manual",
            "payment_method_title": "B2B Payment",
            "set_paid": False,
            "billing": {**shipping, "phone": address.phone or "", "email": address.email or ""},
            "shipping": shipping,
            "line_items": line_items,
            "customer_note": order.note or "",
        }
        response = await send(self._client, "POST", "/orders", self.type, json=body)
        data = decode_json(response, self.type) or {}
        return OrderCreateResponse(
            supplier_order_id=str(data.get("id", "")),
            status=str(data.get("status") or OrderStatus.PENDING.value),
            total_cost=to_float(data.get("total")),
            raw_response=data,
        )

    async def get_order(self, supplier_order_id: str) -> Optional[NormalizedOrder]:
        try:
            data = await self._get_json(f"/orders/{supplier_order_id}")
        except SupplierAPIError as e:
            if e.is_not_found:
                return None
            raise
        if not data:
            return None

        return NormalizedOrder(
            supplier_order_id=str(data.get("id")),
            status=ORDER_STATUS_MAP.get(data.get("status") or "", OrderStatus.PENDING),
            items=[
                NormalizedOrderItem(
                    supplier_product_id=str(item.get("product_id")),
                    variant_id=str(item.get("variation_id") or item.get("product_id")),
                    quantity=to_int(item.get("quantity")),
                    price=to_float(item.get("price")),
                )
                for item in data.get("line_items") or []
            ],
            total_cost=to_float(data.get("total")),
            created_at=data.get("date_created") or "",
            updated_at=data.get("date_modified"),
        )

    async def get_tracking(self, supplier_order_id: str) -> Optional[TrackingInfo]:
        try:
            notes = await self._get_json(f"/orders/{supplier_order_id}/notes") or []
        except SupplierAPIError as e:
            if e.is_not_found:
                return None
            raise

        for note in notes:
            match = TRACKING_NUMBER_RE.search(note.get("note") or "")
            if match:
                return TrackingInfo(
                    tracking_number=match.group(1),
                    carrier="Unknown",
                    status=TrackingStatus.IN_TRANSIT,
                    last_update=note.get("date_created"),
                )
        return None

    async def _build_product(self, row: Dict[str, Any]) -> Optional[NormalizedProduct]:
        """Normalize a product row, expanding variable products into variants."""
        product_id = str(row.get("id"))
        title = row.get("name") or ""

        if row.get("type") == "variable":
            variations = await self._variations(product_id) if row.get("variations") else []
            variants = [
                ProductVariant(
                    id=str(v.get("id")),
                    sku=v.get("sku") or "",
                    title=" / ".join(
                        str(a.get("option")) for a in v.get("attributes") or [] if a.get("option")
                    )
                    or "Default",
                    price=to_float(v.get("price")),
                    compare_at_price=self._compare_at(v),
                    inventory_quantity=to_int(v.get("stock_quantity")),
                    weight=to_float(v.get("weight"), default=0.0) or None,
                    options={
                        str(a.get("name")): str(a.get("option"))
                        for a in v.get("attributes") or []
                        if a.get("name")
                    },
                )
                for v in variations
            ]
        else:
            variants = [
                ProductVariant(
                    id=product_id,
                    sku=row.get("sku") or "",
                    title="Default",
                    price=to_float(row.get("price")),
                    compare_at_price=self._compare_at(row),
                    inventory_quantity=to_int(row.get("stock_quantity")),
                    weight=to_float(row.get("weight"), default=0.0) or None,
                )
            ]

        if not variants:
            logger.debug(f"WooCommerce product {product_id} has no purchasable variations")
            return None

        categories = row.get("categories") or []
        return NormalizedProduct(
            supplier_product_id=product_id,
            title=title,
            description=row.get("description") or row.get("short_description") or "",
            category=categories[0].get("name") if categories else "Uncategorized",
            tags=[t.get("name") for t in row.get("tags") or [] if t.get("name")],
            images=[
                ProductImage(url=img.get("src", ""), alt=img.get("alt") or title, position=i)
                for i, img in enumerate(row.get("images") or [], start=1)
            ],
            variants=variants,
            supplier_sku=row.get("sku") or variants[0].sku,
            supplier_price=to_float(row.get("price")) or variants[0].price,
        )

    @staticmethod
    def _compare_at(item: Dict[str, Any]) -> Optional[float]:
        regular = to_float(item.get("regular_price"), default=0.0)
        if regular and regular != to_float(item.get("price")):
            return regular
        return None


__all__ = ["WooCommerceAdapter", "ORDER_STATUS_MAP"]
