"""
Generic REST supplier adapter.

Used for suppliers that expose a plain JSON API ("custom" and "amazon"
types). Endpoint paths are configurable per supplier. Response shapes vary,
so lists and fields are probed across common envelope keys, taking the
first one that is present (a present-but-empty list wins over later keys).
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from ..errors import SupplierAPIError
from .credentials import CustomApiCredentials
from .http import build_client, decode_json, first_present, send
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
    TrackingEvent,
    TrackingInfo,
    TrackingStatus,
    to_float,
    to_int,
)

logger = logging.getLogger(__name__)

ORDER_STATUS_MAP = {s.value: s for s in OrderStatus}
ORDER_STATUS_MAP["completed"] = OrderStatus.DELIVERED
TRACKING_STATUS_MAP = {s.value: s for s in TrackingStatus}


def unwrap_list(payload: Any, *keys: str) -> List[Any]:
    """Find the item list in a bare-array or enveloped response."""
    if isinstance(payload, list):
        return payload
    found = first_present(payload, *keys, default=[])
    return found if isinstance(found, list) else []


def unwrap_object(payload: Any, *keys: str) -> Dict[str, Any]:
    found = first_present(payload, *keys)
    if isinstance(found, dict):
        return found
    return payload if isinstance(payload, dict) else {}


@adapter_registry.register("custom", "amazon")
class CustomApiAdapter:
    """Best-effort adapter for arbitrary supplier REST APIs."""

    def __init__(self, credentials: CustomApiCredentials, options: Optional[AdapterOptions] = None):
        options = options or AdapterOptions()
        self.credentials = credentials
        self.type = credentials.type
        self.endpoints = credentials.endpoints

        headers: Dict[str, str] = {"Content-Type": "application/json", **credentials.headers}
        if credentials.api_key:
            headers["X-API-Key"] = credentials.api_key
        if credentials.api_token:
            headers["Authorization"] = f"Bearer {credentials.api_token}"

        self._client = build_client(
            base_url=credentials.base_url.rstrip("/"),
            headers=headers,
            timeout=options.timeout,
            transport=options.transport,
        )

    async def __aenter__(self) -> "CustomApiAdapter":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await send(self._client, method, path, self.type, **kwargs)
        return decode_json(response, self.type)

    async def _get_or_none(self, path: str) -> Any:
        try:
            return await self._request("GET", path)
        except SupplierAPIError as e:
            if e.is_not_found:
                return None
            raise

    async def test_connection(self) -> ConnectionTestResult:
        try:
            payload = await self._request("GET", self.endpoints.products, params={"limit": 1})
        except Exception as e:
            logger.warning(f"Custom API connection test failed for {self.credentials.base_url}: {e}")
            return ConnectionTestResult(
                success=False, message=str(e) or "Failed to connect to Custom API"
            )

        if isinstance(payload, list):
            count = len(payload)
        else:
            count = to_int(first_present(payload, "total", "count"), default=-1)
        return ConnectionTestResult(
            success=True,
            message="Connected to Custom API successfully",
            products_count=count,
            capabilities=SupplierCapabilities(),
        )

    async def fetch_products(
        self, page: int = 1, page_size: int = 50, cursor: Optional[str] = None
    ) -> PaginatedResult[NormalizedProduct]:
        params: Dict[str, Any] = {
            "limit": page_size,
            "offset": (page - 1) * page_size,
            "page": page,
        }
        if cursor:
            params["cursor"] = cursor
        payload = await self._request("GET", self.endpoints.products, params=params)

        rows = unwrap_list(payload, "products", "data", "items", "response")
        products = []
        for row in rows:
            product = self._normalize_product(row)
            if product is not None:
                products.append(product)

        total = -1
        next_cursor = None
        if isinstance(payload, dict):
            total = to_int(first_present(payload, "total", "count"), default=-1)
            next_cursor = first_present(payload, "next_cursor", "nextCursor")

        if next_cursor:
            has_more = True
        elif total >= 0:
            has_more = page * page_size < total
        else:
            has_more = len(rows) == page_size

        return PaginatedResult(
            items=products,
            total=total,
            page=page,
            page_size=page_size,
            has_more=has_more,
            next_cursor=str(next_cursor) if next_cursor else None,
        )

    async def fetch_product(self, supplier_product_id: str) -> Optional[NormalizedProduct]:
        payload = await self._get_or_none(f"{self.endpoints.products}/{supplier_product_id}")
        if not payload:
            return None
        return self._normalize_product(unwrap_object(payload, "product", "data", "response"))

    async def fetch_inventory(
        self, supplier_product_ids: Optional[List[str]] = None
    ) -> List[NormalizedInventory]:
        params = {"product_ids": ",".join(supplier_product_ids)} if supplier_product_ids else None
        payload = await self._request("GET", self.endpoints.inventory, params=params)

        inventory = []
        for item in unwrap_list(payload, "inventory", "data", "items", "response"):
            product_id = first_present(item, "product_id", "productId", "id")
            if product_id is None:
                continue
            quantity = to_int(first_present(item, "quantity", "stock", "available", default=0))
            inventory.append(
                NormalizedInventory(
                    supplier_product_id=str(product_id),
                    variant_id=str(first_present(item, "variant_id", "variantId", "id", default=product_id)),
                    sku=str(first_present(item, "sku", default="")),
                    quantity=quantity,
                )
            )
        return inventory

    async def create_order(self, order: OrderCreateRequest) -> OrderCreateResponse:
        body = {
            "items": [
                {
                    "product_id": item.supplier_product_id,
                    "variant_id": item.variant_id,
                    "sku": item.sku,
                    "quantity": item.quantity,
                    "price": item.price,
                }
                for item in order.items
            ],
            "shipping_address": asdict(order.shipping_address),
            "note": order.note,
        }
        payload = await self._request("POST", self.endpoints.orders, json=body)
        data = unwrap_object(payload, "order", "data", "response")
        order_id = first_present(data, "id", "order_id", "orderId")
        if order_id is None:
            raise SupplierAPIError("Custom API order response carried no order id", supplier=self.type)

        return OrderCreateResponse(
            supplier_order_id=str(order_id),
            status=str(first_present(data, "status", default="submitted")),
            total_cost=to_float(first_present(data, "total", "total_cost", "totalCost")),
            message=first_present(data, "message"),
            raw_response=payload,
        )

    async def get_order(self, supplier_order_id: str) -> Optional[NormalizedOrder]:
        payload = await self._get_or_none(f"{self.endpoints.orders}/{supplier_order_id}")
        if not payload:
            return None

        data = unwrap_object(payload, "order", "data", "response")
        items = first_present(data, "items", "line_items", "lineItems", default=[])
        return NormalizedOrder(
            supplier_order_id=str(first_present(data, "id", "order_id", default=supplier_order_id)),
            status=ORDER_STATUS_MAP.get(str(data.get("status") or "").lower(), OrderStatus.PENDING),
            items=[
                NormalizedOrderItem(
                    supplier_product_id=str(first_present(item, "product_id", "productId", default="")),
                    variant_id=str(
                        first_present(item, "variant_id", "variantId", "product_id", default="")
                    ),
                    quantity=to_int(item.get("quantity")),
                    price=to_float(first_present(item, "price", "unit_price")),
                    fulfillment_status=first_present(item, "fulfillment_status", "fulfillmentStatus"),
                )
                for item in items
            ],
            total_cost=to_float(first_present(data, "total", "total_cost", "totalCost")),
            created_at=str(first_present(data, "created_at", "createdAt", default="")),
            updated_at=first_present(data, "updated_at", "updatedAt"),
        )

    async def get_tracking(self, supplier_order_id: str) -> Optional[TrackingInfo]:
        payload = await self._get_or_none(f"{self.endpoints.tracking}/{supplier_order_id}")
        if not payload:
            return None

        data = unwrap_object(payload, "tracking", "data", "response")
        number = first_present(data, "tracking_number", "trackingNumber")
        if not number:
            return None

        return TrackingInfo(
            tracking_number=str(number),
            carrier=str(first_present(data, "carrier", "shipping_carrier", default="")),
            status=TRACKING_STATUS_MAP.get(
                str(data.get("status") or "").lower(), TrackingStatus.PENDING
            ),
            tracking_url=first_present(data, "tracking_url", "trackingUrl"),
            estimated_delivery=first_present(data, "estimated_delivery", "estimatedDelivery"),
            last_update=first_present(data, "updated_at", "updatedAt"),
            events=[
                TrackingEvent(
                    date=str(first_present(event, "date", "timestamp", default="")),
                    status=str(event.get("status", "")),
                    location=event.get("location"),
                    description=event.get("description"),
                )
                for event in data.get("events") or []
                if isinstance(event, dict)
            ],
        )

    def _normalize_product(self, row: Dict[str, Any]) -> Optional[NormalizedProduct]:
        product_id = first_present(row, "id", "product_id", "productId")
        if product_id is None:
            logger.debug(f"Custom API product without id skipped: {str(row)[:200]}")
            return None

        title = str(first_present(row, "title", "name", default=""))
        raw_variants = row.get("variants")
        if not raw_variants:
            raw_variants = [
                {
                    "id": product_id,
                    "sku": row.get("sku"),
                    "price": row.get("price"),
                    "cost": row.get("cost"),
                    "quantity": first_present(row, "quantity", "stock"),
                }
            ]

        variants = [
            ProductVariant(
                id=str(first_present(v, "id", default=product_id)),
                sku=str(first_present(v, "sku", default="")),
                title=str(first_present(v, "title", "name", default="Default")),
                price=to_float(v.get("price")),
                compare_at_price=to_float(
                    first_present(v, "compare_at_price", "compareAtPrice"), default=0.0
                )
                or None,
                cost=to_float(v.get("cost")),
                inventory_quantity=to_int(
                    first_present(v, "quantity", "stock", "inventory_quantity", default=0)
                ),
            )
            for v in raw_variants
        ]

        images = []
        for position, img in enumerate(row.get("images") or [], start=1):
            if isinstance(img, str):
                images.append(ProductImage(url=img, alt=title, position=position))
            elif isinstance(img, dict):
                images.append(
                    ProductImage(
                        url=str(first_present(img, "url", "src", default="")),
                        alt=img.get("alt") or title,
                        position=position,
                    )
                )

        return NormalizedProduct(
            supplier_product_id=str(product_id),
            title=title,
            description=str(row.get("description") or ""),
            category=row.get("category") or "Uncategorized",
            tags=[str(t) for t in row.get("tags") or []],
            images=images,
            variants=variants,
            supplier_sku=str(first_present(row, "sku", default=variants[0].sku)),
            supplier_price=to_float(row.get("price"), default=variants[0].price),
        )


__all__ = ["CustomApiAdapter", "unwrap_list", "unwrap_object"]
