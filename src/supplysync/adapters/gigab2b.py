"""
Signed-REST supplier adapter (GigaB2B buyer API).

Every request carries four headers: client-id, timestamp (ms), nonce and
sign, where sign is the base64 of the hex HMAC-SHA256 over
``clientId&path&timestamp&nonce`` keyed by ``clientId&clientSecret&nonce``.

Product discovery is two-phase: the SKU list endpoint pages through SKU
codes, then detail and price lookups resolve them in batches. The upstream
rate-limits the lookups, so batches are capped and spaced out.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import hmac
import logging
import secrets
import string
import time
from typing import Any, Dict, Iterator, List, Optional

from ..errors import SupplierAPIError
from .credentials import GigaB2BCredentials
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

API_PREFIX = "/b2b-overseas-api/v1/buyer"
SKU_LIST_PATH = f"{API_PREFIX}/product/skus/v1"
PRODUCT_DETAIL_PATH = f"{API_PREFIX}/product/detailInfo/v1"
PRODUCT_PRICE_PATH = f"{API_PREFIX}/product/price/v1"
INVENTORY_PATH = f"{API_PREFIX}/inventory/quantity-query/v1"
ORDER_CREATE_PATH = f"{API_PREFIX}/order/create/v1"
ORDER_DETAIL_PATH = f"{API_PREFIX}/order/detail/v1"
ORDER_TRACKING_PATH = f"{API_PREFIX}/order/track-no/v1"

MAX_BATCH_SIZE = 200
MIN_BATCH_DELAY = 1.0
NONCE_LENGTH = 10
NONCE_ALPHABET = string.ascii_lowercase + string.digits

# Envelope codes the API uses for "no such sku / order"
NOT_FOUND_CODES = {"404", "NOT_FOUND", "SKU_NOT_EXIST", "ORDER_NOT_EXIST"}

_ORDER_STATUSES = {s.value: s for s in OrderStatus}
_TRACKING_STATUSES = {s.value: s for s in TrackingStatus}


def generate_nonce() -> str:
    return "".join(secrets.choice(NONCE_ALPHABET) for _ in range(NONCE_LENGTH))


def sign_request(
    client_id: str, client_secret: str, path: str, timestamp: str, nonce: str
) -> str:
    """Compute the ``sign`` header for one request."""
    message = f"{client_id}&{path}&{timestamp}&{nonce}"
    key = f"{client_id}&{client_secret}&{nonce}"
    hex_digest = hmac.new(key.encode(), message.encode(), hashlib.sha256).hexdigest()
    return base64.b64encode(hex_digest.encode()).decode()


def _chunks(items: List[str], size: int) -> Iterator[List[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


@adapter_registry.register("gigab2b")
class GigaB2BAdapter:
    """Adapter for the HMAC-signed GigaB2B buyer API."""

    type = "gigab2b"

    def __init__(self, credentials: GigaB2BCredentials, options: Optional[AdapterOptions] = None):
        options = options or AdapterOptions()
        self.credentials = credentials
        self.batch_size = max(1, min(options.batch_size, MAX_BATCH_SIZE))
        self.batch_delay = max(options.batch_delay, MIN_BATCH_DELAY)
        self._client = build_client(
            base_url=credentials.base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            timeout=options.timeout,
            transport=options.transport,
        )

    async def __aenter__(self) -> "GigaB2BAdapter":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _signed_headers(self, path: str) -> Dict[str, str]:
        timestamp = str(int(time.time() * 1000))
        nonce = generate_nonce()
        return {
            "client-id": self.credentials.client_id,
            "timestamp": timestamp,
            "nonce": nonce,
            "sign": sign_request(
                self.credentials.client_id,
                self.credentials.client_secret,
                path,
                timestamp,
                nonce,
            ),
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send a signed request and unwrap the response envelope.

        Raises:
            SupplierAPIError: HTTP failure or ``success: false`` envelope;
                not-found envelope codes carry status_code 404
        """
        response = await send(
            self._client,
            method,
            path,
            self.type,
            headers=self._signed_headers(path),
            params=params,
            json=body,
        )
        envelope = decode_json(response, self.type) or {}
        if envelope.get("success") is False:
            code = str(envelope.get("code", ""))
            message = envelope.get("msg") or envelope.get("message") or "request failed"
            raise SupplierAPIError(
                f"gigab2b API error: {code} - {message}",
                status_code=404 if code in NOT_FOUND_CODES else response.status_code,
                body=response.text,
                supplier=self.type,
            )
        return envelope

    async def _list_skus(self, page: int, limit: int) -> Dict[str, Any]:
        return await self._request("GET", SKU_LIST_PATH, params={"page": page, "limit": limit})

    async def _lookup(self, path: str, skus: List[str]) -> Dict[str, Dict[str, Any]]:
        envelope = await self._request("POST", path, body={"skus": skus})
        rows = envelope.get("data") or []
        return {str(row.get("sku")): row for row in rows if row.get("sku") is not None}

    # ------------------------------------------------------------------
    # Adapter contract
    # ------------------------------------------------------------------

    async def test_connection(self) -> ConnectionTestResult:
        try:
            envelope = await self._list_skus(page=1, limit=1)
        except Exception as e:
            logger.warning(f"gigab2b connection test failed: {e}")
            return ConnectionTestResult(success=False, message=str(e) or "Failed to connect to GigaB2B")

        page_meta = envelope.get("pageMeta") or {}
        return ConnectionTestResult(
            success=True,
            message="Connected to GigaB2B successfully",
            products_count=to_int(page_meta.get("total"), default=0),
            api_version="v1",
            capabilities=SupplierCapabilities(),
        )

    async def fetch_products(
        self, page: int = 1, page_size: int = 50, cursor: Optional[str] = None
    ) -> PaginatedResult[NormalizedProduct]:
        envelope = await self._list_skus(page=page, limit=page_size)
        skus = [str(row["sku"]) for row in envelope.get("data") or [] if row.get("sku")]

        products = await self._resolve_products(skus)

        page_meta = envelope.get("pageMeta")
        if page_meta:
            total = to_int(page_meta.get("total"), default=-1)
            has_more = page < to_int(page_meta.get("totalPage"), default=page)
        else:
            total = -1
            has_more = len(skus) == page_size

        return PaginatedResult(
            items=products,
            total=total,
            page=page,
            page_size=page_size,
            has_more=has_more,
        )

    async def _resolve_products(self, skus: List[str]) -> List[NormalizedProduct]:
        """Detail + price lookups for listed SKUs, batch by batch."""
        products: List[NormalizedProduct] = []
        for index, batch in enumerate(_chunks(skus, self.batch_size)):
            if index > 0:
                await asyncio.sleep(self.batch_delay)

            details = await self._lookup(PRODUCT_DETAIL_PATH, batch)
            prices = await self._lookup(PRODUCT_PRICE_PATH, batch)

            for sku in batch:
                detail = details.get(sku)
                if detail is None:
                    logger.debug(f"gigab2b: no detail for sku {sku}, skipping")
                    continue
                price = prices.get(sku, {})
                if price.get("skuAvailable") is False:
                    continue
                products.append(self._normalize_product(sku, detail, price))
        return products

    async def fetch_product(self, supplier_product_id: str) -> Optional[NormalizedProduct]:
        try:
            products = await self._resolve_products([supplier_product_id])
        except SupplierAPIError as e:
            if e.is_not_found:
                return None
            raise
        return products[0] if products else None

    async def fetch_inventory(
        self, supplier_product_ids: Optional[List[str]] = None
    ) -> List[NormalizedInventory]:
        skus = list(supplier_product_ids) if supplier_product_ids else await self._all_skus()

        inventory: List[NormalizedInventory] = []
        for index, batch in enumerate(_chunks(skus, self.batch_size)):
            if index > 0:
                await asyncio.sleep(self.batch_delay)
            rows = await self._lookup(INVENTORY_PATH, batch)
            for sku in batch:
                row = rows.get(sku)
                if row is None:
                    continue
                inventory.append(
                    NormalizedInventory(
                        supplier_product_id=sku,
                        variant_id=sku,
                        sku=sku,
                        quantity=to_int(first_present(row, "availableQuantity", "quantity")),
                    )
                )
        return inventory

    async def _all_skus(self) -> List[str]:
        skus: List[str] = []
        page = 1
        while True:
            envelope = await self._list_skus(page=page, limit=MAX_BATCH_SIZE)
            rows = envelope.get("data") or []
            skus.extend(str(row["sku"]) for row in rows if row.get("sku"))
            total_pages = to_int((envelope.get("pageMeta") or {}).get("totalPage"), default=page)
            if not rows or page >= total_pages:
                return skus
            page += 1

    async def create_order(self, order: OrderCreateRequest) -> OrderCreateResponse:
        address = order.shipping_address
        body = {
            "orderLines": [
                {"sku": item.sku or item.supplier_product_id, "qty": item.quantity, "price": item.price}
                for item in order.items
            ],
            "shipTo": {
                "name": f"{address.first_name} {address.last_name}".strip(),
                "street1": address.address1,
                "street2": address.address2,
                "city": address.city,
                "state": address.province,
                "country": address.country,
                "zipCode": address.zip,
                "phone": address.phone,
                "email": address.email,
            },
            "remark": order.note,
        }
        envelope = await self._request("POST", ORDER_CREATE_PATH, body=body)
        data = envelope.get("data") or {}
        return OrderCreateResponse(
            supplier_order_id=str(data.get("orderId", "")),
            status=str(data.get("status") or OrderStatus.PENDING.value),
            total_cost=to_float(data.get("totalAmount")),
            message=envelope.get("msg"),
            raw_response=data,
        )

    async def get_order(self, supplier_order_id: str) -> Optional[NormalizedOrder]:
        try:
            envelope = await self._request(
                "GET", ORDER_DETAIL_PATH, params={"orderId": supplier_order_id}
            )
        except SupplierAPIError as e:
            if e.is_not_found:
                return None
            raise

        data = envelope.get("data")
        if not data:
            return None
        return NormalizedOrder(
            supplier_order_id=str(data.get("orderId", supplier_order_id)),
            status=_ORDER_STATUSES.get(str(data.get("status", "")).lower(), OrderStatus.PENDING),
            items=[
                NormalizedOrderItem(
                    supplier_product_id=str(line.get("sku", "")),
                    variant_id=str(line.get("sku", "")),
                    quantity=to_int(line.get("qty")),
                    price=to_float(line.get("price")),
                    fulfillment_status=line.get("status"),
                )
                for line in data.get("orderLines") or []
            ],
            total_cost=to_float(data.get("totalAmount")),
            created_at=str(data.get("createTime", "")),
            updated_at=data.get("updateTime"),
        )

    async def get_tracking(self, supplier_order_id: str) -> Optional[TrackingInfo]:
        try:
            envelope = await self._request(
                "GET", ORDER_TRACKING_PATH, params={"orderId": supplier_order_id}
            )
        except SupplierAPIError as e:
            if e.is_not_found:
                return None
            raise

        data = envelope.get("data") or {}
        if not data.get("trackingNumber"):
            return None
        return TrackingInfo(
            tracking_number=str(data["trackingNumber"]),
            carrier=str(data.get("carrier") or "Unknown"),
            status=_TRACKING_STATUSES.get(
                str(data.get("status", "")).lower(), TrackingStatus.PENDING
            ),
            tracking_url=data.get("trackingUrl"),
            estimated_delivery=data.get("estimatedDelivery"),
            last_update=data.get("updateTime"),
            events=[
                TrackingEvent(
                    date=str(event.get("time", "")),
                    status=str(event.get("status", "")),
                    location=event.get("location"),
                    description=event.get("description"),
                )
                for event in data.get("events") or []
            ],
        )

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def _normalize_product(
        self, sku: str, detail: Dict[str, Any], price: Dict[str, Any]
    ) -> NormalizedProduct:
        title = first_present(detail, "name", "productName", default=sku)
        unit_price = to_float(first_present(price, "price", "discountedPrice"))

        image_urls = list(detail.get("imageUrls") or [])
        main_image = detail.get("mainImageUrl")
        if main_image and main_image not in image_urls:
            image_urls.insert(0, main_image)

        variant = ProductVariant(
            id=sku,
            sku=sku,
            title="Default",
            price=unit_price,
            cost=unit_price,
            inventory_quantity=to_int(first_present(detail, "availableQuantity", "quantity")),
            barcode=detail.get("upc"),
            weight=to_float(detail.get("weight"), default=0.0) or None,
            weight_unit=detail.get("weightUnit"),
        )
        return NormalizedProduct(
            supplier_product_id=sku,
            title=str(title),
            description=str(detail.get("description") or ""),
            category=detail.get("category"),
            tags=[str(t) for t in detail.get("tags") or []],
            images=[
                ProductImage(url=url, alt=str(title), position=position)
                for position, url in enumerate(image_urls, start=1)
            ],
            variants=[variant],
            supplier_sku=sku,
            supplier_price=unit_price,
        )


__all__ = ["GigaB2BAdapter", "sign_request", "generate_nonce"]
