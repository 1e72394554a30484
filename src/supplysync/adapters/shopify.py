"""
Shopify supplier adapter (Admin GraphQL API).

Products are paged with ``products(first, after)`` cursors; variants and
images come back nested in the same query. Orders go through draft orders
so the supplier store can hold them as payment-pending.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..errors import SupplierAPIError
from .credentials import ShopifyCredentials
from .http import build_client, decode_json, send
from .registry import AdapterOptions, adapter_registry
from .types import (
    UNTRACKED_INVENTORY_QUANTITY,
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

API_VERSION = "2024-10"
MAX_PAGE_SIZE = 100
NODES_BATCH_SIZE = 50

_PRODUCT_FIELDS = """
    id
    title
    descriptionHtml
    productType
    tags
    images(first: 20) { nodes { url altText } }
    variants(first: 100) {
      nodes {
        id
        sku
        barcode
        title
        price
        compareAtPrice
        inventoryQuantity
        selectedOptions { name value }
        inventoryItem {
          tracked
          unitCost { amount }
          measurement { weight { value unit } }
        }
      }
    }
"""

PRODUCTS_QUERY = f"""
query Products($first: Int!, $after: String) {{
  products(first: $first, after: $after) {{
    pageInfo {{ hasNextPage endCursor }}
    nodes {{ {_PRODUCT_FIELDS} }}
  }}
}}
"""

PRODUCT_QUERY = f"""
query Product($id: ID!) {{
  product(id: $id) {{ {_PRODUCT_FIELDS} }}
}}
"""

PRODUCT_NODES_QUERY = f"""
query ProductNodes($ids: [ID!]!) {{
  nodes(ids: $ids) {{
    ... on Product {{ {_PRODUCT_FIELDS} }}
  }}
}}
"""

SHOP_QUERY = """
query Shop {
  shop { name }
  productsCount { count }
}
"""

DRAFT_ORDER_CREATE = """
mutation DraftOrderCreate($input: DraftOrderInput!) {
  draftOrderCreate(input: $input) {
    draftOrder { id }
    userErrors { field message }
  }
}
"""

DRAFT_ORDER_COMPLETE = """
mutation DraftOrderComplete($id: ID!) {
  draftOrderComplete(id: $id, paymentPending: true) {
    draftOrder {
      order {
        id
        name
        displayFinancialStatus
        totalPriceSet { shopMoney { amount } }
      }
    }
    userErrors { field message }
  }
}
"""

ORDER_QUERY = """
query Order($id: ID!) {
  order(id: $id) {
    id
    createdAt
    updatedAt
    cancelledAt
    displayFulfillmentStatus
    totalPriceSet { shopMoney { amount } }
    lineItems(first: 100) {
      nodes {
        quantity
        originalUnitPriceSet { shopMoney { amount } }
        product { id }
        variant { id }
      }
    }
    fulfillments(first: 10) { displayStatus }
  }
}
"""

TRACKING_QUERY = """
query OrderTracking($id: ID!) {
  order(id: $id) {
    fulfillments(first: 10) {
      displayStatus
      updatedAt
      estimatedDeliveryAt
      trackingInfo { number company url }
      events(first: 50) {
        nodes { happenedAt status message city country }
      }
    }
  }
}
"""

_FULFILLMENT_TRACKING_STATUS = {
    "DELIVERED": TrackingStatus.DELIVERED,
    "IN_TRANSIT": TrackingStatus.IN_TRANSIT,
    "FULFILLED": TrackingStatus.IN_TRANSIT,
    "OUT_FOR_DELIVERY": TrackingStatus.OUT_FOR_DELIVERY,
    "ATTEMPTED_DELIVERY": TrackingStatus.EXCEPTION,
    "FAILURE": TrackingStatus.EXCEPTION,
}


def gid_tail(gid: Optional[str]) -> str:
    """``gid://shopify/Product/123`` -> ``123``."""
    return str(gid or "").rsplit("/", 1)[-1]


def _money(value: Optional[Dict[str, Any]]) -> float:
    return to_float(((value or {}).get("shopMoney") or {}).get("amount"))


@adapter_registry.register("shopify")
class ShopifyAdapter:
    """Adapter for a Shopify store acting as a supplier."""

    type = "shopify"

    def __init__(self, credentials: ShopifyCredentials, options: Optional[AdapterOptions] = None):
        options = options or AdapterOptions()
        self.credentials = credentials
        domain = credentials.store_domain
        for prefix in ("https://", "http://"):
            if domain.startswith(prefix):
                domain = domain[len(prefix) :]
        self.store_domain = domain.rstrip("/")
        self.endpoint = f"/admin/api/{API_VERSION}/graphql.json"
        self._client = build_client(
            base_url=f"https://{self.store_domain}",
            headers={
                "X-Shopify-Access-Token": credentials.access_token,
                "Content-Type": "application/json",
            },
            timeout=options.timeout,
            transport=options.transport,
        )

    async def __aenter__(self) -> "ShopifyAdapter":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a GraphQL document and return its ``data`` object.

        Raises:
            SupplierAPIError: HTTP failure or a non-empty ``errors`` array
        """
        response = await send(
            self._client,
            "POST",
            self.endpoint,
            self.type,
            json={"query": query, "variables": variables or {}},
        )
        payload = decode_json(response, self.type) or {}
        errors = payload.get("errors")
        if errors:
            messages = "; ".join(
                str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors
            )
            raise SupplierAPIError(
                f"Shopify GraphQL error: {messages}",
                status_code=response.status_code,
                body=response.text,
                supplier=self.type,
            )
        return payload.get("data") or {}

    @staticmethod
    def _raise_user_errors(result: Dict[str, Any], operation: str) -> None:
        user_errors = result.get("userErrors") or []
        if user_errors:
            messages = "; ".join(str(e.get("message")) for e in user_errors)
            raise SupplierAPIError(f"Shopify {operation} failed: {messages}", supplier="shopify")

    # ------------------------------------------------------------------
    # Adapter contract
    # ------------------------------------------------------------------

    async def test_connection(self) -> ConnectionTestResult:
        try:
            data = await self._graphql(SHOP_QUERY)
        except Exception as e:
            logger.warning(f"Shopify connection test failed for {self.store_domain}: {e}")
            return ConnectionTestResult(success=False, message=str(e) or "Failed to connect to Shopify")

        store_name = (data.get("shop") or {}).get("name") or self.store_domain
        return ConnectionTestResult(
            success=True,
            message=f"Connected to {store_name}",
            products_count=to_int((data.get("productsCount") or {}).get("count")),
            api_version=API_VERSION,
            store_name=store_name,
            capabilities=SupplierCapabilities(),
        )

    async def fetch_products(
        self, page: int = 1, page_size: int = 50, cursor: Optional[str] = None
    ) -> PaginatedResult[NormalizedProduct]:
        first = max(1, min(page_size, MAX_PAGE_SIZE))
        data = await self._graphql(PRODUCTS_QUERY, {"first": first, "after": cursor})

        connection = data.get("products") or {}
        page_info = connection.get("pageInfo") or {}

        products: List[NormalizedProduct] = []
        for node in connection.get("nodes") or []:
            product = self._normalize_product(node)
            if product is None:
                continue
            if self._tracks_inventory(node) and self._upstream_quantity(node) == 0:
                continue
            products.append(product)

        has_more = bool(page_info.get("hasNextPage"))
        return PaginatedResult(
            items=products,
            total=-1,
            page=page,
            page_size=first,
            has_more=has_more,
            next_cursor=page_info.get("endCursor") if has_more else None,
        )

    async def fetch_product(self, supplier_product_id: str) -> Optional[NormalizedProduct]:
        data = await self._graphql(
            PRODUCT_QUERY, {"id": f"gid://shopify/Product/{supplier_product_id}"}
        )
        node = data.get("product")
        if not node:
            return None
        return self._normalize_product(node)

    async def fetch_inventory(
        self, supplier_product_ids: Optional[List[str]] = None
    ) -> List[NormalizedInventory]:
        nodes: List[Dict[str, Any]] = []
        if supplier_product_ids:
            ids = list(supplier_product_ids)
            for start in range(0, len(ids), NODES_BATCH_SIZE):
                batch = ids[start : start + NODES_BATCH_SIZE]
                data = await self._graphql(
                    PRODUCT_NODES_QUERY,
                    {"ids": [f"gid://shopify/Product/{pid}" for pid in batch]},
                )
                nodes.extend(n for n in data.get("nodes") or [] if n)
        else:
            cursor: Optional[str] = None
            while True:
                data = await self._graphql(
                    PRODUCTS_QUERY, {"first": MAX_PAGE_SIZE, "after": cursor}
                )
                connection = data.get("products") or {}
                nodes.extend(connection.get("nodes") or [])
                page_info = connection.get("pageInfo") or {}
                if not page_info.get("hasNextPage"):
                    break
                cursor = page_info.get("endCursor")

        inventory: List[NormalizedInventory] = []
        for node in nodes:
            product = self._normalize_product(node)
            if product is None:
                continue
            for variant in product.variants:
                inventory.append(
                    NormalizedInventory(
                        supplier_product_id=product.supplier_product_id,
                        variant_id=variant.id,
                        sku=variant.sku,
                        quantity=variant.inventory_quantity,
                    )
                )
        return inventory

    async def create_order(self, order: OrderCreateRequest) -> OrderCreateResponse:
        address = order.shipping_address
        draft_input = {
            "lineItems": [
                {
                    "variantId": f"gid://shopify/ProductVariant/{item.variant_id}",
                    "quantity": item.quantity,
                }
                for item in order.items
            ],
            "shippingAddress": {
                "firstName": address.first_name,
                "lastName": address.last_name,
                "address1": address.address1,
                "address2": address.address2,
                "city": address.city,
                "province": address.province,
                "country": address.country,
                "zip": address.zip,
                "phone": address.phone,
            },
            "note": order.note,
        }
        if address.email:
            draft_input["email"] = address.email

        created = (await self._graphql(DRAFT_ORDER_CREATE, {"input": draft_input})).get(
            "draftOrderCreate"
        ) or {}
        self._raise_user_errors(created, "draftOrderCreate")
        draft_id = (created.get("draftOrder") or {}).get("id")
        if not draft_id:
            raise SupplierAPIError("Shopify draftOrderCreate returned no draft order", supplier=self.type)

        completed = (await self._graphql(DRAFT_ORDER_COMPLETE, {"id": draft_id})).get(
            "draftOrderComplete"
        ) or {}
        self._raise_user_errors(completed, "draftOrderComplete")
        placed = (completed.get("draftOrder") or {}).get("order") or {}

        return OrderCreateResponse(
            supplier_order_id=gid_tail(placed.get("id") or draft_id),
            status="submitted",
            total_cost=_money(placed.get("totalPriceSet")),
            message=placed.get("name"),
            raw_response=placed,
        )

    async def get_order(self, supplier_order_id: str) -> Optional[NormalizedOrder]:
        data = await self._graphql(ORDER_QUERY, {"id": f"gid://shopify/Order/{supplier_order_id}"})
        order = data.get("order")
        if not order:
            return None

        return NormalizedOrder(
            supplier_order_id=gid_tail(order.get("id")),
            status=self._map_order_status(order),
            items=[
                NormalizedOrderItem(
                    supplier_product_id=gid_tail((line.get("product") or {}).get("id")),
                    variant_id=gid_tail((line.get("variant") or {}).get("id")),
                    quantity=to_int(line.get("quantity")),
                    price=_money(line.get("originalUnitPriceSet")),
                )
                for line in (order.get("lineItems") or {}).get("nodes") or []
            ],
            total_cost=_money(order.get("totalPriceSet")),
            created_at=order.get("createdAt") or "",
            updated_at=order.get("updatedAt"),
        )

    async def get_tracking(self, supplier_order_id: str) -> Optional[TrackingInfo]:
        data = await self._graphql(
            TRACKING_QUERY, {"id": f"gid://shopify/Order/{supplier_order_id}"}
        )
        order = data.get("order")
        if not order:
            return None

        fulfillments = order.get("fulfillments") or []
        if not fulfillments:
            return None

        fulfillment = next((f for f in fulfillments if f.get("trackingInfo")), fulfillments[0])
        tracking = (fulfillment.get("trackingInfo") or [{}])[0]
        return TrackingInfo(
            tracking_number=tracking.get("number") or "",
            carrier=tracking.get("company") or "",
            status=_FULFILLMENT_TRACKING_STATUS.get(
                fulfillment.get("displayStatus") or "", TrackingStatus.PENDING
            ),
            tracking_url=tracking.get("url"),
            estimated_delivery=fulfillment.get("estimatedDeliveryAt"),
            last_update=fulfillment.get("updatedAt"),
            events=[
                TrackingEvent(
                    date=event.get("happenedAt") or "",
                    status=event.get("status") or "",
                    location=", ".join(p for p in (event.get("city"), event.get("country")) if p)
                    or None,
                    description=event.get("message"),
                )
                for event in (fulfillment.get("events") or {}).get("nodes") or []
            ],
        )

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    @staticmethod
    def _variant_nodes(node: Dict[str, Any]) -> List[Dict[str, Any]]:
        return (node.get("variants") or {}).get("nodes") or []

    def _tracks_inventory(self, node: Dict[str, Any]) -> bool:
        return any(
            (v.get("inventoryItem") or {}).get("tracked") for v in self._variant_nodes(node)
        )

    def _upstream_quantity(self, node: Dict[str, Any]) -> int:
        # unclamped, so oversold variants offset stocked ones
        return sum(to_int(v.get("inventoryQuantity")) for v in self._variant_nodes(node))

    def _normalize_product(self, node: Dict[str, Any]) -> Optional[NormalizedProduct]:
        variant_nodes = self._variant_nodes(node)
        if not variant_nodes:
            logger.debug(f"Shopify product {node.get('id')} has no variants, skipping")
            return None

        tracked = self._tracks_inventory(node)
        variants = []
        for v in variant_nodes:
            item = v.get("inventoryItem") or {}
            weight = ((item.get("measurement") or {}).get("weight")) or {}
            variants.append(
                ProductVariant(
                    id=gid_tail(v.get("id")),
                    sku=v.get("sku") or "",
                    barcode=v.get("barcode"),
                    title=v.get("title") or "Default",
                    price=to_float(v.get("price")),
                    compare_at_price=to_float(v.get("compareAtPrice"), default=0.0) or None,
                    cost=to_float((item.get("unitCost") or {}).get("amount")),
                    inventory_quantity=(
                        max(to_int(v.get("inventoryQuantity")), 0)
                        if tracked
                        else UNTRACKED_INVENTORY_QUANTITY
                    ),
                    weight=to_float(weight.get("value"), default=0.0) or None,
                    weight_unit=weight.get("unit"),
                    options={
                        o["name"]: o["value"]
                        for o in v.get("selectedOptions") or []
                        if o.get("name")
                    },
                )
            )

        title = node.get("title") or ""
        return NormalizedProduct(
            supplier_product_id=gid_tail(node.get("id")),
            title=title,
            description=node.get("descriptionHtml") or "",
            category=node.get("productType") or "Uncategorized",
            tags=list(node.get("tags") or []),
            images=[
                ProductImage(url=img.get("url", ""), alt=img.get("altText") or title, position=i)
                for i, img in enumerate((node.get("images") or {}).get("nodes") or [], start=1)
            ],
            variants=variants,
            supplier_sku=variants[0].sku,
            supplier_price=variants[0].price,
        )

    @staticmethod
    def _map_order_status(order: Dict[str, Any]) -> OrderStatus:
        if order.get("cancelledAt"):
            return OrderStatus.CANCELLED
        if any(f.get("displayStatus") == "DELIVERED" for f in order.get("fulfillments") or []):
            return OrderStatus.DELIVERED
        status = order.get("displayFulfillmentStatus")
        if status == "FULFILLED":
            return OrderStatus.SHIPPED
        if status in ("PARTIALLY_FULFILLED", "IN_PROGRESS"):
            return OrderStatus.PROCESSING
        return OrderStatus.PENDING


__all__ = ["ShopifyAdapter", "gid_tail"]
