"""
Tests for the Shopify GraphQL adapter.
"""

import httpx
import pytest

from conftest import SHOPIFY_CREDENTIALS, json_response, request_json
from supplysync.adapters import AdapterOptions, ShopifyAdapter
from supplysync.adapters.credentials import parse_credentials
from supplysync.adapters.shopify import gid_tail
from supplysync.adapters.types import (
    OrderCreateRequest,
    OrderItem,
    OrderStatus,
    ShippingAddress,
    TrackingStatus,
)
from supplysync.errors import SupplierAPIError


def make_adapter(handler) -> ShopifyAdapter:
    credentials = parse_credentials("shopify", SHOPIFY_CREDENTIALS)
    return ShopifyAdapter(credentials, AdapterOptions(transport=httpx.MockTransport(handler)))


def variant(vid, quantity=0, tracked=True, price="20.00", sku=None):
    return {
        "id": f"gid://shopify/ProductVariant/{vid}",
        "sku": sku or f"SKU-{vid}",
        "title": "Default Title",
        "price": price,
        "inventoryQuantity": quantity,
        "selectedOptions": [{"name": "Size", "value": "M"}],
        "inventoryItem": {"tracked": tracked, "unitCost": {"amount": "8.00"}, "measurement": None},
    }


def product_node(pid, variants, title=None):
    return {
        "id": f"gid://shopify/Product/{pid}",
        "title": title or f"Product {pid}",
        "descriptionHtml": "<p>Soft</p>",
        "productType": "Shirts",
        "tags": ["cotton"],
        "images": {"nodes": [{"url": f"https://cdn/{pid}.jpg", "altText": None}]},
        "variants": {"nodes": variants},
    }


def products_page(nodes, has_next=False, end_cursor=None):
    return {
        "data": {
            "products": {
                "pageInfo": {"hasNextPage": has_next, "endCursor": end_cursor},
                "nodes": nodes,
            }
        }
    }


class TestGidTail:
    def test_extracts_numeric_id(self):
        assert gid_tail("gid://shopify/Product/123") == "123"
        assert gid_tail(None) == ""


class TestFetchProducts:
    """Test product paging and inventory rules."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen = []

        def handler(request):
            seen.append(request)
            return json_response(products_page([]))

        async with make_adapter(handler) as adapter:
            await adapter.fetch_products(page_size=500, cursor="abc")

        request = seen[0]
        assert request.url.host == "supplier.myshopify.com"
        assert request.url.path == "/admin/api/2024-10/graphql.json"
        assert request.headers["X-Shopify-Access-Token"] == "shpat_test"
        assert request_json(request)["variables"] == {"first": 100, "after": "abc"}

    @pytest.mark.asyncio
    async def test_tracked_out_of_stock_product_dropped(self):
        nodes = [
            product_node("1", [variant("11", quantity=0), variant("12", quantity=0)]),
            product_node("2", [variant("21", quantity=4), variant("22", quantity=0)]),
            product_node("3", [variant("31", tracked=False)]),
        ]

        async with make_adapter(lambda r: json_response(products_page(nodes))) as adapter:
            result = await adapter.fetch_products()

        assert [p.supplier_product_id for p in result.items] == ["2", "3"]
        assert result.items[0].total_inventory == 4
        assert result.items[1].variants[0].inventory_quantity == 999

    @pytest.mark.asyncio
    async def test_oversold_variant_offsets_stock(self):
        """The drop decision uses the raw sum; stored quantities are clamped."""
        nodes = [
            product_node("1", [variant("11", quantity=-5), variant("12", quantity=5)]),
            product_node("2", [variant("21", quantity=-2), variant("22", quantity=6)]),
        ]

        async with make_adapter(lambda r: json_response(products_page(nodes))) as adapter:
            result = await adapter.fetch_products()

        assert [p.supplier_product_id for p in result.items] == ["2"]
        assert [v.inventory_quantity for v in result.items[0].variants] == [0, 6]

    @pytest.mark.asyncio
    async def test_normalized_fields(self):
        nodes = [product_node("2", [variant("21", quantity=4, price="19.99")])]

        async with make_adapter(lambda r: json_response(products_page(nodes))) as adapter:
            product = (await adapter.fetch_products()).items[0]

        assert product.category == "Shirts"
        assert product.supplier_price == 19.99
        assert product.supplier_sku == "SKU-21"
        assert product.variants[0].id == "21"
        assert product.variants[0].cost == 8.0
        assert product.variants[0].options == {"Size": "M"}
        assert product.images[0].alt == "Product 2"

    @pytest.mark.asyncio
    async def test_cursor_only_when_more_pages(self):
        nodes = [product_node("1", [variant("11", quantity=1)])]

        async with make_adapter(
            lambda r: json_response(products_page(nodes, has_next=True, end_cursor="c1"))
        ) as adapter:
            more = await adapter.fetch_products()
        async with make_adapter(
            lambda r: json_response(products_page(nodes, has_next=False, end_cursor="c2"))
        ) as adapter:
            last = await adapter.fetch_products()

        assert (more.has_more, more.next_cursor, more.total) == (True, "c1", -1)
        assert (last.has_more, last.next_cursor) == (False, None)

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self):
        def handler(request):
            return json_response({"errors": [{"message": "Throttled"}]})

        async with make_adapter(handler) as adapter:
            with pytest.raises(SupplierAPIError, match="Throttled"):
                await adapter.fetch_products()


class TestInventory:
    """Test inventory via the nodes query."""

    @pytest.mark.asyncio
    async def test_nodes_query_per_product_ids(self):
        seen = []

        def handler(request):
            seen.append(request_json(request)["variables"])
            return json_response(
                {"data": {"nodes": [product_node("1", [variant("11", quantity=6)]), None]}}
            )

        async with make_adapter(handler) as adapter:
            rows = await adapter.fetch_inventory(["1", "2"])

        assert seen == [{"ids": ["gid://shopify/Product/1", "gid://shopify/Product/2"]}]
        assert [(r.supplier_product_id, r.variant_id, r.quantity) for r in rows] == [("1", "11", 6)]


class TestOrders:
    """Test draft order creation, status and tracking."""

    @pytest.mark.asyncio
    async def test_create_order_via_draft(self):
        operations = []

        def handler(request):
            body = request_json(request)
            if "draftOrderCreate" in body["query"]:
                operations.append("create")
                assert body["variables"]["input"]["lineItems"] == [
                    {"variantId": "gid://shopify/ProductVariant/11", "quantity": 2}
                ]
                return json_response(
                    {"data": {"draftOrderCreate": {"draftOrder": {"id": "gid://shopify/DraftOrder/5"}, "userErrors": []}}}
                )
            operations.append("complete")
            return json_response(
                {
                    "data": {
                        "draftOrderComplete": {
                            "draftOrder": {
                                "order": {
                                    "id": "gid://shopify/Order/900",
                                    "name": "#1001",
                                    "totalPriceSet": {"shopMoney": {"amount": "40.00"}},
                                }
                            },
                            "userErrors": [],
                        }
                    }
                }
            )

        order = OrderCreateRequest(
            items=[OrderItem(supplier_product_id="1", variant_id="11", sku="SKU-11", quantity=2, price=20.0)],
            shipping_address=ShippingAddress(
                first_name="Ada", last_name="L", address1="1 Main", city="Kyiv", country="UA", zip="01001"
            ),
        )
        async with make_adapter(handler) as adapter:
            response = await adapter.create_order(order)

        assert operations == ["create", "complete"]
        assert response.supplier_order_id == "900"
        assert response.status == "submitted"
        assert response.total_cost == 40.0

    @pytest.mark.asyncio
    async def test_user_errors_raise(self):
        def handler(request):
            return json_response(
                {"data": {"draftOrderCreate": {"draftOrder": None, "userErrors": [{"field": ["email"], "message": "Email is invalid"}]}}}
            )

        order = OrderCreateRequest(
            items=[OrderItem(supplier_product_id="1", variant_id="11", sku="", quantity=1, price=1.0)],
            shipping_address=ShippingAddress(
                first_name="A", last_name="B", address1="x", city="y", country="UA", zip="1"
            ),
        )
        async with make_adapter(handler) as adapter:
            with pytest.raises(SupplierAPIError, match="Email is invalid"):
                await adapter.create_order(order)

    @pytest.mark.asyncio
    async def test_missing_order_returns_none(self):
        async with make_adapter(lambda r: json_response({"data": {"order": None}})) as adapter:
            assert await adapter.get_order("404") is None
            assert await adapter.get_tracking("404") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "order,expected",
        [
            ({"cancelledAt": "2024-01-01T00:00:00Z"}, OrderStatus.CANCELLED),
            ({"fulfillments": [{"displayStatus": "DELIVERED"}]}, OrderStatus.DELIVERED),
            ({"displayFulfillmentStatus": "FULFILLED"}, OrderStatus.SHIPPED),
            ({"displayFulfillmentStatus": "IN_PROGRESS"}, OrderStatus.PROCESSING),
            ({"displayFulfillmentStatus": "UNFULFILLED"}, OrderStatus.PENDING),
        ],
    )
    async def test_order_status_mapping(self, order, expected):
        payload = {"id": "gid://shopify/Order/7", "createdAt": "2024-01-01T00:00:00Z", **order}

        async with make_adapter(lambda r: json_response({"data": {"order": payload}})) as adapter:
            result = await adapter.get_order("7")

        assert result.supplier_order_id == "7"
        assert result.status is expected

    @pytest.mark.asyncio
    async def test_tracking_without_fulfillments_is_none(self):
        async with make_adapter(
            lambda r: json_response({"data": {"order": {"fulfillments": []}}})
        ) as adapter:
            assert await adapter.get_tracking("7") is None

    @pytest.mark.asyncio
    async def test_tracking_from_fulfillment(self):
        fulfillment = {
            "displayStatus": "IN_TRANSIT",
            "trackingInfo": [{"number": "TRK1", "company": "DHL", "url": "https://dhl/TRK1"}],
            "events": {"nodes": [{"happenedAt": "2024-01-01T10:00:00Z", "status": "IN_TRANSIT", "city": "Lviv", "country": "UA"}]},
        }

        async with make_adapter(
            lambda r: json_response({"data": {"order": {"fulfillments": [fulfillment]}}})
        ) as adapter:
            tracking = await adapter.get_tracking("7")

        assert tracking.tracking_number == "TRK1"
        assert tracking.carrier == "DHL"
        assert tracking.status is TrackingStatus.IN_TRANSIT
        assert tracking.events[0].location == "Lviv, UA"
