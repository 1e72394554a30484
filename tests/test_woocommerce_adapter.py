"""
Tests for the WooCommerce REST adapter.
"""

import base64

import httpx
import pytest

from conftest import json_response
from supplysync.adapters import AdapterOptions, WooCommerceAdapter
from supplysync.adapters.credentials import parse_credentials
from supplysync.adapters.types import OrderStatus, TrackingStatus
from supplysync.errors import SupplierAPIError

WOO_CREDENTIALS = {"storeUrl": "https://woo.test/", "consumerKey": "ck_1", "consumerSecret": "cs_1"}


def make_adapter(handler) -> WooCommerceAdapter:
    credentials = parse_credentials("woocommerce", WOO_CREDENTIALS)
    return WooCommerceAdapter(credentials, AdapterOptions(transport=httpx.MockTransport(handler)))


SIMPLE = {
    "id": 1,
    "name": "Oak Desk",
    "type": "simple",
    "sku": "DESK-1",
    "price": "120.00",
    "regular_price": "150.00",
    "stock_quantity": 4,
    "stock_status": "instock",
    "categories": [{"name": "Desks"}],
    "images": [{"src": "https://woo.test/desk.jpg", "alt": ""}],
}
VARIABLE = {
    "id": 2,
    "name": "Linen Shirt",
    "type": "variable",
    "sku": "",
    "price": "30.00",
    "variations": [21, 22],
    "categories": [],
}
VARIATIONS = [
    {"id": 21, "sku": "SHIRT-S", "price": "30.00", "stock_quantity": 2, "attributes": [{"name": "Size", "option": "S"}]},
    {"id": 22, "sku": "SHIRT-M", "price": "32.00", "stock_quantity": 0, "attributes": [{"name": "Size", "option": "M"}]},
]


def store_handler(products, headers=None):
    def handler(request):
        path = request.url.path
        if path == "/wp-json/wc/v3/products":
            return json_response(products, headers=headers)
        if path == "/wp-json/wc/v3/products/2/variations":
            return json_response(VARIATIONS)
        return httpx.Response(404, json={"code": "woocommerce_rest_invalid_id"})

    return handler


class TestFetchProducts:
    """Test product listing and variation expansion."""

    @pytest.mark.asyncio
    async def test_basic_auth_and_paging_params(self):
        seen = []

        def handler(request):
            seen.append(request)
            return json_response([])

        async with make_adapter(handler) as adapter:
            await adapter.fetch_products(page=3, page_size=250)

        request = seen[0]
        expected = base64.b64encode(b"ck_1:cs_1").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"
        assert request.url.params["page"] == "3"
        assert request.url.params["per_page"] == "100"

    @pytest.mark.asyncio
    async def test_variable_products_expand_to_variants(self):
        handler = store_handler([SIMPLE, VARIABLE], headers={"X-WP-Total": "30", "X-WP-TotalPages": "2"})

        async with make_adapter(handler) as adapter:
            result = await adapter.fetch_products(page=1, page_size=2)

        desk, shirt = result.items
        assert desk.variants[0].id == "1"
        assert desk.variants[0].compare_at_price == 150.0
        assert desk.category == "Desks"
        assert desk.images[0].alt == "Oak Desk"

        assert [v.id for v in shirt.variants] == ["21", "22"]
        assert shirt.variants[0].title == "S"
        assert shirt.variants[1].options == {"Size": "M"}
        assert shirt.total_inventory == 2
        assert shirt.category == "Uncategorized"

        assert result.total == 30
        assert result.has_more is True

    @pytest.mark.asyncio
    async def test_has_more_without_headers(self):
        async with make_adapter(store_handler([SIMPLE])) as adapter:
            full = await adapter.fetch_products(page=1, page_size=1)
            partial = await adapter.fetch_products(page=1, page_size=10)

        assert full.has_more is True
        assert full.total == -1
        assert partial.has_more is False

    @pytest.mark.asyncio
    async def test_missing_product_returns_none(self):
        async with make_adapter(store_handler([])) as adapter:
            assert await adapter.fetch_product("99") is None


class TestInventory:
    """Test stock lookups."""

    @pytest.mark.asyncio
    async def test_inventory_for_ids_skips_deleted_products(self):
        out_of_stock = {**SIMPLE, "stock_status": "outofstock"}

        def handler(request):
            if request.url.path == "/wp-json/wc/v3/products/1":
                return json_response(out_of_stock)
            if request.url.path == "/wp-json/wc/v3/products/2":
                return json_response(VARIABLE)
            if request.url.path == "/wp-json/wc/v3/products/2/variations":
                return json_response(VARIATIONS)
            return httpx.Response(404)

        async with make_adapter(handler) as adapter:
            rows = await adapter.fetch_inventory(["1", "2", "3"])

        assert [(r.supplier_product_id, r.variant_id, r.quantity, r.available) for r in rows] == [
            ("1", "1", 4, False),
            ("2", "21", 2, True),
            ("2", "22", 0, False),
        ]

    @pytest.mark.asyncio
    async def test_server_error_propagates(self):
        async with make_adapter(lambda r: httpx.Response(500, text="down")) as adapter:
            with pytest.raises(SupplierAPIError) as exc_info:
                await adapter.fetch_inventory(["1"])

        assert exc_info.value.status_code == 500


class TestOrders:
    """Test order status and note-based tracking."""

    @pytest.mark.asyncio
    async def test_on_hold_maps_to_confirmed(self):
        order = {
            "id": 500,
            "status": "on-hold",
            "total": "64.00",
            "date_created": "2024-03-01T10:00:00",
            "line_items": [{"product_id": 2, "variation_id": 21, "quantity": 2, "price": 32}],
        }

        async with make_adapter(lambda r: json_response(order)) as adapter:
            result = await adapter.get_order("500")

        assert result.status is OrderStatus.CONFIRMED
        assert result.items[0].variant_id == "21"
        assert result.total_cost == 64.0

    @pytest.mark.asyncio
    async def test_tracking_parsed_from_notes(self):
        notes = [
            {"note": "Order status changed", "date_created": "2024-03-01"},
            {"note": "Shipped with Tracking: 1Z999AA10123456784", "date_created": "2024-03-02"},
        ]

        async with make_adapter(lambda r: json_response(notes)) as adapter:
            tracking = await adapter.get_tracking("500")

        assert tracking.tracking_number == "1Z999AA10123456784"
        assert tracking.carrier == "Unknown"
        assert tracking.status is TrackingStatus.IN_TRANSIT
        assert tracking.last_update == "2024-03-02"

    @pytest.mark.asyncio
    async def test_tracking_absent_or_missing_order(self):
        async with make_adapter(lambda r: json_response([{"note": "Packed"}])) as adapter:
            assert await adapter.get_tracking("500") is None
        async with make_adapter(lambda r: httpx.Response(404)) as adapter:
            assert await adapter.get_tracking("501") is None
