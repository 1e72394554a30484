"""
Tests for the signed-REST (GigaB2B) adapter.
"""

import base64
import hashlib
import hmac
import re
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from conftest import GIGA_CREDENTIALS, json_response, request_json
from supplysync.adapters import AdapterOptions, GigaB2BAdapter
from supplysync.adapters.credentials import parse_credentials
from supplysync.adapters.gigab2b import (
    INVENTORY_PATH,
    ORDER_DETAIL_PATH,
    ORDER_TRACKING_PATH,
    PRODUCT_DETAIL_PATH,
    PRODUCT_PRICE_PATH,
    SKU_LIST_PATH,
    generate_nonce,
    sign_request,
)
from supplysync.adapters.types import TrackingStatus
from supplysync.errors import SupplierAPIError


def make_adapter(handler, **option_kwargs) -> GigaB2BAdapter:
    credentials = parse_credentials("gigab2b", GIGA_CREDENTIALS)
    options = AdapterOptions(transport=httpx.MockTransport(handler), **option_kwargs)
    return GigaB2BAdapter(credentials, options)


def catalog_handler(skus, total_page=None, unavailable=(), missing_detail=()):
    """Serve a SKU list plus detail/price/inventory lookups for those SKUs."""
    calls = {"detail": [], "price": [], "inventory": []}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == SKU_LIST_PATH:
            body = {"success": True, "data": [{"sku": s} for s in skus]}
            if total_page is not None:
                body["pageMeta"] = {"total": len(skus) * total_page, "totalPage": total_page}
            return json_response(body)

        requested = request_json(request)["skus"]
        if path == PRODUCT_DETAIL_PATH:
            calls["detail"].append(requested)
            data = [
                {"sku": s, "name": f"Product {s}", "availableQuantity": 7, "imageUrls": ["https://img/1.jpg"]}
                for s in requested
                if s not in missing_detail
            ]
        elif path == PRODUCT_PRICE_PATH:
            calls["price"].append(requested)
            data = [
                {"sku": s, "price": "12.50", "skuAvailable": s not in unavailable}
                for s in requested
            ]
        elif path == INVENTORY_PATH:
            calls["inventory"].append(requested)
            data = [{"sku": s, "quantity": 3} for s in requested]
        else:
            return httpx.Response(404)
        return json_response({"success": True, "data": data})

    return handler, calls


class TestSigning:
    """Test request signing."""

    def test_sign_matches_hmac_construction(self):
        expected_hex = hmac.new(
            b"cid&secret&abc123xyz0",
            b"cid&/b2b-overseas-api/v1/buyer/product/skus/v1&1700000000000&abc123xyz0",
            hashlib.sha256,
        ).hexdigest()

        sign = sign_request(
            "cid", "secret", SKU_LIST_PATH, "1700000000000", "abc123xyz0"
        )

        assert sign == base64.b64encode(expected_hex.encode()).decode()

    def test_nonce_shape(self):
        for _ in range(20):
            assert re.fullmatch(r"[a-z0-9]{10}", generate_nonce())

    @pytest.mark.asyncio
    async def test_requests_carry_signed_headers(self):
        seen = []

        def handler(request):
            seen.append(request)
            return json_response({"success": True, "data": [], "pageMeta": {"total": 0, "totalPage": 0}})

        async with make_adapter(handler) as adapter:
            result = await adapter.test_connection()

        assert result.success is True
        request = seen[0]
        assert request.headers["client-id"] == "client-1"
        assert re.fullmatch(r"\d{13}", request.headers["timestamp"])
        assert re.fullmatch(r"[a-z0-9]{10}", request.headers["nonce"])
        assert request.headers["sign"] == sign_request(
            "client-1",
            "secret-1",
            request.url.path,
            request.headers["timestamp"],
            request.headers["nonce"],
        )


class TestBatching:
    """Test rate-limit clamping and batched lookups."""

    def test_batch_options_clamped(self):
        adapter = make_adapter(lambda r: httpx.Response(200), batch_size=500, batch_delay=0.1)

        assert adapter.batch_size == 200
        assert adapter.batch_delay == 1.0

    @pytest.mark.asyncio
    async def test_large_page_split_into_spaced_batches(self):
        skus = [f"SKU{i:03d}" for i in range(250)]
        handler, calls = catalog_handler(skus, total_page=3)

        with patch("supplysync.adapters.gigab2b.asyncio.sleep", new_callable=AsyncMock) as sleep:
            async with make_adapter(handler) as adapter:
                result = await adapter.fetch_products(page=1, page_size=250)

        assert [len(b) for b in calls["detail"]] == [200, 50]
        assert [len(b) for b in calls["price"]] == [200, 50]
        sleep.assert_awaited_once_with(1.0)
        assert len(result.items) == 250
        assert result.has_more is True
        assert result.total == 750

    @pytest.mark.asyncio
    async def test_single_batch_does_not_sleep(self):
        handler, _ = catalog_handler(["A", "B"])

        with patch("supplysync.adapters.gigab2b.asyncio.sleep", new_callable=AsyncMock) as sleep:
            async with make_adapter(handler) as adapter:
                await adapter.fetch_products(page=1, page_size=50)

        sleep.assert_not_awaited()


class TestFetchProducts:
    """Test product normalization and availability filtering."""

    @pytest.mark.asyncio
    async def test_unavailable_and_detail_less_skus_skipped(self):
        handler, _ = catalog_handler(["A", "B", "C"], unavailable={"B"}, missing_detail={"C"})

        async with make_adapter(handler) as adapter:
            result = await adapter.fetch_products(page=1, page_size=3)

        assert [p.supplier_product_id for p in result.items] == ["A"]
        product = result.items[0]
        assert product.title == "Product A"
        assert product.supplier_price == 12.5
        assert product.variants[0].inventory_quantity == 7
        assert product.images[0].url == "https://img/1.jpg"

    @pytest.mark.asyncio
    async def test_has_more_without_page_meta_uses_page_fill(self):
        handler, _ = catalog_handler(["A", "B"])

        async with make_adapter(handler) as adapter:
            full = await adapter.fetch_products(page=1, page_size=2)
            short = await adapter.fetch_products(page=1, page_size=5)

        assert full.has_more is True
        assert full.total == -1
        assert short.has_more is False

    @pytest.mark.asyncio
    async def test_last_page_has_no_more(self):
        handler, _ = catalog_handler(["A"], total_page=2)

        async with make_adapter(handler) as adapter:
            result = await adapter.fetch_products(page=2, page_size=1)

        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_not_found_envelope_returns_none(self):
        def handler(request):
            return json_response({"success": False, "code": "SKU_NOT_EXIST", "msg": "no such sku"})

        async with make_adapter(handler) as adapter:
            assert await adapter.fetch_product("MISSING") is None

    @pytest.mark.asyncio
    async def test_error_envelope_raises(self):
        def handler(request):
            return json_response({"success": False, "code": "500", "msg": "boom"})

        async with make_adapter(handler) as adapter:
            with pytest.raises(SupplierAPIError, match="boom"):
                await adapter.fetch_products()


class TestInventory:
    """Test inventory lookups."""

    @pytest.mark.asyncio
    async def test_inventory_for_given_skus(self):
        handler, calls = catalog_handler([])

        async with make_adapter(handler) as adapter:
            rows = await adapter.fetch_inventory(["A", "B"])

        assert calls["inventory"] == [["A", "B"]]
        assert [(r.sku, r.quantity, r.available) for r in rows] == [("A", 3, True), ("B", 3, True)]


class TestOrders:
    """Test order lookup and tracking."""

    @pytest.mark.asyncio
    async def test_http_404_order_returns_none(self):
        def handler(request):
            assert request.url.path == ORDER_DETAIL_PATH
            return httpx.Response(404, text="not found")

        async with make_adapter(handler) as adapter:
            assert await adapter.get_order("O-1") is None

    @pytest.mark.asyncio
    async def test_tracking_normalized(self):
        def handler(request):
            assert request.url.path == ORDER_TRACKING_PATH
            assert request.url.params["orderId"] == "O-1"
            return json_response(
                {
                    "success": True,
                    "data": {
                        "trackingNumber": "1Z999",
                        "carrier": "UPS",
                        "status": "in_transit",
                        "events": [
                            {"time": "2024-01-02T00:00:00Z", "status": "moving"},
                            {"time": "2024-01-01T00:00:00Z", "status": "picked up"},
                        ],
                    },
                }
            )

        async with make_adapter(handler) as adapter:
            tracking = await adapter.get_tracking("O-1")

        assert tracking.tracking_number == "1Z999"
        assert tracking.status is TrackingStatus.IN_TRANSIT
        assert [e.status for e in tracking.events] == ["picked up", "moving"]

    @pytest.mark.asyncio
    async def test_connection_failure_reported_not_raised(self):
        def handler(request):
            return httpx.Response(401, text="bad signature")

        async with make_adapter(handler) as adapter:
            result = await adapter.test_connection()

        assert result.success is False
        assert "401" in result.message
