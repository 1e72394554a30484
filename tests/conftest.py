"""
Shared fixtures: an in-memory catalog, product builders and a scripted adapter.
"""

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from supplysync.adapters.types import (
    ConnectionTestResult,
    NormalizedInventory,
    NormalizedProduct,
    PaginatedResult,
    ProductVariant,
)
from supplysync.catalog import InMemoryCatalogStore, Merchant, SupplierRecord


GIGA_CREDENTIALS = {
    "base_url": "https://api.giga.test",
    "client_id": "client-1",
    "client_secret": "secret-1",
}
SHOPIFY_CREDENTIALS = {"storeDomain": "supplier.myshopify.com", "accessToken": "shpat_test"}


def make_product(
    supplier_product_id: str,
    title: str = "Test Product",
    price: float = 10.0,
    quantity: int = 5,
    category: Optional[str] = None,
    description: str = "",
) -> NormalizedProduct:
    return NormalizedProduct(
        supplier_product_id=supplier_product_id,
        title=title,
        description=description,
        category=category,
        variants=[
            ProductVariant(
                id=f"{supplier_product_id}-v1",
                sku=f"SKU-{supplier_product_id}",
                title="Default",
                price=price,
                inventory_quantity=quantity,
            )
        ],
        supplier_sku=f"SKU-{supplier_product_id}",
        supplier_price=price,
    )


def json_response(payload: Any, status_code: int = 200, headers: Optional[Dict[str, str]] = None):
    return httpx.Response(status_code, json=payload, headers=headers)


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content) if request.content else None


class ScriptedAdapter:
    """SupplierAdapter fake that serves pre-built pages."""

    type = "fake"

    def __init__(
        self,
        pages: Optional[List[PaginatedResult]] = None,
        connection: Optional[ConnectionTestResult] = None,
        inventory: Optional[List[NormalizedInventory]] = None,
    ):
        self.pages = pages or []
        self.connection = connection or ConnectionTestResult(success=True, message="ok")
        self.inventory = inventory or []
        self.fetch_calls: List[Dict[str, Any]] = []
        self.inventory_calls: List[Optional[List[str]]] = []
        self.closed = False

    async def test_connection(self) -> ConnectionTestResult:
        return self.connection

    async def fetch_products(self, page=1, page_size=50, cursor=None) -> PaginatedResult:
        self.fetch_calls.append({"page": page, "page_size": page_size, "cursor": cursor})
        index = len(self.fetch_calls) - 1
        if index >= len(self.pages):
            return PaginatedResult(items=[], page=page, page_size=page_size)
        return self.pages[index]

    async def fetch_product(self, supplier_product_id):
        return None

    async def fetch_inventory(self, supplier_product_ids=None):
        self.inventory_calls.append(supplier_product_ids)
        return self.inventory

    async def create_order(self, order):
        raise NotImplementedError

    async def get_order(self, supplier_order_id):
        return None

    async def get_tracking(self, supplier_order_id):
        return None

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def giga_supplier():
    return SupplierRecord(id="giga", name="Giga", type="gigab2b", api_credentials=dict(GIGA_CREDENTIALS))


@pytest.fixture
def shopify_supplier():
    return SupplierRecord(
        id="shop", name="Shop", type="shopify", api_credentials=dict(SHOPIFY_CREDENTIALS)
    )


@pytest.fixture
def merchant():
    return Merchant(id="m1", name="Merchant One", email="owner@example.com")


@pytest.fixture
def store(giga_supplier, shopify_supplier, merchant):
    return InMemoryCatalogStore(suppliers=[giga_supplier, shopify_supplier], merchants=[merchant])


GIGA_TOML = """
[supplier]
id = "giga-main"
name = "GigaB2B Main"
type = "gigab2b"

[supplier.credentials]
base_url = "https://api.gigab2b.test"
client_id = "cid"
client_secret = "secret"

[supplier.config]
region = "us"
"""
