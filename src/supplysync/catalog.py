"""
Catalog store collaborator.

CatalogStore is the persistence contract the sync engines depend on.
InMemoryCatalogStore implements it over plain dicts; it backs the CLI when
suppliers come from TOML files and doubles as the fake in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .errors import BatchPersistenceError

logger = logging.getLogger(__name__)

DEFAULT_LOW_STOCK_THRESHOLD = 10


@dataclass
class CatalogProduct:
    """A catalog row owned by a supplier (and optionally a merchant)."""

    id: int
    supplier_id: str
    supplier_product_id: str
    title: str
    description: str = ""
    category: Optional[str] = None
    category_id: Optional[int] = None
    tags: List[str] = field(default_factory=list)
    images: List[Dict[str, Any]] = field(default_factory=list)
    variants: List[Dict[str, Any]] = field(default_factory=list)
    supplier_sku: str = ""
    supplier_price: float = 0.0
    merchant_price: float = 0.0
    inventory_quantity: int = 0
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    merchant_id: Optional[str] = None
    status: str = "active"
    sync_status: str = "synced"
    is_global: bool = True
    last_synced_at: Optional[datetime] = None


@dataclass
class SupplierRecord:
    id: str
    name: str
    type: str
    api_credentials: Dict[str, Any] = field(default_factory=dict)
    config: Dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    connection_status: str = "untested"  # connected | error | untested
    connection_error: Optional[str] = None
    last_connection_test: Optional[datetime] = None
    total_products: int = 0


@dataclass
class Merchant:
    id: str
    name: str
    email: Optional[str] = None


@dataclass
class Category:
    id: int
    name: str
    supplier_id: str


@dataclass
class BatchUpsertResult:
    created: int = 0
    updated: int = 0
    errors: List[str] = field(default_factory=list)


class CatalogStore(Protocol):
    """Persistence operations used by the orchestrator and engines."""

    async def get_products_by_supplier_product_id(
        self, supplier_id: str, supplier_product_id: str
    ) -> Optional[CatalogProduct]: ...

    async def create_product(self, data: Mapping[str, Any]) -> CatalogProduct: ...

    async def update_product(self, product_id: int, data: Mapping[str, Any]) -> CatalogProduct: ...

    async def batch_upsert_products(
        self, items: Sequence[Mapping[str, Any]], existing_id_map: Mapping[str, int]
    ) -> BatchUpsertResult: ...

    async def get_active_suppliers(self) -> List[SupplierRecord]: ...

    async def get_supplier(self, supplier_id: str) -> Optional[SupplierRecord]: ...

    async def update_supplier(self, supplier_id: str, data: Mapping[str, Any]) -> SupplierRecord: ...

    async def get_products_by_supplier(self, supplier_id: str) -> List[CatalogProduct]: ...

    async def get_products_by_merchant(self, merchant_id: str) -> List[CatalogProduct]: ...

    async def get_merchant(self, merchant_id: str) -> Optional[Merchant]: ...

    async def get_categories_for_supplier(self, supplier_id: str) -> List[Category]: ...


_PRODUCT_FIELDS = {f.name for f in fields(CatalogProduct)} - {"id"}
_SUPPLIER_FIELDS = {f.name for f in fields(SupplierRecord)} - {"id"}


class InMemoryCatalogStore:
    """Dict-backed CatalogStore."""

    def __init__(
        self,
        suppliers: Sequence[SupplierRecord] = (),
        merchants: Sequence[Merchant] = (),
        categories: Sequence[Category] = (),
    ):
        self.suppliers: Dict[str, SupplierRecord] = {s.id: s for s in suppliers}
        self.merchants: Dict[str, Merchant] = {m.id: m for m in merchants}
        self.categories: List[Category] = list(categories)
        self.products: Dict[int, CatalogProduct] = {}
        self._next_product_id = 1

    # -- seeding helpers -------------------------------------------------

    def add_supplier(self, supplier: SupplierRecord) -> SupplierRecord:
        self.suppliers[supplier.id] = supplier
        return supplier

    def add_merchant(self, merchant: Merchant) -> Merchant:
        self.merchants[merchant.id] = merchant
        return merchant

    def add_category(self, supplier_id: str, name: str) -> Category:
        category = Category(id=len(self.categories) + 1, name=name, supplier_id=supplier_id)
        self.categories.append(category)
        return category

    # -- products --------------------------------------------------------

    async def get_products_by_supplier_product_id(
        self, supplier_id: str, supplier_product_id: str
    ) -> Optional[CatalogProduct]:
        for product in self.products.values():
            if (
                product.supplier_id == supplier_id
                and product.supplier_product_id == supplier_product_id
            ):
                return product
        return None

    async def create_product(self, data: Mapping[str, Any]) -> CatalogProduct:
        self._validate(data)
        product = CatalogProduct(
            id=self._next_product_id,
            **{k: v for k, v in data.items() if k in _PRODUCT_FIELDS},
        )
        self.products[product.id] = product
        self._next_product_id += 1
        return product

    async def update_product(self, product_id: int, data: Mapping[str, Any]) -> CatalogProduct:
        if product_id not in self.products:
            raise KeyError(f"Product {product_id} not found")
        changes = {k: v for k, v in data.items() if k in _PRODUCT_FIELDS}
        product = replace(self.products[product_id], **changes)
        self.products[product_id] = product
        return product

    async def batch_upsert_products(
        self, items: Sequence[Mapping[str, Any]], existing_id_map: Mapping[str, int]
    ) -> BatchUpsertResult:
        """All-or-nothing bulk write: every row is validated before any is stored."""
        for item in items:
            try:
                self._validate(item)
            except ValueError as e:
                raise BatchPersistenceError(f"Batch rejected: {e}") from e

        result = BatchUpsertResult()
        for item in items:
            existing_id = existing_id_map.get(item["supplier_product_id"])
            if existing_id is not None and existing_id in self.products:
                await self.update_product(existing_id, item)
                result.updated += 1
            else:
                await self.create_product(item)
                result.created += 1
        return result

    async def get_products_by_supplier(self, supplier_id: str) -> List[CatalogProduct]:
        return [p for p in self.products.values() if p.supplier_id == supplier_id]

    async def get_products_by_merchant(self, merchant_id: str) -> List[CatalogProduct]:
        return [p for p in self.products.values() if p.merchant_id == merchant_id]

    # -- suppliers, merchants, categories ---------------------------------

    async def get_active_suppliers(self) -> List[SupplierRecord]:
        return [s for s in self.suppliers.values() if s.is_active]

    async def get_supplier(self, supplier_id: str) -> Optional[SupplierRecord]:
        return self.suppliers.get(supplier_id)

    async def update_supplier(self, supplier_id: str, data: Mapping[str, Any]) -> SupplierRecord:
        if supplier_id not in self.suppliers:
            raise KeyError(f"Supplier {supplier_id} not found")
        changes = {k: v for k, v in data.items() if k in _SUPPLIER_FIELDS}
        supplier = replace(self.suppliers[supplier_id], **changes)
        self.suppliers[supplier_id] = supplier
        return supplier

    async def get_merchant(self, merchant_id: str) -> Optional[Merchant]:
        return self.merchants.get(merchant_id)

    async def get_categories_for_supplier(self, supplier_id: str) -> List[Category]:
        return [c for c in self.categories if c.supplier_id == supplier_id]

    @staticmethod
    def _validate(data: Mapping[str, Any]) -> None:
        for required in ("supplier_id", "supplier_product_id", "title"):
            if not data.get(required):
                raise ValueError(f"missing {required}")


__all__ = [
    "DEFAULT_LOW_STOCK_THRESHOLD",
    "CatalogProduct",
    "SupplierRecord",
    "Merchant",
    "Category",
    "BatchUpsertResult",
    "CatalogStore",
    "InMemoryCatalogStore",
]
