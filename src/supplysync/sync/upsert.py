"""
Upsert and pricing engine.

Products are keyed by (supplier_id, supplier_product_id); repeated syncs of
the same upstream product update one catalog row. category_id is only set by
an admin; rows carrying one keep their category across syncs. Automatic
matches write the category name alone and are re-evaluated on every sync.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence

from ..adapters.types import NormalizedProduct
from ..catalog import DEFAULT_LOW_STOCK_THRESHOLD, CatalogProduct, CatalogStore, SupplierRecord
from ..errors import TransientItemError
from .categorization import CategorizationEngine
from .status import utcnow

logger = logging.getLogger(__name__)

MARKUP_SUPPLIER_TYPES = {"gigab2b"}
MARKUP_MULTIPLIER = Decimal("1.6")
UNCATEGORIZED = "Uncategorized"


def compute_merchant_price(supplier_type: str, base_price: float) -> float:
    """Merchant-facing price for a supplier price.

    Marked-up suppliers get base x 1.6 rounded half-up to cents; the rest
    pass through unchanged.
    """
    if supplier_type not in MARKUP_SUPPLIER_TYPES:
        return float(base_price)
    marked_up = (Decimal(str(base_price)) * MARKUP_MULTIPLIER).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )
    return float(marked_up)


@dataclass
class UpsertSummary:
    created: int = 0
    updated: int = 0
    failed: int = 0


class UpsertEngine:
    """Writes normalized products into the catalog store."""

    def __init__(
        self,
        store: CatalogStore,
        categorizer: Optional[CategorizationEngine] = None,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ):
        self.store = store
        self.categorizer = categorizer
        self.low_stock_threshold = low_stock_threshold

    def build_payload(self, supplier: SupplierRecord, product: NormalizedProduct) -> Dict[str, Any]:
        """Catalog fields for a product, excluding category fields."""
        return {
            "supplier_id": supplier.id,
            "supplier_product_id": product.supplier_product_id,
            "title": product.title,
            "description": product.description,
            "tags": list(product.tags),
            "images": [asdict(image) for image in product.images],
            "variants": [asdict(variant) for variant in product.variants],
            "supplier_sku": product.supplier_sku,
            "supplier_price": product.supplier_price,
            "merchant_price": compute_merchant_price(supplier.type, product.supplier_price),
            "inventory_quantity": product.total_inventory,
            "status": "active",
            "sync_status": "synced",
            "is_global": True,
            "last_synced_at": utcnow(),
        }

    async def _category_fields(
        self, supplier: SupplierRecord, product: NormalizedProduct
    ) -> Dict[str, Any]:
        if self.categorizer is not None:
            match = await self.categorizer.categorize(
                supplier.id,
                supplier.type,
                product.title,
                product.description,
                product.category,
            )
            if match is not None:
                return {"category": match.category_name}
        return {"category": product.category or UNCATEGORIZED}

    async def prepare(
        self,
        supplier: SupplierRecord,
        product: NormalizedProduct,
        existing: Optional[CatalogProduct],
    ) -> Dict[str, Any]:
        payload = self.build_payload(supplier, product)
        if existing is None:
            payload["low_stock_threshold"] = self.low_stock_threshold
        if existing is None or existing.category_id is None:
            payload.update(await self._category_fields(supplier, product))
        return payload

    async def upsert_product(self, supplier: SupplierRecord, product: NormalizedProduct) -> str:
        """Create or update one product.

        Returns:
            "created" or "updated"

        Raises:
            TransientItemError: lookup, categorization or write failed
        """
        try:
            existing = await self.store.get_products_by_supplier_product_id(
                supplier.id, product.supplier_product_id
            )
            payload = await self.prepare(supplier, product, existing)
            if existing is None:
                await self.store.create_product(payload)
                return "created"
            await self.store.update_product(existing.id, payload)
            return "updated"
        except TransientItemError:
            raise
        except Exception as e:
            raise TransientItemError(product.supplier_product_id, str(e)) from e

    async def upsert_many(
        self, supplier: SupplierRecord, products: Sequence[NormalizedProduct]
    ) -> UpsertSummary:
        """Bulk upsert with per-row fallback when the batch write fails."""
        summary = UpsertSummary()
        if not products:
            return summary

        try:
            payloads: List[Dict[str, Any]] = []
            existing_ids: Dict[str, int] = {}
            for product in products:
                existing = await self.store.get_products_by_supplier_product_id(
                    supplier.id, product.supplier_product_id
                )
                if existing is not None:
                    existing_ids[product.supplier_product_id] = existing.id
                payloads.append(await self.prepare(supplier, product, existing))

            result = await self.store.batch_upsert_products(payloads, existing_ids)
            summary.created = result.created
            summary.updated = result.updated
            summary.failed = len(result.errors)
            for error in result.errors:
                logger.error(f"Batch upsert for supplier {supplier.id} rejected row: {error}")
            return summary
        except Exception as e:
            logger.warning(
                f"Batch upsert of {len(products)} products for supplier {supplier.id} failed, "
                f"falling back to per-row writes: {e}"
            )

        for product in products:
            try:
                outcome = await self.upsert_product(supplier, product)
            except TransientItemError as e:
                logger.error(str(e))
                summary.failed += 1
                continue
            if outcome == "created":
                summary.created += 1
            else:
                summary.updated += 1
        return summary


__all__ = ["UpsertEngine", "UpsertSummary", "compute_merchant_price", "MARKUP_SUPPLIER_TYPES"]
