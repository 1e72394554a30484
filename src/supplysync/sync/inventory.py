"""
Inventory reconciler.

Refreshes stock levels of catalog rows from their suppliers, writing only
rows whose quantity changed, and alerts merchants when a product drops to
or below its low-stock threshold.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..adapters.credentials import has_credentials
from ..adapters.registry import AdapterOptions, create_supplier_adapter
from ..catalog import CatalogProduct, CatalogStore
from ..notifications import Notifier, notify_low_stock
from .orchestrator import AdapterFactory
from .status import InventorySyncStatus, SyncErrorEntry, utcnow

logger = logging.getLogger(__name__)

INVENTORY_JOB_ID = "inventory_sync"


@dataclass
class InventorySyncResult:
    products_checked: int = 0
    products_updated: int = 0
    low_stock_alerts: int = 0
    errors: List[SyncErrorEntry] = field(default_factory=list)


class InventoryReconciler:
    """Reconciles catalog stock with supplier inventory."""

    def __init__(
        self,
        store: CatalogStore,
        notifier: Optional[Notifier] = None,
        adapter_options: Optional[AdapterOptions] = None,
        adapter_factory: AdapterFactory = create_supplier_adapter,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.adapter_options = adapter_options or AdapterOptions()
        self.adapter_factory = adapter_factory

        self.scheduler = scheduler or AsyncIOScheduler()
        self._owns_scheduler = scheduler is None
        self._lock = asyncio.Lock()
        self._status = InventorySyncStatus()

    def get_status(self) -> InventorySyncStatus:
        return self._status.snapshot()

    def start_auto_sync(self, interval_minutes: int = 30) -> None:
        self.scheduler.add_job(
            self.sync_global_inventory,
            trigger=IntervalTrigger(minutes=interval_minutes),
            id=INVENTORY_JOB_ID,
            name="Global Inventory Sync",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info(f"Inventory auto-sync scheduled every {interval_minutes} min")

    def stop_auto_sync(self) -> None:
        try:
            self.scheduler.remove_job(INVENTORY_JOB_ID)
        except JobLookupError:
            pass
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Inventory auto-sync stopped")

    async def sync_merchant_inventory(self, merchant_id: str) -> InventorySyncResult:
        """Reconcile the products one merchant sells."""
        products = await self.store.get_products_by_merchant(merchant_id)
        logger.info(f"Inventory sync for merchant {merchant_id}: {len(products)} products")
        return await self._reconcile(products)

    async def sync_global_inventory(self) -> InventorySyncStatus:
        """Reconcile every product of every active supplier."""
        if self._lock.locked():
            logger.info("Global inventory sync already in progress, skipping this run")
            return InventorySyncStatus(
                is_running=True, last_sync_at=self._status.last_sync_at, skipped=True
            )

        async with self._lock:
            status = self._status
            status.is_running = True
            status.skipped = False
            try:
                products: List[CatalogProduct] = []
                for supplier in await self.store.get_active_suppliers():
                    products.extend(await self.store.get_products_by_supplier(supplier.id))

                result = await self._reconcile(products)
                status.products_checked = result.products_checked
                status.products_updated = result.products_updated
                status.low_stock_alerts = result.low_stock_alerts
                status.errors = result.errors
            except Exception as e:
                logger.exception("Global inventory sync failed")
                status.errors = [SyncErrorEntry(supplier="inventory", error=str(e))]
            finally:
                status.is_running = False
                status.last_sync_at = utcnow()

            logger.info(
                f"Global inventory sync finished: {status.products_updated}/"
                f"{status.products_checked} updated, {status.low_stock_alerts} low-stock alerts"
            )
            return status.snapshot()

    async def _reconcile(self, products: Sequence[CatalogProduct]) -> InventorySyncResult:
        result = InventorySyncResult()

        by_supplier: Dict[str, List[CatalogProduct]] = defaultdict(list)
        for product in products:
            by_supplier[product.supplier_id].append(product)

        for supplier_id, rows in by_supplier.items():
            try:
                await self._reconcile_supplier(supplier_id, rows, result)
            except Exception as e:
                logger.error(f"Inventory sync for supplier {supplier_id} failed: {e}")
                result.errors.append(SyncErrorEntry(supplier=supplier_id, error=str(e)))
        return result

    async def _reconcile_supplier(
        self, supplier_id: str, rows: List[CatalogProduct], result: InventorySyncResult
    ) -> None:
        supplier = await self.store.get_supplier(supplier_id)
        if supplier is None or not supplier.is_active:
            logger.debug(f"Inventory sync: supplier {supplier_id} missing or inactive")
            return
        if not has_credentials(supplier.api_credentials):
            logger.debug(f"Inventory sync: supplier {supplier.name} has no credentials")
            return

        adapter = self.adapter_factory(supplier.type, supplier.api_credentials, self.adapter_options)
        try:
            inventory = await adapter.fetch_inventory(
                list(dict.fromkeys(row.supplier_product_id for row in rows))
            )
        finally:
            await adapter.aclose()

        totals: Dict[str, int] = defaultdict(int)
        for item in inventory:
            totals[item.supplier_product_id] += item.quantity

        for row in rows:
            result.products_checked += 1
            if row.supplier_product_id not in totals:
                continue

            new_quantity = totals[row.supplier_product_id]
            old_quantity = row.inventory_quantity
            if new_quantity == old_quantity:
                continue

            try:
                updated = await self.store.update_product(
                    row.id, {"inventory_quantity": new_quantity}
                )
                result.products_updated += 1

                if new_quantity < old_quantity and new_quantity <= row.low_stock_threshold:
                    if await self._alert_low_stock(updated):
                        result.low_stock_alerts += 1
            except Exception as e:
                logger.warning(
                    f"Inventory sync: product {row.supplier_product_id} of {supplier.name} failed: {e}"
                )
                result.errors.append(
                    SyncErrorEntry(supplier=supplier_id, error=f"{row.supplier_product_id}: {e}")
                )

    async def _alert_low_stock(self, product: CatalogProduct) -> bool:
        if not product.merchant_id:
            return False
        merchant = await self.store.get_merchant(product.merchant_id)
        if merchant is None:
            return False
        return await notify_low_stock(self.notifier, merchant, product)


__all__ = ["InventoryReconciler", "InventorySyncResult", "INVENTORY_JOB_ID"]
