"""
Supplier sync orchestrator.

Polls every active supplier on a schedule: build adapter -> test connection
-> page through products -> upsert each item. Suppliers run one after
another; a failing supplier is recorded and the cycle moves on.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any, Callable, Mapping, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..adapters.credentials import has_credentials
from ..adapters.registry import AdapterOptions, create_supplier_adapter
from ..adapters.types import ConnectionTestResult, SupplierAdapter
from ..catalog import CatalogStore, SupplierRecord
from ..errors import (
    CredentialsMissingError,
    SupplierConnectionError,
    SupplySyncError,
    TransientItemError,
)
from ..notifications import Notifier, notify_sync_completed
from .status import SyncProgress, SyncStatus, utcnow
from .upsert import UpsertEngine

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "supplier_sync"
INITIAL_SYNC_JOB_ID = "supplier_sync_initial"

AdapterFactory = Callable[[str, Optional[Mapping[str, Any]], Optional[AdapterOptions]], SupplierAdapter]


class SupplierSyncOrchestrator:
    """Runs supplier catalog sync cycles, at most one at a time."""

    def __init__(
        self,
        store: CatalogStore,
        upsert_engine: Optional[UpsertEngine] = None,
        notifier: Optional[Notifier] = None,
        interval_minutes: int = 15,
        initial_delay_seconds: int = 60,
        page_size: int = 250,
        page_delay: float = 0.1,
        adapter_options: Optional[AdapterOptions] = None,
        adapter_factory: AdapterFactory = create_supplier_adapter,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.store = store
        self.upsert_engine = upsert_engine or UpsertEngine(store)
        self.notifier = notifier
        self.interval_minutes = interval_minutes
        self.initial_delay_seconds = initial_delay_seconds
        self.page_size = page_size
        self.page_delay = page_delay
        self.adapter_options = adapter_options or AdapterOptions()
        self.adapter_factory = adapter_factory

        self.scheduler = scheduler or AsyncIOScheduler()
        self._owns_scheduler = scheduler is None
        self._lock = asyncio.Lock()
        self._status = SyncStatus()

    @property
    def interval(self) -> timedelta:
        return timedelta(minutes=self.interval_minutes)

    def is_running(self) -> bool:
        return self._lock.locked()

    def get_status(self) -> SyncStatus:
        return self._status.snapshot()

    # ------------------------------------------------------------------
    # Timer lifecycle
    # ------------------------------------------------------------------

    def start(self, initial_delay: Optional[float] = None) -> None:
        """Schedule the recurring cycle plus a one-shot initial run."""
        delay = self.initial_delay_seconds if initial_delay is None else initial_delay
        first_run = utcnow() + timedelta(seconds=delay)

        self.scheduler.add_job(
            self.run_sync_cycle,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=SYNC_JOB_ID,
            name="Supplier Catalog Sync",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.add_job(
            self.run_sync_cycle,
            trigger=DateTrigger(run_date=first_run),
            id=INITIAL_SYNC_JOB_ID,
            name="Supplier Catalog Sync (initial)",
            replace_existing=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()

        self._status.next_sync_at = first_run
        logger.info(
            f"Supplier sync scheduled every {self.interval_minutes} min, first run in {delay}s"
        )

    def stop(self) -> None:
        """Remove the timers. A cycle already in flight runs to completion."""
        for job_id in (SYNC_JOB_ID, INITIAL_SYNC_JOB_ID):
            try:
                self.scheduler.remove_job(job_id)
            except JobLookupError:
                pass
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Supplier sync stopped")

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def run_sync_cycle(self) -> SyncStatus:
        """Sync all active suppliers once.

        Returns:
            Status snapshot; ``skipped`` is set when a cycle was already running.
        """
        if self._lock.locked():
            logger.info("Supplier sync already in progress, skipping this run")
            return SyncStatus(
                is_running=True,
                last_sync_at=self._status.last_sync_at,
                next_sync_at=self._status.next_sync_at,
                skipped=True,
            )

        async with self._lock:
            status = self._status
            status.is_running = True
            status.skipped = False
            status.errors = []
            status.progress = SyncProgress()
            status.current_supplier = None
            logger.info("Supplier sync cycle started")

            try:
                suppliers = await self.store.get_active_suppliers()
                status.progress.suppliers_total = len(suppliers)

                for supplier in suppliers:
                    status.current_supplier = supplier.name
                    try:
                        await self.sync_supplier(supplier)
                    except CredentialsMissingError as e:
                        logger.info(f"Skipping supplier {supplier.name}: {e}")
                    except Exception as e:
                        logger.error(f"Supplier {supplier.name} sync failed: {e}")
                        status.record_error(supplier.name, str(e))
                    status.progress.suppliers_completed += 1
            except Exception as e:
                logger.exception("Supplier sync cycle failed")
                status.record_error("orchestrator", str(e))
            finally:
                finished = utcnow()
                status.is_running = False
                status.current_supplier = None
                status.last_sync_at = finished
                status.next_sync_at = finished + self.interval

            progress = status.progress
            logger.info(
                f"Supplier sync cycle finished: {progress.suppliers_completed}/{progress.suppliers_total} "
                f"suppliers, {progress.products_processed} products, "
                f"{progress.products_failed} failed, {len(status.errors)} errors"
            )
            snapshot = status.snapshot()

        await notify_sync_completed(self.notifier, snapshot)
        return snapshot

    def build_adapter(self, supplier: SupplierRecord) -> SupplierAdapter:
        return self.adapter_factory(supplier.type, supplier.api_credentials, self.adapter_options)

    async def sync_supplier(self, supplier: SupplierRecord) -> int:
        """Sync one supplier. Returns the number of products written.

        Raises:
            CredentialsMissingError: supplier has no credentials configured
            SupplierConnectionError: connection test failed
        """
        if not has_credentials(supplier.api_credentials):
            raise CredentialsMissingError("no credentials configured")

        adapter = self.build_adapter(supplier)
        try:
            result = await adapter.test_connection()
            await self._record_connection(supplier, result)
            if not result.success:
                raise SupplierConnectionError(
                    f"Connection to {supplier.name} failed: {result.message}"
                )

            written = await self._sync_products(supplier, adapter)

            synced_at = utcnow()
            config = dict(supplier.config or {})
            config["last_sync_at"] = synced_at.isoformat()
            config["next_sync_at"] = (synced_at + self.interval).isoformat()
            catalog_rows = await self.store.get_products_by_supplier(supplier.id)
            await self.store.update_supplier(
                supplier.id, {"total_products": len(catalog_rows), "config": config}
            )
            logger.info(f"Supplier {supplier.name}: {written} products synced")
            return written
        finally:
            await adapter.aclose()

    async def _record_connection(
        self, supplier: SupplierRecord, result: ConnectionTestResult
    ) -> None:
        if result.success:
            changes = {"connection_status": "connected", "connection_error": None}
        else:
            changes = {"connection_status": "error", "connection_error": result.message}
        changes["last_connection_test"] = utcnow()
        await self.store.update_supplier(supplier.id, changes)

    async def _sync_products(self, supplier: SupplierRecord, adapter: SupplierAdapter) -> int:
        progress = self._status.progress
        written = 0
        page = 1
        cursor: Optional[str] = None

        while True:
            result = await adapter.fetch_products(page=page, page_size=self.page_size, cursor=cursor)
            if not result.items:
                break

            progress.products_total += len(result.items)
            for product in result.items:
                try:
                    await self.upsert_engine.upsert_product(supplier, product)
                except TransientItemError as e:
                    logger.warning(f"Supplier {supplier.name}: {e}")
                    progress.products_failed += 1
                    continue
                progress.products_processed += 1
                written += 1

            logger.debug(
                f"Supplier {supplier.name}: page {page} done ({len(result.items)} items, "
                f"{written} written so far)"
            )
            if not result.has_more:
                break

            if result.next_cursor:
                cursor = result.next_cursor
            else:
                page += 1
            await asyncio.sleep(self.page_delay)

        return written

    async def test_supplier(self, supplier_id: str) -> ConnectionTestResult:
        """Run a connection test for one supplier and persist the outcome."""
        supplier = await self.store.get_supplier(supplier_id)
        if supplier is None:
            return ConnectionTestResult(success=False, message=f"Supplier {supplier_id} not found")
        if not has_credentials(supplier.api_credentials):
            return ConnectionTestResult(success=False, message="No credentials configured")

        try:
            adapter = self.build_adapter(supplier)
        except SupplySyncError as e:
            result = ConnectionTestResult(success=False, message=str(e))
        else:
            try:
                result = await adapter.test_connection()
            finally:
                await adapter.aclose()
        await self._record_connection(supplier, result)
        return result


__all__ = ["SupplierSyncOrchestrator", "SYNC_JOB_ID", "INITIAL_SYNC_JOB_ID"]
