"""
Service wiring and the long-running scheduler.

Builds the store, engines and one shared AsyncIOScheduler from SyncConfig,
then runs the supplier sync and inventory auto-sync timers until stopped.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .adapters.registry import AdapterOptions
from .catalog import CatalogStore, InMemoryCatalogStore
from .config import SyncConfig, get_config
from .notifications import LoggingNotifier, Notifier
from .suppliers import load_all_suppliers
from .sync.categorization import CategorizationEngine, RouterCategoryClassifier
from .sync.inventory import InventoryReconciler
from .sync.orchestrator import SupplierSyncOrchestrator
from .sync.upsert import UpsertEngine

logger = logging.getLogger(__name__)


@dataclass
class SyncService:
    config: SyncConfig
    store: CatalogStore
    orchestrator: SupplierSyncOrchestrator
    reconciler: InventoryReconciler
    scheduler: AsyncIOScheduler
    classifier: Optional[RouterCategoryClassifier] = None

    def start(self) -> None:
        self.orchestrator.start(self.config.sync.initial_delay_seconds)
        self.reconciler.start_auto_sync(self.config.inventory.interval_minutes)

    async def stop(self) -> None:
        self.orchestrator.stop()
        self.reconciler.stop_auto_sync()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        if self.classifier is not None:
            await self.classifier.aclose()
        logger.info("Sync service stopped")


def build_service(
    config: Optional[SyncConfig] = None,
    store: Optional[CatalogStore] = None,
    notifier: Optional[Notifier] = None,
) -> SyncService:
    """Wire a SyncService. Without a store, suppliers are loaded from TOML files."""
    config = config or get_config()
    if store is None:
        store = InMemoryCatalogStore(suppliers=load_all_suppliers(config.suppliers_dir))
    notifier = notifier or LoggingNotifier()

    classifier = None
    cat_cfg = config.categorization
    if cat_cfg.enabled:
        classifier = RouterCategoryClassifier(
            router_url=cat_cfg.router_url,
            api_key=cat_cfg.router_api_key,
            model=cat_cfg.router_model,
            timeout=cat_cfg.timeout,
        )
    else:
        logger.info("CONTEXT_ROUTER_API_KEY not set, AI categorization disabled")

    adapter_options = AdapterOptions(
        timeout=config.http_timeout,
        batch_size=config.gigab2b.batch_size,
        batch_delay=config.gigab2b.batch_delay,
    )
    scheduler = AsyncIOScheduler()

    upsert_engine = UpsertEngine(
        store,
        categorizer=CategorizationEngine(store, classifier),
        low_stock_threshold=config.inventory.low_stock_threshold,
    )
    orchestrator = SupplierSyncOrchestrator(
        store,
        upsert_engine,
        notifier=notifier,
        interval_minutes=config.sync.interval_minutes,
        initial_delay_seconds=config.sync.initial_delay_seconds,
        page_size=config.sync.page_size,
        page_delay=config.sync.page_delay,
        adapter_options=adapter_options,
        scheduler=scheduler,
    )
    reconciler = InventoryReconciler(
        store,
        notifier=notifier,
        adapter_options=adapter_options,
        scheduler=scheduler,
    )
    return SyncService(
        config=config,
        store=store,
        orchestrator=orchestrator,
        reconciler=reconciler,
        scheduler=scheduler,
        classifier=classifier,
    )


async def run_scheduler(config: Optional[SyncConfig] = None) -> None:
    """Run both timers until cancelled."""
    service = build_service(config)
    service.start()
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await service.stop()


__all__ = ["SyncService", "build_service", "run_scheduler"]
