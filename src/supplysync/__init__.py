"""
supplysync - supplier integration and sync layer for a dropshipping catalog.

Provides:
- Supplier adapters that normalize signed-REST, GraphQL and REST commerce APIs
- SupplierSyncOrchestrator: scheduled catalog sync with dedup, pricing and categories
- InventoryReconciler: stock refresh with low-stock alerts

Usage:
    from supplysync import InMemoryCatalogStore, SupplierSyncOrchestrator

    store = InMemoryCatalogStore(suppliers=load_all_suppliers("suppliers"))
    orchestrator = SupplierSyncOrchestrator(store)
    status = await orchestrator.run_sync_cycle()
"""

__version__ = "0.1.0"

from .adapters import create_supplier_adapter, validate_credentials
from .catalog import CatalogStore, InMemoryCatalogStore, SupplierRecord
from .config import SyncConfig, get_config
from .suppliers import load_all_suppliers
from .sync import (
    CategorizationEngine,
    InventoryReconciler,
    SupplierSyncOrchestrator,
    UpsertEngine,
)

__all__ = [
    "__version__",
    # Adapters
    "create_supplier_adapter",
    "validate_credentials",
    # Catalog
    "CatalogStore",
    "InMemoryCatalogStore",
    "SupplierRecord",
    # Config
    "SyncConfig",
    "get_config",
    "load_all_suppliers",
    # Engines
    "CategorizationEngine",
    "InventoryReconciler",
    "SupplierSyncOrchestrator",
    "UpsertEngine",
]
