"""
Sync engines.

Components:
- orchestrator: scheduled supplier catalog sync
- upsert: dedup, pricing and category rules for catalog writes
- categorization: keyword rules with LLM fallback
- inventory: stock reconciliation and low-stock alerts
- status: in-memory status records
"""

from .categorization import CategorizationEngine, CategoryMatch, RouterCategoryClassifier
from .inventory import InventoryReconciler, InventorySyncResult
from .orchestrator import SupplierSyncOrchestrator
from .status import InventorySyncStatus, SyncStatus
from .upsert import UpsertEngine, UpsertSummary, compute_merchant_price

__all__ = [
    "CategorizationEngine",
    "CategoryMatch",
    "RouterCategoryClassifier",
    "InventoryReconciler",
    "InventorySyncResult",
    "SupplierSyncOrchestrator",
    "InventorySyncStatus",
    "SyncStatus",
    "UpsertEngine",
    "UpsertSummary",
    "compute_merchant_price",
]
