"""
Notification collaborator.

Notifications are best-effort: the helpers here log and swallow failures so
a broken mail relay never fails a sync.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from .catalog import CatalogProduct, Merchant
    from .sync.status import SyncStatus

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def send_low_stock_alert(self, merchant: "Merchant", product: "CatalogProduct") -> None: ...

    async def send_sync_completed(self, status: "SyncStatus") -> None: ...


class LoggingNotifier:
    """Default notifier: writes alerts to the log."""

    async def send_low_stock_alert(self, merchant: "Merchant", product: "CatalogProduct") -> None:
        logger.warning(
            f"Low stock for merchant {merchant.id}: '{product.title}' "
            f"({product.supplier_product_id}) at {product.inventory_quantity} units"
        )

    async def send_sync_completed(self, status: "SyncStatus") -> None:
        progress = status.progress
        logger.info(
            f"Supplier sync finished: {progress.suppliers_completed}/{progress.suppliers_total} suppliers, "
            f"{progress.products_processed} products, {progress.products_failed} failed"
        )


async def notify_low_stock(
    notifier: Optional[Notifier], merchant: "Merchant", product: "CatalogProduct"
) -> bool:
    """Dispatch a low-stock alert. Returns False when delivery failed."""
    if notifier is None:
        return False
    try:
        await notifier.send_low_stock_alert(merchant, product)
        return True
    except Exception:
        logger.exception(f"Low stock alert failed for product {product.id}")
        return False


async def notify_sync_completed(notifier: Optional[Notifier], status: "SyncStatus") -> bool:
    if notifier is None:
        return False
    try:
        await notifier.send_sync_completed(status)
        return True
    except Exception:
        logger.exception("Sync completed notification failed")
        return False


__all__ = ["Notifier", "LoggingNotifier", "notify_low_stock", "notify_sync_completed"]
