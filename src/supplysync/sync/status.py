"""In-memory status records for the sync engines."""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


@dataclass
class SyncProgress:
    suppliers_total: int = 0
    suppliers_completed: int = 0
    products_total: int = 0
    products_processed: int = 0
    products_failed: int = 0


@dataclass
class SyncErrorEntry:
    supplier: str
    error: str
    timestamp: datetime = field(default_factory=utcnow)


@dataclass
class SyncStatus:
    """Supplier sync state. Errors are reset at the start of every cycle."""

    is_running: bool = False
    last_sync_at: Optional[datetime] = None
    next_sync_at: Optional[datetime] = None
    current_supplier: Optional[str] = None
    progress: SyncProgress = field(default_factory=SyncProgress)
    errors: List[SyncErrorEntry] = field(default_factory=list)
    skipped: bool = False

    def record_error(self, supplier: str, error: str) -> None:
        self.errors.append(SyncErrorEntry(supplier=supplier, error=error))

    def snapshot(self) -> "SyncStatus":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass
class InventorySyncStatus:
    is_running: bool = False
    last_sync_at: Optional[datetime] = None
    products_checked: int = 0
    products_updated: int = 0
    low_stock_alerts: int = 0
    errors: List[SyncErrorEntry] = field(default_factory=list)
    skipped: bool = False

    def snapshot(self) -> "InventorySyncStatus":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


__all__ = ["SyncProgress", "SyncErrorEntry", "SyncStatus", "InventorySyncStatus", "utcnow"]
