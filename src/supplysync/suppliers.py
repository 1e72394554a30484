"""
Supplier definition loader.

Each supplier lives in its own TOML file under the suppliers directory:

    [supplier]
    id = "giga-main"
    name = "GigaB2B Main"
    type = "gigab2b"
    is_active = true

    [supplier.credentials]
    base_url = "https://api.gigab2b.com"
    client_id = "..."
    client_secret = "..."

    [supplier.config]
    region = "us"
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from .adapters.registry import adapter_registry
from .catalog import SupplierRecord

logger = logging.getLogger(__name__)


class SupplierDefinition(BaseModel):
    """The ``[supplier]`` table of a supplier file."""

    id: str = ""
    name: str = ""
    type: str
    is_active: bool = True
    credentials: dict[str, Any] = Field(default_factory=dict)
    config: dict[str, Any] = Field(default_factory=dict)


def find_suppliers_dir(suppliers_dir: str | Path | None = None) -> Path:
    """Resolve the suppliers directory.

    Looks in order:
    1. explicit argument
    2. SUPPLIERS_DIR env var
    3. ./suppliers
    """
    if suppliers_dir:
        return Path(suppliers_dir)
    if env_dir := os.getenv("SUPPLIERS_DIR"):
        return Path(env_dir)
    return Path.cwd() / "suppliers"


def load_supplier_file(path: Path) -> SupplierRecord:
    """Load one supplier file. The file stem is the default id and name."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    definition = SupplierDefinition.model_validate(data.get("supplier", {}))
    if not adapter_registry.is_supported(definition.type):
        raise ValueError(f"Unsupported supplier type: {definition.type}")

    return SupplierRecord(
        id=definition.id or path.stem,
        name=definition.name or path.stem,
        type=definition.type.lower(),
        api_credentials=definition.credentials,
        config=definition.config,
        is_active=definition.is_active,
    )


def load_all_suppliers(suppliers_dir: str | Path | None = None) -> list[SupplierRecord]:
    """Load every ``*.toml`` supplier file; broken files are logged and skipped."""
    directory = find_suppliers_dir(suppliers_dir)
    if not directory.exists():
        logger.warning(f"Suppliers directory not found: {directory}")
        return []

    suppliers = []
    for toml_file in sorted(directory.glob("*.toml")):
        try:
            suppliers.append(load_supplier_file(toml_file))
        except Exception as e:
            logger.warning(f"Failed to load supplier {toml_file.name}: {e}")

    logger.info(f"Loaded {len(suppliers)} suppliers from {directory}")
    return suppliers


__all__ = ["SupplierDefinition", "find_suppliers_dir", "load_supplier_file", "load_all_suppliers"]
