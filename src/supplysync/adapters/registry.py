"""Supplier adapter registry.

Maps a supplier type tag to the adapter class that speaks its API. This
mapping is the only place a new supplier integration has to be plugged in.

Usage:
    from supplysync.adapters.registry import adapter_registry

    @adapter_registry.register("acme")
    class AcmeAdapter:
        ...

    adapter = create_supplier_adapter("shopify", supplier.api_credentials)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Type

import httpx

from ..errors import UnsupportedSupplierTypeError
from .credentials import parse_credentials
from .http import DEFAULT_TIMEOUT
from .types import SupplierAdapter

logger = logging.getLogger(__name__)


@dataclass
class AdapterOptions:
    """Runtime knobs passed to every adapter constructor."""

    timeout: float = DEFAULT_TIMEOUT
    transport: Optional[httpx.AsyncBaseTransport] = None
    # Signed-REST batching; other adapters ignore these
    batch_size: int = 200
    batch_delay: float = 1.0


class AdapterRegistry:
    """Registry of adapter classes keyed by supplier type."""

    def __init__(self):
        self._adapters: Dict[str, Type[Any]] = {}

    def register(self, *supplier_types: str) -> Callable[[Type], Type]:
        """Decorator to register an adapter class for one or more types."""

        def decorator(cls: Type) -> Type:
            for supplier_type in supplier_types:
                self._adapters[supplier_type.lower()] = cls
                logger.debug(f"Registered adapter: {supplier_type} -> {cls.__name__}")
            return cls

        return decorator

    def get(self, supplier_type: str) -> Optional[Type[Any]]:
        return self._adapters.get((supplier_type or "").lower())

    def is_supported(self, supplier_type: str) -> bool:
        return self.get(supplier_type) is not None

    def list_types(self) -> list[str]:
        return sorted(self._adapters.keys())

    def create(
        self,
        supplier_type: str,
        credentials: Optional[Mapping[str, Any]],
        options: Optional[AdapterOptions] = None,
    ) -> SupplierAdapter:
        """Build an adapter from stored (untyped) credentials.

        Raises:
            UnsupportedSupplierTypeError: no adapter for this type
            InvalidCredentialsError: credentials lack required fields
        """
        cls = self.get(supplier_type)
        if cls is None:
            raise UnsupportedSupplierTypeError(supplier_type)

        typed = parse_credentials(supplier_type.lower(), credentials)
        return cls(typed, options or AdapterOptions())


# Global singleton
adapter_registry = AdapterRegistry()


def create_supplier_adapter(
    supplier_type: str,
    credentials: Optional[Mapping[str, Any]],
    options: Optional[AdapterOptions] = None,
) -> SupplierAdapter:
    """Create an adapter via the global registry."""
    return adapter_registry.create(supplier_type, credentials, options)


__all__ = [
    "AdapterOptions",
    "AdapterRegistry",
    "adapter_registry",
    "create_supplier_adapter",
]
