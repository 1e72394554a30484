"""
Error taxonomy for supplier synchronization.

Adapters raise SupplierAPIError for any upstream failure. The orchestrator
and engines translate the rest of this hierarchy into status entries rather
than letting them escape a sync cycle.
"""

from __future__ import annotations

from typing import Optional


class SupplySyncError(Exception):
    """Base exception for supplysync."""


class SupplierAPIError(SupplySyncError):
    """Upstream supplier API request failed.

    Carries the HTTP status and raw body so callers can tell a not-found
    apart from an outage.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
        supplier: str = "",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.supplier = supplier

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is None:
            return base
        return f"{base} (status={self.status_code})"


class SupplierConnectionError(SupplySyncError):
    """Supplier could not be reached or authenticated during a cycle."""


class CredentialsMissingError(SupplySyncError):
    """Supplier has no usable credentials configured."""


class InvalidCredentialsError(SupplySyncError):
    """Credentials do not match the shape required by the supplier type."""

    def __init__(self, supplier_type: str, missing_fields: list[str]):
        self.supplier_type = supplier_type
        self.missing_fields = missing_fields
        super().__init__(
            f"Invalid {supplier_type} credentials, missing: {', '.join(missing_fields)}"
        )


class UnsupportedSupplierTypeError(SupplySyncError):
    """No adapter is registered for the requested supplier type."""

    def __init__(self, supplier_type: str):
        self.supplier_type = supplier_type
        super().__init__(f"Unsupported supplier type: {supplier_type}")


class TransientItemError(SupplySyncError):
    """A single product failed to normalize, price or persist."""

    def __init__(self, supplier_product_id: str, reason: str):
        self.supplier_product_id = supplier_product_id
        super().__init__(f"Item {supplier_product_id} failed: {reason}")


class BatchPersistenceError(SupplySyncError):
    """Bulk insert into the catalog store failed."""


class CategorizationFallbackError(SupplySyncError):
    """The LLM categorization call failed or returned garbage."""


__all__ = [
    "SupplySyncError",
    "SupplierAPIError",
    "SupplierConnectionError",
    "CredentialsMissingError",
    "InvalidCredentialsError",
    "UnsupportedSupplierTypeError",
    "TransientItemError",
    "BatchPersistenceError",
    "CategorizationFallbackError",
]
