"""
Configuration for supplysync.

Uses Pydantic for validation and environment loading.
"""

import os
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupplierSyncConfig(BaseModel):
    """Supplier catalog sync cycle."""

    interval_minutes: int = Field(default=15, ge=1, description="Minutes between sync cycles")
    initial_delay_seconds: int = Field(
        default=60, ge=0, description="Delay before the first cycle after start"
    )
    page_size: int = Field(default=250, ge=1, description="Products requested per page")
    page_delay: float = Field(default=0.1, ge=0, description="Pause between pages (seconds)")


class SignedRestConfig(BaseModel):
    """Rate limits for the signed-REST (gigab2b) supplier API."""

    batch_size: int = Field(default=200, ge=1, le=200, description="SKUs per lookup batch")
    batch_delay: float = Field(default=1.0, ge=1.0, description="Seconds between lookup batches")


class InventoryConfig(BaseModel):
    interval_minutes: int = Field(default=30, ge=1, description="Minutes between inventory runs")
    low_stock_threshold: int = Field(
        default=10, ge=0, description="Default threshold for new catalog rows"
    )


class CategorizationConfig(BaseModel):
    """LLM fallback for product categorization (via Router)."""

    router_url: str = Field(default="http://localhost:8080", description="Router HTTP endpoint")
    router_api_key: str = Field(default="", description="Router API key")
    router_model: str = Field(default="google/gemini-2.5-flash-lite")
    timeout: float = Field(default=30.0, description="Classifier request timeout in seconds")

    @property
    def enabled(self) -> bool:
        return bool(self.router_api_key)


class SyncConfig(BaseSettings):
    """Master configuration for supplysync."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    # Service identity
    service_name: str = Field(default="supplysync")
    log_level: str = Field(default="INFO")
    http_timeout: float = Field(default=30.0, description="Supplier API timeout in seconds")

    # Directory of supplier TOML definitions
    suppliers_dir: str = Field(default="suppliers")

    sync: SupplierSyncConfig = Field(default_factory=SupplierSyncConfig)
    gigab2b: SignedRestConfig = Field(default_factory=SignedRestConfig)
    inventory: InventoryConfig = Field(default_factory=InventoryConfig)
    categorization: CategorizationConfig = Field(default_factory=CategorizationConfig)

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """Load configuration from environment variables."""
        return cls(
            service_name=os.getenv("SERVICE_NAME", "supplysync"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            http_timeout=float(os.getenv("HTTP_TIMEOUT", "30.0")),
            suppliers_dir=os.getenv("SUPPLIERS_DIR", "suppliers"),
            sync=SupplierSyncConfig(
                interval_minutes=int(os.getenv("SUPPLIER_SYNC_INTERVAL_MIN", "15")),
                initial_delay_seconds=int(os.getenv("SUPPLIER_SYNC_INITIAL_DELAY_SEC", "60")),
                page_size=int(os.getenv("SUPPLIER_SYNC_PAGE_SIZE", "250")),
                page_delay=float(os.getenv("SUPPLIER_SYNC_PAGE_DELAY", "0.1")),
            ),
            gigab2b=SignedRestConfig(
                batch_size=int(os.getenv("GIGAB2B_BATCH_SIZE", "200")),
                batch_delay=float(os.getenv("GIGAB2B_BATCH_DELAY", "1.0")),
            ),
            inventory=InventoryConfig(
                interval_minutes=int(os.getenv("INVENTORY_SYNC_INTERVAL_MIN", "30")),
                low_stock_threshold=int(os.getenv("LOW_STOCK_THRESHOLD", "10")),
            ),
            categorization=CategorizationConfig(
                router_url=os.getenv("CONTEXT_ROUTER_URL", "http://localhost:8080"),
                router_api_key=os.getenv("CONTEXT_ROUTER_API_KEY", ""),
                router_model=os.getenv("CONTEXT_ROUTER_MODEL", "google/gemini-2.5-flash-lite"),
                timeout=float(os.getenv("HTTP_TIMEOUT", "30.0")),
            ),
        )


@lru_cache
def get_config() -> SyncConfig:
    """Process-wide configuration, read once from the environment."""
    return SyncConfig.from_env()


__all__ = [
    "SupplierSyncConfig",
    "SignedRestConfig",
    "InventoryConfig",
    "CategorizationConfig",
    "SyncConfig",
    "get_config",
]
