"""
Supplier credentials as a tagged union keyed by supplier type.

Stored credentials are loose mappings (often camelCase, written by the admin
UI). parse_credentials() turns one into the typed variant for its supplier
type, so a signed-REST adapter can never be built from basic-auth fields.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..errors import InvalidCredentialsError


class _Credentials(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class GigaB2BCredentials(_Credentials):
    """HMAC-signed REST (client id/secret)."""

    type: Literal["gigab2b"] = "gigab2b"
    base_url: str = Field(alias="baseUrl", min_length=1)
    client_id: str = Field(alias="clientId", min_length=1)
    client_secret: str = Field(alias="clientSecret", min_length=1)


class ShopifyCredentials(_Credentials):
    """GraphQL Admin API (static access token)."""

    type: Literal["shopify"] = "shopify"
    store_domain: str = Field(alias="storeDomain", min_length=1)
    access_token: str = Field(alias="accessToken", min_length=1)


class WooCommerceCredentials(_Credentials):
    """REST API with Basic auth (consumer key/secret)."""

    type: Literal["woocommerce"] = "woocommerce"
    store_url: str = Field(alias="storeUrl", min_length=1)
    consumer_key: str = Field(alias="consumerKey", min_length=1)
    consumer_secret: str = Field(alias="consumerSecret", min_length=1)


class EndpointOverrides(_Credentials):
    products: str = "/products"
    inventory: str = "/inventory"
    orders: str = "/orders"
    tracking: str = "/tracking"


class CustomApiCredentials(_Credentials):
    """Generic REST API; everything but the base URL is optional."""

    type: Literal["custom", "amazon"] = "custom"
    base_url: str = Field(alias="baseUrl", min_length=1)
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    api_token: Optional[str] = Field(default=None, alias="apiToken")
    headers: Dict[str, str] = Field(default_factory=dict)
    endpoints: EndpointOverrides = Field(default_factory=EndpointOverrides)


SupplierCredentials = Annotated[
    Union[
        GigaB2BCredentials,
        ShopifyCredentials,
        WooCommerceCredentials,
        CustomApiCredentials,
    ],
    Field(discriminator="type"),
]

_credentials_adapter = TypeAdapter(SupplierCredentials)


REQUIRED_CREDENTIAL_FIELDS: Dict[str, Tuple[str, ...]] = {
    "gigab2b": ("base_url", "client_id", "client_secret"),
    "shopify": ("store_domain", "access_token"),
    "woocommerce": ("store_url", "consumer_key", "consumer_secret"),
    "custom": ("base_url",),
    "amazon": ("base_url",),
}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def get_required_credential_fields(supplier_type: str) -> Tuple[str, ...]:
    return REQUIRED_CREDENTIAL_FIELDS.get(supplier_type, ())


def validate_credentials(
    supplier_type: str, raw: Optional[Mapping[str, Any]]
) -> Tuple[bool, list[str]]:
    """Check the minimum required fields for a supplier type.

    Accepts snake_case and camelCase keys.

    Returns:
        (valid, missing_fields)
    """
    raw = raw or {}
    missing = [
        name
        for name in get_required_credential_fields(supplier_type)
        if not (raw.get(name) or raw.get(_camel(name)))
    ]
    return not missing, missing


def has_credentials(raw: Optional[Mapping[str, Any]]) -> bool:
    """True when any credential value is set at all."""
    return bool(raw) and any(v not in (None, "", {}) for v in raw.values())


def parse_credentials(supplier_type: str, raw: Optional[Mapping[str, Any]]) -> SupplierCredentials:
    """Build the typed credentials variant for a supplier type.

    Raises:
        InvalidCredentialsError: required fields missing or malformed
    """
    valid, missing = validate_credentials(supplier_type, raw)
    if not valid:
        raise InvalidCredentialsError(supplier_type, missing)

    payload = dict(raw or {})
    payload["type"] = supplier_type
    try:
        return _credentials_adapter.validate_python(payload)
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"][1:]) or "type" for err in e.errors()]
        raise InvalidCredentialsError(supplier_type, fields) from e


__all__ = [
    "GigaB2BCredentials",
    "ShopifyCredentials",
    "WooCommerceCredentials",
    "CustomApiCredentials",
    "EndpointOverrides",
    "SupplierCredentials",
    "REQUIRED_CREDENTIAL_FIELDS",
    "get_required_credential_fields",
    "validate_credentials",
    "has_credentials",
    "parse_credentials",
]
