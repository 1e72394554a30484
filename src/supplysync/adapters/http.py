"""HTTP plumbing shared by the adapters (client factory, error mapping)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from ..errors import SupplierAPIError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "supplysync/0.1"


def build_client(
    base_url: str = "",
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    auth: Optional[httpx.Auth] = None,
) -> httpx.AsyncClient:
    """Create the AsyncClient an adapter owns for its lifetime."""
    merged: Dict[str, str] = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    if headers:
        merged.update(headers)
    return httpx.AsyncClient(
        base_url=base_url,
        headers=merged,
        timeout=timeout,
        transport=transport,
        auth=auth,
    )


def check_response(response: httpx.Response, supplier: str) -> None:
    """Raise SupplierAPIError for any non-2xx response."""
    if response.is_success:
        return
    body = response.text
    raise SupplierAPIError(
        f"{supplier} API error: {response.status_code} - {body[:500]}",
        status_code=response.status_code,
        body=body,
        supplier=supplier,
    )


def decode_json(response: httpx.Response, supplier: str) -> Any:
    """Parse a JSON body, surfacing malformed payloads as SupplierAPIError."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise SupplierAPIError(
            f"{supplier} returned invalid JSON: {e}",
            status_code=response.status_code,
            body=response.text,
            supplier=supplier,
        ) from e


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    supplier: str,
    **kwargs: Any,
) -> httpx.Response:
    """Send a request, wrapping transport failures in SupplierAPIError."""
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        raise SupplierAPIError(f"{supplier} request failed: {e}", supplier=supplier) from e
    check_response(response, supplier)
    return response


def first_present(data: Optional[Mapping[str, Any]], *keys: str, default: Any = None) -> Any:
    """Return the first value under keys that is not None."""
    if not isinstance(data, Mapping):
        return default
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default
