"""
httpx helpers shared by the REST-backed repositories.

Every request is sent exactly once. Network failures and timeouts become
``TransportError``; so do non-2xx responses to reads. Mutations hand the
raw response back so the caller can report the upstream status.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from asset_sync.repositories import TransportError

logger = logging.getLogger(__name__)

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


def create_http_client(
    base_url: str, email: str, api_token: str, timeout_seconds: float
) -> httpx.AsyncClient:
    """Build an ``AsyncClient`` using basic auth from email and API token."""
    return httpx.AsyncClient(
        base_url=base_url,
        auth=httpx.BasicAuth(email, api_token),
        headers=JSON_HEADERS,
        timeout=httpx.Timeout(timeout_seconds),
    )


async def send(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    params: Optional[Dict[str, Any]] = None,
    json: Any = None,
) -> httpx.Response:
    """Send one request, raising ``TransportError`` if no response came."""
    logger.debug(
        "Sending request",
        extra={"method": method, "path": path, "params": params},
    )
    try:
        response = await client.request(method, path, params=params, json=json)
    except httpx.HTTPError as e:
        logger.error(
            "Request failed",
            extra={"method": method, "path": path, "error": str(e)},
        )
        raise TransportError(f"{method} {path} failed: {e}") from e

    logger.debug(
        "Response received",
        extra={
            "method": method,
            "path": path,
            "status_code": response.status_code,
        },
    )
    return response


def decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise TransportError(
            f"{response.request.method} {response.request.url.path} "
            f"returned an undecodable body: {e}"
        ) from e


async def read_json(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    params: Optional[Dict[str, Any]] = None,
    json: Any = None,
) -> Any:
    """Send a read request and return the decoded JSON body.

    Raises:
        TransportError: On network failure, a non-2xx status (carried in
            ``status_code``) or a body that is not JSON.
    """
    response = await send(client, method, path, params=params, json=json)
    if not response.is_success:
        raise TransportError(
            f"{method} {path} returned {response.status_code}: "
            f"{response.text}",
            status_code=response.status_code,
        )
    return decode_json(response)
