"""
Confluence implementation of the DocumentStoreRepository protocol.

Uses the content REST API (``{site}/wiki/rest/api``). Page bodies are sent
in storage representation.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from asset_sync.config import AssetSyncSettings
from asset_sync.domain import WikiPage
from asset_sync.repos.http import (
    create_http_client,
    decode_json,
    read_json,
    send,
)
from asset_sync.repositories import DocumentStoreRepository, TransportError

logger = logging.getLogger(__name__)


def create_wiki_client(settings: AssetSyncSettings) -> httpx.AsyncClient:
    email, token = settings.wiki_credentials()
    return create_http_client(
        settings.document_store.base_url.rstrip("/"),
        email,
        token,
        settings.document_store.timeout_seconds,
    )


def _wire_to_page(
    item: Dict[str, Any], base_link: Optional[str] = None
) -> WikiPage:
    """Converts a content entity to a WikiPage."""
    links = item.get("_links") or {}
    base = links.get("base") or base_link
    webui = links.get("webui")
    return WikiPage(
        page_id=str(item["id"]),
        title=item["title"],
        version=(item.get("version") or {}).get("number", 1),
        url=f"{base}{webui}" if base and webui else None,
    )


def _storage_body(body: str) -> Dict[str, Any]:
    return {"storage": {"value": body, "representation": "storage"}}


class ConfluenceDocumentStoreRepository(DocumentStoreRepository):
    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def find_page(
        self, space_key: str, title: str
    ) -> Optional[WikiPage]:
        data = await read_json(
            self._client,
            "GET",
            "/content",
            params={
                "spaceKey": space_key,
                "title": title,
                "type": "page",
                "expand": "version",
            },
        )
        try:
            results = data.get("results") or []
            base_link = (data.get("_links") or {}).get("base")
            pages = [_wire_to_page(r, base_link) for r in results]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise TransportError(
                f"Unexpected page search response for {title!r}: {e}"
            ) from e

        # The title filter is exact but case-insensitive on some sites.
        for page in pages:
            if page.title == title:
                return page
        return None

    async def create_page(
        self, space_key: str, title: str, body: str
    ) -> WikiPage:
        payload = {
            "type": "page",
            "title": title,
            "space": {"key": space_key},
            "body": _storage_body(body),
        }
        response = await send(self._client, "POST", "/content", json=payload)
        page = self._page_from_write(response, "create", title)
        logger.info(
            "Wiki page created",
            extra={"page_id": page.page_id, "url": page.url},
        )
        return page

    async def update_page(
        self, page_id: str, title: str, body: str, version: int
    ) -> WikiPage:
        payload = {
            "id": page_id,
            "type": "page",
            "title": title,
            "version": {"number": version},
            "body": _storage_body(body),
        }
        response = await send(
            self._client, "PUT", f"/content/{page_id}", json=payload
        )
        page = self._page_from_write(response, "update", title)
        logger.info(
            "Wiki page updated",
            extra={"page_id": page.page_id, "version": page.version},
        )
        return page

    @staticmethod
    def _page_from_write(
        response: httpx.Response, action: str, title: str
    ) -> WikiPage:
        if not response.is_success:
            raise TransportError(
                f"Wiki refused to {action} page {title!r}: "
                f"{response.status_code} {response.text}",
                status_code=response.status_code,
            )
        data = decode_json(response)
        try:
            return _wire_to_page(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise TransportError(
                f"Unexpected response after page {action}: {e}"
            ) from e
