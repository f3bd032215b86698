"""
Memory implementation of DocumentStoreRepository.

Pages live in a dictionary keyed by page id. Updates must carry the next
version number, as the wiki requires; anything else is rejected with 409.
"""

import logging
from typing import Dict, Optional

from asset_sync.domain import WikiPage
from asset_sync.repositories import DocumentStoreRepository, TransportError

logger = logging.getLogger(__name__)


class MemoryDocumentStoreRepository(DocumentStoreRepository):
    def __init__(self, fail_writes_with: Optional[int] = None) -> None:
        self.fail_writes_with = fail_writes_with
        self.pages: Dict[str, WikiPage] = {}
        self.spaces: Dict[str, str] = {}
        self.bodies: Dict[str, str] = {}
        self._next_id = 1000

        logger.debug("Initializing MemoryDocumentStoreRepository")

    def _check_write(self, action: str, title: str) -> None:
        if self.fail_writes_with is not None:
            raise TransportError(
                f"Wiki refused to {action} page {title!r}",
                status_code=self.fail_writes_with,
            )

    async def find_page(
        self, space_key: str, title: str
    ) -> Optional[WikiPage]:
        for page_id, page in self.pages.items():
            if self.spaces[page_id] == space_key and page.title == title:
                return page.model_copy()
        return None

    async def create_page(
        self, space_key: str, title: str, body: str
    ) -> WikiPage:
        self._check_write("create", title)
        if await self.find_page(space_key, title) is not None:
            raise TransportError(
                f"A page titled {title!r} already exists in {space_key}",
                status_code=400,
            )

        page_id = str(self._next_id)
        self._next_id += 1
        page = WikiPage(
            page_id=page_id,
            title=title,
            version=1,
            url=f"memory://{space_key}/{page_id}",
        )
        self.pages[page_id] = page
        self.spaces[page_id] = space_key
        self.bodies[page_id] = body
        return page.model_copy()

    async def update_page(
        self, page_id: str, title: str, body: str, version: int
    ) -> WikiPage:
        self._check_write("update", title)
        current = self.pages.get(page_id)
        if current is None:
            raise TransportError(
                f"Page {page_id} not found", status_code=404
            )
        if version != current.version + 1:
            raise TransportError(
                f"Version {version} does not follow {current.version}",
                status_code=409,
            )

        page = current.model_copy(update={"title": title, "version": version})
        self.pages[page_id] = page
        self.bodies[page_id] = body
        return page.model_copy()
