"""
Repository interfaces defined as Protocols.

The use cases depend only on these contracts. Concrete implementations talk
to the Asset Directory Service (JSM Assets), the Document Store (the wiki)
or local files; in Temporal workflows the same contracts are satisfied by
proxies that delegate to activities.

Conventions shared by every protocol:

- **Fresh reads**: every read goes to the backing store. Implementations
  must not cache records between calls.

- **Single attempt**: implementations never retry. A call that cannot
  complete raises ``TransportError`` and the caller decides what to do.

- **Mutations report, reads raise**: a mutation rejected by the remote side
  is returned as a ``WriteResult`` carrying the upstream status. A read
  that cannot be answered raises ``TransportError``.

- **Domain Objects**: methods accept and return domain objects or
  primitives, never HTTP or framework types.
"""

from typing import Dict, List, Optional, Protocol, runtime_checkable

from asset_sync.domain import (
    AssetObject,
    EmployeeRecord,
    InventorySnapshot,
    ObjectAttribute,
    ObjectType,
    ObjectTypeAttribute,
    WikiPage,
    WriteResult,
)


class TransportError(Exception):
    """Raised when a remote call could not be completed.

    Covers network failures, timeouts, undecodable responses and reads
    rejected by the remote side (``status_code`` is set in that case).
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class AssetDirectoryRepository(Protocol):
    """Object-graph store holding asset and employee records."""

    async def find_objects(self, query: str) -> List[AssetObject]:
        """Return every object matching an attribute query (AQL).

        Implementations page through the full result set.
        """
        ...

    async def get_attributes(self, object_key: str) -> List[ObjectAttribute]:
        """Return the current attributes of one object."""
        ...

    async def set_attribute(
        self,
        object_key: str,
        object_type_id: str,
        attribute_id: str,
        value: str,
    ) -> WriteResult:
        """Set a single attribute of an object to ``value``."""
        ...

    async def create_object(
        self, object_type_id: str, attributes: Dict[str, str]
    ) -> WriteResult:
        """Create an object from an ``attribute_id -> value`` mapping.

        On success ``WriteResult.object`` holds the created record with its
        new system key.
        """
        ...

    async def delete_object(self, object_key: str) -> WriteResult:
        """Delete an object by system key."""
        ...

    async def list_object_types(self, schema_id: str) -> List[ObjectType]:
        """Return the object types of a schema."""
        ...

    async def list_type_attributes(
        self, object_type_id: str
    ) -> List[ObjectTypeAttribute]:
        """Return the attribute definitions of an object type."""
        ...


@runtime_checkable
class EmployeeResolver(Protocol):
    """Resolves an employee business key to directory records.

    Returns every match; deciding what zero or several matches mean is the
    caller's business.
    """

    async def find_employees(self, employee_id: str) -> List[EmployeeRecord]:
        """Return the employee records whose business key is
        ``employee_id``."""
        ...


@runtime_checkable
class RosterCacheRepository(Protocol):
    """On-disk mirror of the employee roster."""

    async def load_roster(self) -> List[EmployeeRecord]:
        """Return the cached roster, empty if no cache exists."""
        ...

    async def store_roster(self, records: List[EmployeeRecord]) -> str:
        """Replace the cached roster and return its location."""
        ...


@runtime_checkable
class DocumentStoreRepository(Protocol):
    """Wiki page store used to publish the inventory.

    ``create_page`` and ``update_page`` raise ``TransportError`` with the
    upstream status when the wiki rejects the write.
    """

    async def find_page(
        self, space_key: str, title: str
    ) -> Optional[WikiPage]:
        """Return the page with this exact title in a space, if any.

        The returned page carries its current version number.
        """
        ...

    async def create_page(
        self, space_key: str, title: str, body: str
    ) -> WikiPage:
        """Create a page with a storage-format body."""
        ...

    async def update_page(
        self, page_id: str, title: str, body: str, version: int
    ) -> WikiPage:
        """Replace a page body; ``version`` is the new version number."""
        ...


@runtime_checkable
class SnapshotRepository(Protocol):
    """Keeps a copy of the last exported inventory."""

    async def write_snapshot(self, snapshot: InventorySnapshot) -> str:
        """Persist the snapshot and return where it was written."""
        ...
