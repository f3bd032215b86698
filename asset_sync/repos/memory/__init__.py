"""In-memory implementations of the asset_sync repositories."""

from .asset_directory import MemoryAssetDirectoryRepository, parse_query
from .document_store import MemoryDocumentStoreRepository

__all__ = [
    "MemoryAssetDirectoryRepository",
    "MemoryDocumentStoreRepository",
    "parse_query",
]
