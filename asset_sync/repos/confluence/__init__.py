"""Confluence implementation of the document store repository."""

from .document_store import (
    ConfluenceDocumentStoreRepository,
    create_wiki_client,
)

__all__ = [
    "ConfluenceDocumentStoreRepository",
    "create_wiki_client",
]
