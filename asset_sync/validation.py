"""
Runtime validation of architectural contracts.

Use cases validate the repositories they are given at construction time, so
a miswired backend fails at startup instead of halfway through a run. The
check relies on ``isinstance()`` against ``@runtime_checkable`` protocols.
"""

import logging
from typing import Any, Type, TypeVar

logger = logging.getLogger(__name__)

P = TypeVar("P")


class RepositoryValidationError(Exception):
    """Raised when repository contract validation fails"""

    pass


def validate_repository_protocol(
    repository: object, protocol: Type[P]
) -> None:
    """
    Validate that a repository implementation satisfies a protocol contract.

    Raises:
        RepositoryValidationError: If validation fails

    Example:
        >>> from asset_sync.repos.memory import MemoryAssetDirectoryRepository
        >>> from asset_sync.repositories import AssetDirectoryRepository
        >>> repo = MemoryAssetDirectoryRepository()
        >>> validate_repository_protocol(repo, AssetDirectoryRepository)
    """
    if not isinstance(repository, protocol):
        logger.error(
            "Repository protocol validation failed",
            extra={
                "repository_type": type(repository).__name__,
                "protocol_name": protocol.__name__,
            },
        )
        raise RepositoryValidationError(
            f"Repository {type(repository).__name__} does not implement "
            f"{protocol.__name__} protocol. Missing or incorrect methods."
        )

    logger.debug(
        "Repository protocol validation passed",
        extra={
            "repository_type": type(repository).__name__,
            "protocol_name": protocol.__name__,
        },
    )


def ensure_repository_protocol(repository: object, protocol: Type[P]) -> P:
    """
    Validate and return a repository with proper type annotation.

    Provides runtime validation and lets the type checker know the
    returned object satisfies ``protocol``.
    """
    validate_repository_protocol(repository, protocol)
    return repository  # type: ignore[return-value]


def ensure_asset_directory_repository(repo: object) -> Any:
    """Ensure an object satisfies the AssetDirectoryRepository protocol"""
    from asset_sync.repositories import AssetDirectoryRepository

    return ensure_repository_protocol(repo, AssetDirectoryRepository)  # type: ignore[type-abstract]


def ensure_employee_resolver(repo: object) -> Any:
    """Ensure an object satisfies the EmployeeResolver protocol"""
    from asset_sync.repositories import EmployeeResolver

    return ensure_repository_protocol(repo, EmployeeResolver)  # type: ignore[type-abstract]


def ensure_document_store_repository(repo: object) -> Any:
    """Ensure an object satisfies the DocumentStoreRepository protocol"""
    from asset_sync.repositories import DocumentStoreRepository

    return ensure_repository_protocol(repo, DocumentStoreRepository)  # type: ignore[type-abstract]


def ensure_roster_cache_repository(repo: object) -> Any:
    """Ensure an object satisfies the RosterCacheRepository protocol"""
    from asset_sync.repositories import RosterCacheRepository

    return ensure_repository_protocol(repo, RosterCacheRepository)  # type: ignore[type-abstract]


def ensure_snapshot_repository(repo: object) -> Any:
    """Ensure an object satisfies the SnapshotRepository protocol"""
    from asset_sync.repositories import SnapshotRepository

    return ensure_repository_protocol(repo, SnapshotRepository)  # type: ignore[type-abstract]
