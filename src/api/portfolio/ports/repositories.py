"""Repository protocols (ports) for the portfolio bounded context."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from portfolio.domain.hierarchy import EntityType
from portfolio.domain.value_objects import DeletionTag, PendingFileTag


@runtime_checkable
class IPendingFileTagRepository(Protocol):
    """Repository for deletion tags awaiting reconciliation.

    Like the other repositories it never checkpoints; the caller owns the
    unit of work.
    """

    async def add(
        self,
        tag: DeletionTag,
        tenant_id: str,
        entity_type: EntityType,
        entity_id: str,
        error: str,
    ) -> PendingFileTag:
        """Record a tag whose first emission attempt failed."""
        ...

    async def fetch_unprocessed(self, limit: int = 100) -> list[PendingFileTag]:
        """Fetch entries that are neither processed nor dead-lettered.

        Args:
            limit: Maximum number of entries to fetch

        Returns:
            Entries ordered oldest first
        """
        ...

    async def mark_processed(self, entry_id: str) -> None:
        """Mark an entry as successfully emitted."""
        ...

    async def record_failure(
        self,
        entry_id: str,
        retry_count: int,
        error: str,
    ) -> None:
        """Record a failed retry. The entry stays eligible for polling."""
        ...

    async def move_to_dlq(
        self,
        entry_id: str,
        retry_count: int,
        error: str,
    ) -> None:
        """Dead-letter an entry. It is no longer picked up by polling."""
        ...

    async def list_failed(self) -> list[PendingFileTag]:
        """List dead-lettered entries for operators."""
        ...
