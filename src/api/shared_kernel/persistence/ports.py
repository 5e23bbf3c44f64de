"""Document store port shared by every bounded context.

The store is a thin collection-of-records abstraction. Filters are
equality matches on top-level fields; ``AnyOf`` expresses membership.
Implementations must apply ``update_many`` as one conditional write per
record, incrementing ``version`` by exactly one for every matched record.

The caller owns the unit of work. ``checkpoint`` makes everything written
so far durable; stores never commit on their own.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

Record = dict[str, Any]
Filters = Mapping[str, Any]

#: Fields every record carries and only the store itself maintains.
SYSTEM_FIELDS = frozenset({"id", "version", "created_at", "updated_at"})


@dataclass(frozen=True)
class AnyOf:
    """Filter value matching any of the given values."""

    values: tuple[Any, ...]

    @classmethod
    def of(cls, values: Any) -> AnyOf:
        return cls(values=tuple(values))

    def matches(self, value: Any) -> bool:
        return value in self.values


def matches(record: Mapping[str, Any], filters: Filters) -> bool:
    """Evaluate ``filters`` against a record.

    A field absent from the record compares as None.
    """
    for key, expected in filters.items():
        actual = record.get(key)
        if isinstance(expected, AnyOf):
            if not expected.matches(actual):
                return False
        elif actual != expected:
            return False
    return True


@runtime_checkable
class DocumentStore(Protocol):
    """Persistence port for tenant-scoped and tenant-agnostic records."""

    async def find(
        self,
        collection: str,
        filters: Filters,
        *,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        """Return copies of the records matching ``filters``.

        Args:
            collection: Collection name
            filters: Equality filters, possibly with AnyOf values
            order_by: Optional field to sort ascending by
            limit: Optional maximum number of records

        Returns:
            Matching records. Mutating them does not affect the store.
        """
        ...

    async def insert(self, collection: str, record: Record) -> Record:
        """Insert a fully formed record and return the stored copy."""
        ...

    async def update_many(
        self,
        collection: str,
        filters: Filters,
        changes: Mapping[str, Any],
    ) -> int:
        """Apply ``changes`` to every record matching ``filters``.

        Each matched record's version is incremented by one and its
        ``updated_at`` refreshed in the same write.

        Returns:
            The number of records matched and written.
        """
        ...

    async def count(self, collection: str, filters: Filters) -> int:
        """Return the number of records matching ``filters``."""
        ...

    async def checkpoint(self) -> None:
        """Make all writes issued so far durable."""
        ...
