"""In-process document store for development and tests.

All operations complete without suspending, so under a single event loop
each ``update_many`` call is atomic with respect to other coroutines. That
gives conditional writes the same compare-and-set semantics the SQL store
gets from a single UPDATE statement.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from shared_kernel.persistence.ports import Filters, Record, matches


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryDocumentStore:
    """Dictionary-backed implementation of the DocumentStore port.

    Records are kept per collection in insertion order and copied on the
    way in and out so callers never share mutable state with the store.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Record]] = {}
        self.checkpoints = 0

    async def find(
        self,
        collection: str,
        filters: Filters,
        *,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        found = [
            copy.deepcopy(record)
            for record in self._collections.get(collection, {}).values()
            if matches(record, filters)
        ]
        if order_by is not None:
            found.sort(key=lambda record: (record.get(order_by) is None, record.get(order_by)))
        if limit is not None:
            found = found[:limit]
        return found

    async def insert(self, collection: str, record: Record) -> Record:
        records = self._collections.setdefault(collection, {})
        if record["id"] in records:
            raise ValueError(
                f"Record '{record['id']}' already exists in '{collection}'"
            )
        now = _utc_now()
        stored = copy.deepcopy(record)
        stored.setdefault("created_at", now)
        stored["updated_at"] = now
        records[stored["id"]] = stored
        return copy.deepcopy(stored)

    async def update_many(
        self,
        collection: str,
        filters: Filters,
        changes: Mapping[str, Any],
    ) -> int:
        matched = 0
        now = _utc_now()
        for record in self._collections.get(collection, {}).values():
            if not matches(record, filters):
                continue
            record.update(copy.deepcopy(dict(changes)))
            record["version"] = record.get("version", 0) + 1
            record["updated_at"] = now
            matched += 1
        return matched

    async def count(self, collection: str, filters: Filters) -> int:
        return sum(
            1
            for record in self._collections.get(collection, {}).values()
            if matches(record, filters)
        )

    async def checkpoint(self) -> None:
        self.checkpoints += 1
