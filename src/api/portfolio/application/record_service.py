"""Application service for portfolio records.

Every access goes through the tenant-scoped store. Creation validates the
parent reference and copies the parent's ancestor references onto the new
record; updates go through the version guard; deletes go through the
cascade engine instead of removing anything.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from portfolio.application.cascade_engine import CascadeDeletionEngine
from portfolio.application.version_guard import VersionConflictGuard
from portfolio.domain.cascade import CascadeReport
from portfolio.domain.hierarchy import (
    ANCESTOR_FIELDS,
    EntityType,
    ancestor_fields_of,
    immediate_parent,
)
from shared_kernel.errors import (
    ImmutableFieldViolation,
    InvalidHierarchyReference,
    NotFound,
)
from shared_kernel.persistence.ports import Filters, Record
from shared_kernel.scoping import TenantScopedStore

#: Fields only the cascade engine may set.
DELETION_FIELDS = frozenset(
    {"is_deleted", "deleted_at", "deleted_by", "files_tagged_at"}
)


class RecordService:
    """Create, read, update, and cascade-delete portfolio records."""

    def __init__(
        self,
        store: TenantScopedStore,
        version_guard: VersionConflictGuard,
        cascade_engine: CascadeDeletionEngine,
    ) -> None:
        self._store = store
        self._guard = version_guard
        self._cascade = cascade_engine

    async def create(
        self,
        entity_type: EntityType,
        payload: Mapping[str, Any],
    ) -> Record:
        """Create a record below its parent.

        The deepest ancestor reference in ``payload`` names the parent.
        Shallower references, if given, must agree with the parent's.

        Raises:
            InvalidHierarchyReference: If the parent is missing, not visible
                in the bound tenant, or inconsistent with the references
                given.
        """
        data = {
            key: value
            for key, value in payload.items()
            if key not in ANCESTOR_FIELDS and key not in DELETION_FIELDS
        }
        allowed = ancestor_fields_of(entity_type)
        references = {field: payload.get(field) for field in allowed}

        link = immediate_parent(entity_type, references)
        if allowed and link is None:
            raise InvalidHierarchyReference(
                message=(
                    f"A {entity_type.value} requires a parent reference: "
                    f"one of {', '.join(allowed)}"
                ),
                details={"entityType": entity_type.value},
            )

        if link is not None:
            parent_id = references[link.foreign_key]
            parent = await self._store.read_one(
                link.parent.collection, {"id": parent_id}
            )
            if parent is None:
                raise InvalidHierarchyReference(
                    message=f"Parent {link.parent.value} {parent_id} does not exist",
                    details={"field": link.foreign_key, "id": parent_id},
                )
            for field in ancestor_fields_of(link.parent):
                given = references.get(field)
                if given and given != parent.get(field):
                    raise InvalidHierarchyReference(
                        message=f"{field} does not match the parent's {field}",
                        details={"field": field, "id": given},
                    )
                data[field] = parent.get(field)
            data[link.foreign_key] = parent["id"]

        for field in allowed:
            data.setdefault(field, None)

        record = await self._store.create(entity_type.collection, data)
        await self._store.checkpoint()
        return record

    async def get(
        self,
        entity_type: EntityType,
        entity_id: str,
        include_deleted: bool = False,
    ) -> Record:
        record = await self._store.read_one(
            entity_type.collection,
            {"id": entity_id},
            include_deleted=include_deleted,
        )
        if record is None:
            raise NotFound(entity_type.value, entity_id)
        return record

    async def list_records(
        self,
        entity_type: EntityType,
        filters: Filters | None = None,
        include_deleted: bool = False,
    ) -> list[Record]:
        return await self._store.read(
            entity_type.collection,
            filters,
            include_deleted=include_deleted,
            order_by="id",
        )

    async def update(
        self,
        entity_type: EntityType,
        entity_id: str,
        client_version: int | None,
        changes: Mapping[str, Any],
    ) -> Record:
        """Apply ``changes`` if ``client_version`` is still current.

        Hierarchy references and deletion markers cannot be changed here;
        the store rejects id, tenant_id, and version changes.
        """
        locked = sorted(
            (set(ANCESTOR_FIELDS) | DELETION_FIELDS).intersection(changes)
        )
        if locked:
            raise ImmutableFieldViolation(
                message=f"Fields cannot be modified: {', '.join(locked)}",
                details={"fields": locked},
            )

        record = await self._guard.check_and_apply(
            entity_type.collection,
            entity_id,
            client_version,
            lambda current: changes,
            resource=entity_type.value,
        )
        await self._store.checkpoint()
        return record

    async def delete(self, entity_type: EntityType, entity_id: str) -> CascadeReport:
        return await self._cascade.delete(entity_type, entity_id)
