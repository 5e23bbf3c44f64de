"""Tenant-scoped wrapper around the document store.

``TenantScopedStore`` is the only path application code takes to records.
For collections registered as tenant-scoped it injects the bound tenant
into every filter, stamps the tenant on creation, and rejects attempts to
move a record between tenants. Soft-deleted records are excluded unless
the caller opts in with ``include_deleted=True``.

Scoped accesses fail closed: without a bound tenant nothing is read or
written.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ulid import ULID

from shared_kernel.errors import (
    BypassNotPermitted,
    CrossTenantAccessDenied,
    ImmutableFieldViolation,
    TenantContextMissing,
)
from shared_kernel.persistence.ports import (
    SYSTEM_FIELDS,
    DocumentStore,
    Filters,
    Record,
)
from shared_kernel.request_context import RequestContext, get_context
from shared_kernel.scoping.access_mode import (
    SCOPED,
    AccessMode,
    ExplicitBypass,
    Scoped,
)
from shared_kernel.scoping.observability import DefaultScopingProbe, ScopingProbe
from shared_kernel.scoping.registry import CollectionRegistry

#: Fields a write may never change. Timestamps are maintained by the store.
PROTECTED_FIELDS = SYSTEM_FIELDS | {"tenant_id"}

TENANT_FIELD = "tenant_id"
DELETED_FIELD = "is_deleted"


class TenantScopedStore:
    """Document store access with tenant and soft-delete filters applied.

    Args:
        store: Underlying document store
        registry: Declares which collections are tenant-scoped
        probe: Domain probe for scoping events
    """

    def __init__(
        self,
        store: DocumentStore,
        registry: CollectionRegistry,
        probe: ScopingProbe | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._probe = probe or DefaultScopingProbe()

    @property
    def registry(self) -> CollectionRegistry:
        return self._registry

    async def read(
        self,
        collection: str,
        query: Filters | None = None,
        *,
        mode: AccessMode = SCOPED,
        include_deleted: bool = False,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        filters = self._effective_filters(
            collection, query, mode, include_deleted, operation="read"
        )
        return await self._store.find(
            collection, filters, order_by=order_by, limit=limit
        )

    async def read_one(
        self,
        collection: str,
        query: Filters | None = None,
        *,
        mode: AccessMode = SCOPED,
        include_deleted: bool = False,
    ) -> Record | None:
        records = await self.read(
            collection,
            query,
            mode=mode,
            include_deleted=include_deleted,
            limit=1,
        )
        return records[0] if records else None

    async def count(
        self,
        collection: str,
        query: Filters | None = None,
        *,
        mode: AccessMode = SCOPED,
        include_deleted: bool = False,
    ) -> int:
        filters = self._effective_filters(
            collection, query, mode, include_deleted, operation="count"
        )
        return await self._store.count(collection, filters)

    async def write(
        self,
        collection: str,
        query: Filters,
        changes: Mapping[str, Any],
        *,
        mode: AccessMode = SCOPED,
        include_deleted: bool = False,
    ) -> int:
        """Apply ``changes`` to the matching records.

        Returns:
            Number of records matched and written.

        Raises:
            ImmutableFieldViolation: If ``changes`` touches id, tenant_id,
                version, or the created/updated timestamps.
        """
        forbidden = sorted(PROTECTED_FIELDS.intersection(changes))
        if forbidden:
            self._probe.immutable_field_rejected(collection, forbidden)
            raise ImmutableFieldViolation(
                message=f"Fields cannot be modified: {', '.join(forbidden)}",
                details={"collection": collection, "fields": forbidden},
            )
        filters = self._effective_filters(
            collection, query, mode, include_deleted, operation="write"
        )
        return await self._store.update_many(collection, filters, changes)

    async def create(
        self,
        collection: str,
        payload: Mapping[str, Any],
        *,
        mode: AccessMode = SCOPED,
    ) -> Record:
        """Insert a new record.

        Scoped records always receive a fresh id and the bound tenant,
        regardless of what the payload carries. Tenant-agnostic records
        keep a caller supplied id.
        """
        record: Record = {
            key: value
            for key, value in payload.items()
            if key not in SYSTEM_FIELDS
            and key not in (TENANT_FIELD, DELETED_FIELD)
        }

        if self._registry.is_scoped(collection):
            tenant_id = self._tenant_for_create(collection, mode)
            payload_tenant = payload.get(TENANT_FIELD)
            if payload_tenant is not None and payload_tenant != tenant_id:
                self._probe.payload_tenant_overridden(
                    collection, payload_tenant, tenant_id
                )
            record["id"] = str(ULID())
            record[TENANT_FIELD] = tenant_id
        else:
            record["id"] = str(payload.get("id") or ULID())

        record["version"] = 0
        record[DELETED_FIELD] = False
        return await self._store.insert(collection, record)

    async def checkpoint(self) -> None:
        await self._store.checkpoint()

    def _tenant_for_create(self, collection: str, mode: AccessMode) -> str:
        match mode:
            case Scoped():
                return self._bound_tenant(collection, "create")
            case ExplicitBypass(reason=reason, target_tenant=target):
                context = self._bypass_context(collection, "create", target)
                self._probe.bypass_used(
                    collection, "create", reason, context.actor_id, target
                )
                return target
            case _:
                raise TypeError(f"Unsupported access mode: {mode!r}")

    def _effective_filters(
        self,
        collection: str,
        query: Filters | None,
        mode: AccessMode,
        include_deleted: bool,
        operation: str,
    ) -> dict[str, Any]:
        filters = dict(query or {})

        if self._registry.is_scoped(collection):
            match mode:
                case Scoped():
                    bound = self._bound_tenant(collection, operation)
                    self._check_query_tenant(collection, operation, filters, bound)
                    filters[TENANT_FIELD] = bound
                case ExplicitBypass(reason=reason, target_tenant=target):
                    context = self._bypass_context(collection, operation, target)
                    self._probe.bypass_used(
                        collection, operation, reason, context.actor_id, target
                    )
                    self._check_query_tenant(collection, operation, filters, target)
                    filters[TENANT_FIELD] = target
                case _:
                    raise TypeError(f"Unsupported access mode: {mode!r}")

        if not include_deleted:
            filters[DELETED_FIELD] = False
        return filters

    def _bound_tenant(self, collection: str, operation: str) -> str:
        context = get_context()
        if context is None or context.tenant_id is None:
            self._probe.tenant_context_missing(collection, operation)
            raise TenantContextMissing(details={"collection": collection})
        return context.tenant_id

    def _bypass_context(
        self, collection: str, operation: str, target_tenant: str
    ) -> RequestContext:
        """Return the bound context if it may bypass onto ``target_tenant``.

        The capability only covers the tenant the resolver validated for
        this request. Any other target is refused.
        """
        context = get_context()
        if (
            context is None
            or not context.bypass_tenant_filter
            or context.tenant_id is None
            or context.tenant_id != target_tenant
        ):
            self._probe.bypass_rejected(
                collection,
                operation,
                context.actor_id if context is not None else None,
            )
            raise BypassNotPermitted(details={"collection": collection})
        return context

    def _check_query_tenant(
        self,
        collection: str,
        operation: str,
        filters: dict[str, Any],
        tenant_id: str,
    ) -> None:
        if TENANT_FIELD in filters and filters[TENANT_FIELD] != tenant_id:
            self._probe.cross_tenant_access_denied(
                collection, operation, tenant_id, filters[TENANT_FIELD]
            )
            raise CrossTenantAccessDenied(details={"collection": collection})
