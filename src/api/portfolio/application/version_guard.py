"""Optimistic concurrency control for record updates.

Writes are conditional on the version the client last read. The check and
the write happen in one store operation keyed on ``(id, version)``, so two
callers starting from the same version can never both succeed: the second
write matches nothing and is reported as a conflict. No locks are taken.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, NoReturn

from portfolio.application.observability import (
    DefaultVersionGuardProbe,
    VersionGuardProbe,
)
from shared_kernel.errors import (
    InvalidVersionToken,
    NotFound,
    PreconditionRequired,
    VersionConflict,
)
from shared_kernel.persistence.ports import Record
from shared_kernel.scoping import TenantScopedStore

Mutator = Callable[[Record], Mapping[str, Any] | Awaitable[Mapping[str, Any]]]


class VersionConflictGuard:
    """Applies changes only to the version the caller believes is current.

    Args:
        store: Scoped store used for the read and the conditional write
        probe: Optional domain probe for observability
    """

    def __init__(
        self,
        store: TenantScopedStore,
        probe: VersionGuardProbe | None = None,
    ) -> None:
        self._store = store
        self._probe = probe or DefaultVersionGuardProbe()

    async def check_and_apply(
        self,
        collection: str,
        entity_id: str,
        client_version: int | None,
        mutator: Mutator,
        resource: str | None = None,
    ) -> Record:
        """Apply ``mutator``'s changes if ``client_version`` is current.

        Args:
            collection: Collection holding the record
            entity_id: Record identifier
            client_version: Version the client last read
            mutator: Receives a copy of the current record and returns the
                changes to write. May be async.
            resource: Resource name used in errors, defaults to the collection

        Returns:
            The record as stored after the write.

        Raises:
            PreconditionRequired: If no version was supplied
            InvalidVersionToken: If the version is negative
            NotFound: If the record does not exist or is deleted
            VersionConflict: If the record changed since the client read it
        """
        resource = resource or collection

        if client_version is None:
            self._probe.precondition_missing(resource, entity_id)
            raise PreconditionRequired()
        if client_version < 0:
            raise InvalidVersionToken(
                message=f"Version must be a non-negative integer, got {client_version}"
            )

        current = await self._store.read_one(collection, {"id": entity_id})
        if current is None:
            raise NotFound(resource, entity_id)
        if current["version"] != client_version:
            self._conflict(resource, entity_id, client_version, current["version"])

        changes = mutator(dict(current))
        if inspect.isawaitable(changes):
            changes = await changes

        matched = await self._store.write(
            collection,
            {"id": entity_id, "version": client_version},
            changes,
        )
        if matched == 0:
            latest = await self._store.read_one(collection, {"id": entity_id})
            if latest is None:
                raise NotFound(resource, entity_id)
            self._conflict(resource, entity_id, client_version, latest["version"])

        updated = await self._store.read_one(collection, {"id": entity_id})
        if updated is None:
            raise NotFound(resource, entity_id)
        self._probe.write_applied(resource, entity_id, updated["version"])
        return updated

    def _conflict(
        self,
        resource: str,
        entity_id: str,
        client_version: int,
        current_version: int,
    ) -> NoReturn:
        self._probe.version_conflict(
            resource, entity_id, client_version, current_version
        )
        raise VersionConflict(
            resource=resource,
            resource_id=entity_id,
            client_version=client_version,
            current_version=current_version,
        )
