"""Domain probe for tenant scoping decisions.

Bypass events are the audit trail for privileged cross-tenant access and
are logged at warning level so they survive production log filtering.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ScopingProbe(Protocol):
    """Domain probe for scoped store operations."""

    def tenant_context_missing(self, collection: str, operation: str) -> None:
        """Record that a scoped access was refused for lack of a tenant."""
        ...

    def cross_tenant_access_denied(
        self,
        collection: str,
        operation: str,
        bound_tenant: str,
        requested_tenant: Any,
    ) -> None:
        """Record that a query named a tenant other than the bound one."""
        ...

    def bypass_used(
        self,
        collection: str,
        operation: str,
        reason: str,
        actor_id: str | None,
        target_tenant: str,
    ) -> None:
        """Record an audited use of the explicit bypass."""
        ...

    def bypass_rejected(
        self,
        collection: str,
        operation: str,
        actor_id: str | None,
    ) -> None:
        """Record that a bypass was requested without the capability."""
        ...

    def immutable_field_rejected(self, collection: str, fields: list[str]) -> None:
        """Record that a write tried to change an immutable field."""
        ...

    def payload_tenant_overridden(
        self,
        collection: str,
        payload_tenant: Any,
        bound_tenant: str,
    ) -> None:
        """Record that a create payload carried a foreign tenant id."""
        ...

    def with_context(self, context: ObservationContext) -> ScopingProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultScopingProbe:
    """Default implementation of ScopingProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultScopingProbe:
        """Create a new probe with observation context bound."""
        return DefaultScopingProbe(logger=self._logger, context=context)

    def tenant_context_missing(self, collection: str, operation: str) -> None:
        self._logger.error(
            "scoped_access_without_tenant",
            collection=collection,
            operation=operation,
            **self._get_context_kwargs(),
        )

    def cross_tenant_access_denied(
        self,
        collection: str,
        operation: str,
        bound_tenant: str,
        requested_tenant: Any,
    ) -> None:
        self._logger.warning(
            "cross_tenant_access_denied",
            collection=collection,
            operation=operation,
            bound_tenant=bound_tenant,
            requested_tenant=str(requested_tenant),
            **self._get_context_kwargs(),
        )

    def bypass_used(
        self,
        collection: str,
        operation: str,
        reason: str,
        actor_id: str | None,
        target_tenant: str,
    ) -> None:
        self._logger.warning(
            "tenant_filter_bypassed",
            collection=collection,
            operation=operation,
            reason=reason,
            actor_id=actor_id,
            target_tenant=target_tenant,
            **self._get_context_kwargs(),
        )

    def bypass_rejected(
        self,
        collection: str,
        operation: str,
        actor_id: str | None,
    ) -> None:
        self._logger.warning(
            "tenant_filter_bypass_rejected",
            collection=collection,
            operation=operation,
            actor_id=actor_id,
            **self._get_context_kwargs(),
        )

    def immutable_field_rejected(self, collection: str, fields: list[str]) -> None:
        self._logger.warning(
            "immutable_field_write_rejected",
            collection=collection,
            fields=fields,
            **self._get_context_kwargs(),
        )

    def payload_tenant_overridden(
        self,
        collection: str,
        payload_tenant: Any,
        bound_tenant: str,
    ) -> None:
        self._logger.warning(
            "payload_tenant_overridden",
            collection=collection,
            payload_tenant=str(payload_tenant),
            bound_tenant=bound_tenant,
            **self._get_context_kwargs(),
        )
