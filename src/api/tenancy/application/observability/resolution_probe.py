"""Domain probe for tenant resolution.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events while an authenticated actor is turned into an
effective tenant for the request.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantResolutionProbe(Protocol):
    """Domain probe for tenant resolution operations."""

    def unauthenticated_request_skipped(self) -> None:
        """Record that resolution was skipped for an anonymous request."""
        ...

    def tenant_resolved_from_home(self, tenant_id: str, actor_id: str) -> None:
        """Record that an ordinary actor was bound to their home tenant."""
        ...

    def tenant_resolved_from_target(self, tenant_id: str, actor_id: str) -> None:
        """Record that a privileged actor was bound to an explicit target."""
        ...

    def target_tenant_ignored(self, raw_value: str, actor_id: str) -> None:
        """Record that an ordinary actor sent a target tenant."""
        ...

    def target_tenant_missing(self, actor_id: str) -> None:
        """Record that a privileged actor omitted the target tenant."""
        ...

    def invalid_tenant_id_format(self, raw_value: str, actor_id: str) -> None:
        """Record that the target tenant was not a valid ULID."""
        ...

    def no_tenant_association(self, actor_id: str) -> None:
        """Record that an ordinary actor has no home tenant."""
        ...

    def tenant_not_found(self, tenant_id: str, actor_id: str) -> None:
        """Record that the resolved tenant does not exist."""
        ...

    def tenant_access_refused(
        self,
        tenant_id: str,
        actor_id: str,
        status: str,
    ) -> None:
        """Record that the tenant's status does not grant access."""
        ...

    def with_context(self, context: ObservationContext) -> TenantResolutionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantResolutionProbe:
    """Default implementation of TenantResolutionProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultTenantResolutionProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantResolutionProbe(logger=self._logger, context=context)

    def unauthenticated_request_skipped(self) -> None:
        self._logger.debug(
            "tenant_resolution_skipped",
            reason="unauthenticated",
            **self._get_context_kwargs(),
        )

    def tenant_resolved_from_home(self, tenant_id: str, actor_id: str) -> None:
        self._logger.debug(
            "tenant_resolved_from_home",
            tenant_id=tenant_id,
            actor_id=actor_id,
            **self._get_context_kwargs(),
        )

    def tenant_resolved_from_target(self, tenant_id: str, actor_id: str) -> None:
        self._logger.info(
            "tenant_resolved_from_target",
            tenant_id=tenant_id,
            actor_id=actor_id,
            **self._get_context_kwargs(),
        )

    def target_tenant_ignored(self, raw_value: str, actor_id: str) -> None:
        self._logger.warning(
            "tenant_resolution_target_ignored",
            raw_value=raw_value,
            actor_id=actor_id,
            message="Target tenant is only honored for privileged actors",
            **self._get_context_kwargs(),
        )

    def target_tenant_missing(self, actor_id: str) -> None:
        self._logger.warning(
            "tenant_resolution_target_missing",
            actor_id=actor_id,
            **self._get_context_kwargs(),
        )

    def invalid_tenant_id_format(self, raw_value: str, actor_id: str) -> None:
        self._logger.warning(
            "tenant_resolution_invalid_format",
            raw_value=raw_value,
            actor_id=actor_id,
            **self._get_context_kwargs(),
        )

    def no_tenant_association(self, actor_id: str) -> None:
        self._logger.warning(
            "tenant_resolution_no_tenant",
            actor_id=actor_id,
            **self._get_context_kwargs(),
        )

    def tenant_not_found(self, tenant_id: str, actor_id: str) -> None:
        self._logger.warning(
            "tenant_resolution_tenant_not_found",
            tenant_id=tenant_id,
            actor_id=actor_id,
            **self._get_context_kwargs(),
        )

    def tenant_access_refused(
        self,
        tenant_id: str,
        actor_id: str,
        status: str,
    ) -> None:
        self._logger.warning(
            "tenant_resolution_access_refused",
            tenant_id=tenant_id,
            actor_id=actor_id,
            status=status,
            **self._get_context_kwargs(),
        )
