"""Domain probe for optimistic concurrency checks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class VersionGuardProbe(Protocol):
    """Domain probe for version-checked writes."""

    def precondition_missing(self, resource: str, resource_id: str) -> None:
        """Record that a write arrived without a version."""
        ...

    def version_conflict(
        self,
        resource: str,
        resource_id: str,
        client_version: int,
        current_version: int,
    ) -> None:
        """Record that a write was based on a stale version."""
        ...

    def write_applied(self, resource: str, resource_id: str, version: int) -> None:
        """Record that a conditional write succeeded."""
        ...

    def with_context(self, context: ObservationContext) -> VersionGuardProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultVersionGuardProbe:
    """Default implementation of VersionGuardProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultVersionGuardProbe:
        """Create a new probe with observation context bound."""
        return DefaultVersionGuardProbe(logger=self._logger, context=context)

    def precondition_missing(self, resource: str, resource_id: str) -> None:
        self._logger.info(
            "version_precondition_missing",
            resource=resource,
            resource_id=resource_id,
            **self._get_context_kwargs(),
        )

    def version_conflict(
        self,
        resource: str,
        resource_id: str,
        client_version: int,
        current_version: int,
    ) -> None:
        self._logger.info(
            "version_conflict",
            resource=resource,
            resource_id=resource_id,
            client_version=client_version,
            current_version=current_version,
            **self._get_context_kwargs(),
        )

    def write_applied(self, resource: str, resource_id: str, version: int) -> None:
        self._logger.debug(
            "version_checked_write_applied",
            resource=resource,
            resource_id=resource_id,
            version=version,
            **self._get_context_kwargs(),
        )
