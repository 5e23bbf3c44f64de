"""Domain probe for request context lifecycle events.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class RequestContextProbe(Protocol):
    """Domain probe for request context operations."""

    def context_not_bound(self, operation: str) -> None:
        """Record that a context mutation ran outside any bound context."""
        ...

    def identity_rebind_rejected(
        self,
        field: str,
        bound_value: str,
        attempted_value: str,
    ) -> None:
        """Record that a bound identity was about to be replaced."""
        ...

    def bypass_granted(self, actor_id: str, tenant_id: str) -> None:
        """Record that a privileged context received the bypass capability."""
        ...

    def with_context(self, context: ObservationContext) -> RequestContextProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultRequestContextProbe:
    """Default implementation of RequestContextProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultRequestContextProbe:
        """Create a new probe with observation context bound."""
        return DefaultRequestContextProbe(logger=self._logger, context=context)

    def context_not_bound(self, operation: str) -> None:
        self._logger.error(
            "request_context_not_bound",
            operation=operation,
            message="Context mutation attempted outside run_with_context",
            **self._get_context_kwargs(),
        )

    def identity_rebind_rejected(
        self,
        field: str,
        bound_value: str,
        attempted_value: str,
    ) -> None:
        self._logger.error(
            "request_context_rebind_rejected",
            field=field,
            bound_value=bound_value,
            attempted_value=attempted_value,
            **self._get_context_kwargs(),
        )

    def bypass_granted(self, actor_id: str, tenant_id: str) -> None:
        self._logger.info(
            "request_context_bypass_granted",
            actor_id=actor_id,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )
