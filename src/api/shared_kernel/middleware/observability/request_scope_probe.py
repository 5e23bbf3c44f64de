"""Domain probe for per-request context scopes.

Following Domain-Oriented Observability patterns, this probe records when
the middleware opens and closes the ambient request context.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class RequestScopeProbe(Protocol):
    """Domain probe for request scope lifecycle."""

    def scope_opened(self, request_id: str, method: str, path: str) -> None:
        """Record that a fresh request context was bound."""
        ...

    def scope_closed(
        self,
        request_id: str,
        tenant_id: str | None,
        status_code: int | None,
    ) -> None:
        """Record that the request context was released."""
        ...

    def with_context(self, context: ObservationContext) -> RequestScopeProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultRequestScopeProbe:
    """Default implementation of RequestScopeProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultRequestScopeProbe:
        return DefaultRequestScopeProbe(logger=self._logger, context=context)

    def scope_opened(self, request_id: str, method: str, path: str) -> None:
        self._logger.debug(
            "request_scope_opened",
            request_id=request_id,
            method=method,
            path=path,
            **self._get_context_kwargs(),
        )

    def scope_closed(
        self,
        request_id: str,
        tenant_id: str | None,
        status_code: int | None,
    ) -> None:
        self._logger.debug(
            "request_scope_closed",
            request_id=request_id,
            tenant_id=tenant_id,
            status_code=status_code,
            **self._get_context_kwargs(),
        )
