"""Request-scoped context carrying tenant and actor identity.

A ``RequestContext`` is bound for the duration of one inbound request (or
background job) with ``run_with_context`` and is visible to everything the
request transitively invokes, across await points, without being passed as
an argument. The tenant is late-bound: the context exists before the tenant
is resolved and is mutated in place once resolution succeeds, so code that
captured the context earlier observes the binding.

Propagation relies on ``contextvars``. asyncio copies the current context
when a task is created, so child tasks see the same ``RequestContext``
object. ``create_task_in_context`` makes that rebinding explicit at task
boundaries; ``asyncio.to_thread`` copies the context for thread hops.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Coroutine, Iterator
from contextlib import contextmanager
from contextvars import ContextVar, copy_context
from dataclasses import dataclass, field
from typing import Any, TypeVar

from ulid import ULID

from shared_kernel.errors import (
    BypassNotPermitted,
    ContextNotBoundError,
    ContextRebindError,
)
from shared_kernel.observability_context import ObservationContext
from shared_kernel.request_context.observability import (
    DefaultRequestContextProbe,
    RequestContextProbe,
)

T = TypeVar("T")

_current: ContextVar[RequestContext | None] = ContextVar(
    "tenantcore_request_context", default=None
)


@dataclass
class RequestContext:
    """Mutable, ephemeral identity of the operation in flight.

    Never persisted. ``tenant_id`` and ``actor_id`` may each be bound once;
    binding the same value again is a no-op, binding a different value
    raises ``ContextRebindError``.

    Attributes:
        request_id: Correlation identifier for logs.
        tenant_id: Effective tenant, None until resolved.
        actor_id: Authenticated actor, None for anonymous operations.
        is_privileged_actor: Whether the actor is a platform operator.
        bypass_tenant_filter: Capability to use explicit scope bypass.
            Only granted to privileged actors after a tenant is resolved.
    """

    request_id: str = field(default_factory=lambda: str(ULID()))
    tenant_id: str | None = None
    actor_id: str | None = None
    is_privileged_actor: bool = False
    bypass_tenant_filter: bool = False

    def bind_tenant(self, tenant_id: str) -> None:
        if self.tenant_id is not None and self.tenant_id != tenant_id:
            raise ContextRebindError(
                details={"field": "tenant_id", "bound": self.tenant_id}
            )
        self.tenant_id = tenant_id

    def bind_actor(self, actor_id: str, is_privileged: bool = False) -> None:
        if self.actor_id is not None and self.actor_id != actor_id:
            raise ContextRebindError(
                details={"field": "actor_id", "bound": self.actor_id}
            )
        self.actor_id = actor_id
        self.is_privileged_actor = is_privileged

    def grant_bypass(self) -> None:
        """Grant the explicit bypass capability.

        Raises:
            BypassNotPermitted: If the actor is not privileged or no tenant
                has been resolved yet.
        """
        if not self.is_privileged_actor or self.tenant_id is None:
            raise BypassNotPermitted()
        self.bypass_tenant_filter = True

    def observation(self) -> ObservationContext:
        """Build an observation context for probes from this request."""
        return ObservationContext(
            request_id=self.request_id,
            actor_id=self.actor_id,
            tenant_id=self.tenant_id,
        )


def get_context() -> RequestContext | None:
    """Return the context bound to the current operation, or None."""
    return _current.get()


@contextmanager
def bound_context(context: RequestContext) -> Iterator[RequestContext]:
    """Bind ``context`` for the enclosed block, restoring the previous one."""
    token = _current.set(context)
    try:
        yield context
    finally:
        _current.reset(token)


async def run_with_context(
    context: RequestContext,
    fn: Callable[..., Any],
    *args: Any,
    **kwargs: Any,
) -> Any:
    """Run ``fn`` with ``context`` bound for everything it invokes.

    ``fn`` may be a plain callable or return an awaitable; awaitables are
    awaited inside the binding.
    """
    with bound_context(context):
        result = fn(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result


def _require_context(
    operation: str,
    probe: RequestContextProbe | None,
) -> RequestContext:
    context = _current.get()
    if context is None:
        (probe or DefaultRequestContextProbe()).context_not_bound(operation)
        raise ContextNotBoundError()
    return context


def set_tenant(tenant_id: str, probe: RequestContextProbe | None = None) -> None:
    """Late-bind the tenant on the current context.

    Raises:
        ContextNotBoundError: If no context is bound.
        ContextRebindError: If a different tenant is already bound.
    """
    context = _require_context("set_tenant", probe)
    try:
        context.bind_tenant(tenant_id)
    except ContextRebindError:
        (probe or DefaultRequestContextProbe()).identity_rebind_rejected(
            field="tenant_id",
            bound_value=context.tenant_id or "",
            attempted_value=tenant_id,
        )
        raise


def set_actor(
    actor_id: str,
    is_privileged: bool = False,
    probe: RequestContextProbe | None = None,
) -> None:
    """Bind the authenticated actor on the current context.

    Raises:
        ContextNotBoundError: If no context is bound.
        ContextRebindError: If a different actor is already bound.
    """
    context = _require_context("set_actor", probe)
    try:
        context.bind_actor(actor_id, is_privileged)
    except ContextRebindError:
        (probe or DefaultRequestContextProbe()).identity_rebind_rejected(
            field="actor_id",
            bound_value=context.actor_id or "",
            attempted_value=actor_id,
        )
        raise


def grant_bypass(probe: RequestContextProbe | None = None) -> None:
    """Grant the bypass capability on the current privileged context."""
    context = _require_context("grant_bypass", probe)
    context.grant_bypass()
    (probe or DefaultRequestContextProbe()).bypass_granted(
        actor_id=context.actor_id or "",
        tenant_id=context.tenant_id or "",
    )


def create_task_in_context(
    coro: Coroutine[Any, Any, T],
    *,
    context: RequestContext | None = None,
    name: str | None = None,
) -> asyncio.Task[T]:
    """Start ``coro`` as a task with a request context bound.

    The task runs in a copy of the caller's context. When ``context`` is
    given it replaces the caller's binding inside the task only.
    """
    task_context = copy_context()
    if context is not None:
        task_context.run(_current.set, context)
    return asyncio.create_task(coro, name=name, context=task_context)
