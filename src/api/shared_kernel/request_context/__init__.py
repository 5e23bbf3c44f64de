"""Ambient request context for tenant and actor identity."""

from shared_kernel.request_context.observability import (
    DefaultRequestContextProbe,
    RequestContextProbe,
)
from shared_kernel.request_context.store import (
    RequestContext,
    bound_context,
    create_task_in_context,
    get_context,
    grant_bypass,
    run_with_context,
    set_actor,
    set_tenant,
)

__all__ = [
    "DefaultRequestContextProbe",
    "RequestContext",
    "RequestContextProbe",
    "bound_context",
    "create_task_in_context",
    "get_context",
    "grant_bypass",
    "run_with_context",
    "set_actor",
    "set_tenant",
]
