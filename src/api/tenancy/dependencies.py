"""Tenancy FastAPI dependencies.

Turns the actor established by the upstream authentication layer into an
effective tenant bound on the request context.

Usage in FastAPI routes:
    @router.get("/example")
    async def example(
        context: Annotated[RequestContext, Depends(require_tenant_context)],
    ):
        # context.tenant_id is the resolved tenant
        ...
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from infrastructure.dependencies import get_scoped_store
from infrastructure.settings import get_store_settings
from shared_kernel.request_context import RequestContext
from shared_kernel.scoping import CollectionKind, CollectionRegistry, TenantScopedStore
from tenancy.application.observability import (
    DefaultTenantResolutionProbe,
    TenantResolutionProbe,
)
from tenancy.application.tenant_resolver import TenantResolver
from tenancy.domain.value_objects import AuthenticatedActor
from tenancy.infrastructure.actor_repository import ACTORS_COLLECTION, ActorRepository
from tenancy.infrastructure.tenant_repository import (
    TENANTS_COLLECTION,
    TenantRepository,
)


def register_collections(registry: CollectionRegistry) -> None:
    """Register the tenancy directories. Both are tenant-agnostic."""
    registry.register(TENANTS_COLLECTION, CollectionKind.AGNOSTIC)
    registry.register(ACTORS_COLLECTION, CollectionKind.AGNOSTIC)


def get_tenant_repository(
    store: Annotated[TenantScopedStore, Depends(get_scoped_store)],
) -> TenantRepository:
    return TenantRepository(store=store)


def get_actor_repository(
    store: Annotated[TenantScopedStore, Depends(get_scoped_store)],
) -> ActorRepository:
    return ActorRepository(store=store)


def get_resolution_probe() -> TenantResolutionProbe:
    """Get TenantResolutionProbe instance.

    Returns:
        DefaultTenantResolutionProbe instance for observability
    """
    return DefaultTenantResolutionProbe()


def get_tenant_resolver(
    tenant_repository: Annotated[TenantRepository, Depends(get_tenant_repository)],
    actor_repository: Annotated[ActorRepository, Depends(get_actor_repository)],
    probe: Annotated[TenantResolutionProbe, Depends(get_resolution_probe)],
) -> TenantResolver:
    return TenantResolver(
        tenant_repository=tenant_repository,
        actor_repository=actor_repository,
        probe=probe,
    )


def get_authenticated_actor(request: Request) -> AuthenticatedActor | None:
    """Read the actor the authentication layer placed on the request.

    The authentication layer sets ``request.state.actor`` to either an
    ``AuthenticatedActor`` or a mapping with ``id`` and ``is_privileged``.

    Returns:
        The actor, or None for anonymous requests.
    """
    actor = getattr(request.state, "actor", None)
    if actor is None or isinstance(actor, AuthenticatedActor):
        return actor
    if isinstance(actor, Mapping) and actor.get("id"):
        return AuthenticatedActor(
            id=str(actor["id"]),
            is_privileged=bool(actor.get("is_privileged", False)),
        )
    return None


def get_target_tenant_id(request: Request) -> str | None:
    """Read the target tenant from the configured header or query parameter.

    The header wins when both are present.
    """
    settings = get_store_settings()
    return request.headers.get(settings.tenant_header) or request.query_params.get(
        settings.tenant_query_param
    )


async def require_tenant_context(
    actor: Annotated[AuthenticatedActor | None, Depends(get_authenticated_actor)],
    target_tenant_id: Annotated[str | None, Depends(get_target_tenant_id)],
    resolver: Annotated[TenantResolver, Depends(get_tenant_resolver)],
) -> RequestContext:
    """Resolve the effective tenant and bind it on the request context.

    Raises:
        HTTPException 401: If the request carries no authenticated actor
        TenancyError: Any resolution failure, rendered by the app's
            exception handler
    """
    context = await resolver.resolve(actor, target_tenant_id)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return context
