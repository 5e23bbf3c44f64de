"""Repository protocols (ports) for the tenancy bounded context.

The tenant and actor directories are tenant-agnostic: lookups happen
before any tenant is bound, while the request is being resolved.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tenancy.domain.aggregates import ActorProfile, Tenant
from tenancy.domain.value_objects import TenantId


@runtime_checkable
class ITenantRepository(Protocol):
    """Repository for Tenant persistence."""

    async def save(self, tenant: Tenant) -> None:
        """Persist a tenant, creating it or updating its name and status.

        Args:
            tenant: The Tenant to persist
        """
        ...

    async def get_by_id(self, tenant_id: TenantId) -> Tenant | None:
        """Retrieve a tenant by its ID.

        Args:
            tenant_id: The unique identifier of the tenant

        Returns:
            The Tenant, or None if not found
        """
        ...


@runtime_checkable
class IActorRepository(Protocol):
    """Repository for the actor directory."""

    async def save(self, actor: ActorProfile) -> None:
        """Persist an actor profile."""
        ...

    async def get_by_id(self, actor_id: str) -> ActorProfile | None:
        """Retrieve an actor profile.

        Args:
            actor_id: Identifier issued by the identity provider

        Returns:
            The ActorProfile, or None if the actor is unknown
        """
        ...
