"""Document store implementation of IActorRepository."""

from __future__ import annotations

from shared_kernel.scoping import TenantScopedStore
from tenancy.domain.aggregates import ActorProfile
from tenancy.domain.value_objects import TenantId
from tenancy.infrastructure.observability import (
    ActorRepositoryProbe,
    DefaultActorRepositoryProbe,
)
from tenancy.ports.repositories import IActorRepository

ACTORS_COLLECTION = "actors"


class ActorRepository(IActorRepository):
    """Repository managing the tenant-agnostic actor directory.

    Args:
        store: Scoped store; the actors collection must be registered
            as tenant-agnostic
        probe: Optional domain probe for observability
    """

    def __init__(
        self,
        store: TenantScopedStore,
        probe: ActorRepositoryProbe | None = None,
    ) -> None:
        self._store = store
        self._probe = probe or DefaultActorRepositoryProbe()

    async def save(self, actor: ActorProfile) -> None:
        changes = {
            "home_tenant_id": (
                actor.home_tenant_id.value if actor.home_tenant_id else None
            ),
            "display_name": actor.display_name,
        }
        matched = await self._store.write(
            ACTORS_COLLECTION, {"id": actor.id}, changes
        )
        if matched == 0:
            await self._store.create(ACTORS_COLLECTION, {"id": actor.id, **changes})

        self._probe.actor_saved(actor.id)

    async def get_by_id(self, actor_id: str) -> ActorProfile | None:
        record = await self._store.read_one(ACTORS_COLLECTION, {"id": actor_id})
        if record is None:
            self._probe.actor_not_found(actor_id)
            return None

        home_tenant_id = record.get("home_tenant_id")
        return ActorProfile(
            id=record["id"],
            home_tenant_id=TenantId(value=home_tenant_id) if home_tenant_id else None,
            display_name=record.get("display_name"),
        )
