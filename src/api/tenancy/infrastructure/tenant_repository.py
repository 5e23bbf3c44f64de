"""Document store implementation of ITenantRepository.

Tenants live in the tenant-agnostic ``tenants`` collection. The repository
goes through the scoped store like every other data access; because the
collection is registered as agnostic no tenant filter is applied, which is
what lets the resolver load a tenant before one is bound.

The repository never checkpoints. The caller owns the unit of work.
"""

from __future__ import annotations

from shared_kernel.persistence.ports import Record
from shared_kernel.scoping import TenantScopedStore
from tenancy.domain.aggregates import Tenant
from tenancy.domain.value_objects import TenantId, TenantStatus
from tenancy.infrastructure.observability import (
    DefaultTenantRepositoryProbe,
    TenantRepositoryProbe,
)
from tenancy.ports.repositories import ITenantRepository

TENANTS_COLLECTION = "tenants"


def _to_tenant(record: Record) -> Tenant:
    return Tenant(
        id=TenantId(value=record["id"]),
        name=record["name"],
        status=TenantStatus(record.get("status", TenantStatus.ACTIVE)),
    )


class TenantRepository(ITenantRepository):
    """Repository managing the tenant directory.

    Args:
        store: Scoped store; the tenants collection must be registered
            as tenant-agnostic
        probe: Optional domain probe for observability
    """

    def __init__(
        self,
        store: TenantScopedStore,
        probe: TenantRepositoryProbe | None = None,
    ) -> None:
        self._store = store
        self._probe = probe or DefaultTenantRepositoryProbe()

    async def save(self, tenant: Tenant) -> None:
        """Persist a tenant, creating it or updating its name and status.

        Args:
            tenant: The Tenant to persist
        """
        changes = {"name": tenant.name, "status": tenant.status.value}
        matched = await self._store.write(
            TENANTS_COLLECTION, {"id": tenant.id.value}, changes
        )
        if matched == 0:
            await self._store.create(
                TENANTS_COLLECTION, {"id": tenant.id.value, **changes}
            )

        self._probe.tenant_saved(tenant.id.value, tenant.status.value)

    async def get_by_id(self, tenant_id: TenantId) -> Tenant | None:
        """Fetch a tenant from the directory.

        Args:
            tenant_id: The unique identifier of the tenant

        Returns:
            The Tenant, or None if not found
        """
        record = await self._store.read_one(
            TENANTS_COLLECTION, {"id": tenant_id.value}
        )
        if record is None:
            self._probe.tenant_not_found(tenant_id.value)
            return None

        self._probe.tenant_retrieved(tenant_id.value)
        return _to_tenant(record)
