"""Aggregates of the tenancy domain."""

from __future__ import annotations

from dataclasses import dataclass

from tenancy.domain.value_objects import TenantId, TenantStatus


@dataclass
class Tenant:
    """Tenant account, the isolation boundary for all scoped records.

    Business rules:
    - Only active and trial tenants grant access to their data
    - Suspension is distinguished from other inactive states so the
      caller can be told to contact support
    """

    id: TenantId
    name: str
    status: TenantStatus = TenantStatus.ACTIVE

    @classmethod
    def create(cls, name: str, status: TenantStatus = TenantStatus.ACTIVE) -> Tenant:
        """Factory method for creating a new tenant with a generated id."""
        return cls(id=TenantId.generate(), name=name, status=status)

    @property
    def grants_access(self) -> bool:
        return self.status.grants_access

    def suspend(self) -> None:
        self.status = TenantStatus.SUSPENDED

    def reactivate(self) -> None:
        self.status = TenantStatus.ACTIVE


@dataclass
class ActorProfile:
    """Directory entry linking an actor to their home tenant.

    Privileged actors typically have no home tenant; they choose a target
    tenant on every request instead.
    """

    id: str
    home_tenant_id: TenantId | None = None
    display_name: str | None = None
