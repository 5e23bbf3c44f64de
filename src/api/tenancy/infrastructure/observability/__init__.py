"""Observability for tenancy infrastructure."""

from tenancy.infrastructure.observability.repository_probe import (
    ActorRepositoryProbe,
    DefaultActorRepositoryProbe,
    DefaultTenantRepositoryProbe,
    TenantRepositoryProbe,
)

__all__ = [
    "ActorRepositoryProbe",
    "DefaultActorRepositoryProbe",
    "DefaultTenantRepositoryProbe",
    "TenantRepositoryProbe",
]
