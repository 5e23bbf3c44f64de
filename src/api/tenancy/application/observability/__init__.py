"""Observability for tenancy application services."""

from tenancy.application.observability.resolution_probe import (
    DefaultTenantResolutionProbe,
    TenantResolutionProbe,
)

__all__ = [
    "DefaultTenantResolutionProbe",
    "TenantResolutionProbe",
]
