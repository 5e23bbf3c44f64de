"""Tenant scoping for every access to stored records."""

from shared_kernel.scoping.access_mode import (
    SCOPED,
    AccessMode,
    ExplicitBypass,
    Scoped,
)
from shared_kernel.scoping.observability import DefaultScopingProbe, ScopingProbe
from shared_kernel.scoping.registry import CollectionKind, CollectionRegistry
from shared_kernel.scoping.scoped_store import PROTECTED_FIELDS, TenantScopedStore

__all__ = [
    "PROTECTED_FIELDS",
    "SCOPED",
    "AccessMode",
    "CollectionKind",
    "CollectionRegistry",
    "DefaultScopingProbe",
    "ExplicitBypass",
    "Scoped",
    "ScopingProbe",
    "TenantScopedStore",
]
