"""Access modes for the tenant-scoped store.

Every data access states how it relates to the tenant boundary. The set of
modes is closed: ``Scoped`` is the default and the only mode ordinary code
uses; ``ExplicitBypass`` is reserved for privileged operator paths and
requires a reason for the audit log.

There is no unscoped mode. A bypass always names the tenant it operates
on, and that tenant must be the one the resolver validated and bound for
the request.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Scoped:
    """Restrict the access to the tenant bound on the request context."""


@dataclass(frozen=True)
class ExplicitBypass:
    """Audited privileged access to an explicitly named tenant.

    Attributes:
        reason: Why the bypass is needed. Recorded in the audit log.
        target_tenant: Tenant the access is confined to. Must equal the
            tenant resolved for the privileged request.
    """

    reason: str
    target_tenant: str

    def __post_init__(self) -> None:
        if not self.reason or not self.reason.strip():
            raise ValueError("ExplicitBypass requires a non-empty reason")
        if not self.target_tenant:
            raise ValueError("ExplicitBypass requires a target tenant")


AccessMode = Scoped | ExplicitBypass

SCOPED = Scoped()
