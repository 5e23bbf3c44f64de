"""Value objects for the tenancy domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers and domain concepts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ulid import ULID


@dataclass(frozen=True)
class TenantId:
    """Identifier for a Tenant.

    Uses ULID for sortability and distribution-friendly generation.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> TenantId:
        """Generate a new TenantId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> TenantId:
        """Create TenantId from string value.

        Accepts case-insensitive input (Crockford's Base32 alphabet) and
        stores the canonical uppercase form so the id compares equal to the
        value stamped on records.

        Args:
            value: ULID string

        Returns:
            TenantId instance

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            parsed = ULID.from_str(value.strip().upper())
        except (ValueError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid TenantId: {value}") from e

        return cls(value=str(parsed))


class TenantStatus(StrEnum):
    """Lifecycle status of a tenant account."""

    ACTIVE = "active"
    TRIAL = "trial"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"

    @property
    def grants_access(self) -> bool:
        """Whether actors of a tenant in this status may access its data."""
        return self in (TenantStatus.ACTIVE, TenantStatus.TRIAL)


@dataclass(frozen=True)
class AuthenticatedActor:
    """Identity established by the upstream authentication layer.

    Attributes:
        id: Stable actor identifier from the identity provider
        is_privileged: Whether the actor is a platform operator who may act
            on behalf of any tenant
    """

    id: str
    is_privileged: bool = False
