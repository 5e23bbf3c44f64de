"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures request-scoped and domain-relevant metadata that should be
    included with all instrumentation events.

    Attributes:
        request_id: Unique identifier for the current request/operation.
        actor_id: Identifier of the actor performing the operation.
        tenant_id: Tenant the operation is scoped to.
        collection: Collection being operated on (if applicable).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(request_id="req-123", tenant_id="01H...")
        probe = DefaultCascadeProbe().with_context(context)
    """

    request_id: str | None = None
    actor_id: str | None = None
    tenant_id: str | None = None
    collection: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.actor_id is not None:
            result["actor_id"] = self.actor_id
        if self.tenant_id is not None:
            result["tenant_id"] = self.tenant_id
        if self.collection is not None:
            result["collection"] = self.collection
        result.update(self.extra)
        return result

    def with_collection(self, collection: str) -> ObservationContext:
        """Create a new context with the collection name set."""
        return replace(self, collection=collection)

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        return replace(self, extra={**self.extra, **kwargs})
