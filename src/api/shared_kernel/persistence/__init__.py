"""Persistence port shared across bounded contexts."""

from shared_kernel.persistence.ports import (
    SYSTEM_FIELDS,
    AnyOf,
    DocumentStore,
    Filters,
    Record,
    matches,
)

__all__ = [
    "SYSTEM_FIELDS",
    "AnyOf",
    "DocumentStore",
    "Filters",
    "Record",
    "matches",
]
