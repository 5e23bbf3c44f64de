"""The fixed portfolio hierarchy.

    Customer -> Site -> Building -> Floor -> {Asset, OccupantTenant, Document}

Assets and occupant tenants may also attach directly to a building, and
documents to any level. Every record stores a reference to each of its
ancestors (``customer_id``, ``site_id``, ...); the deepest one present is its
immediate parent.

The hierarchy is a declarative table of ``(parent, child, foreign_key)``
links. Code that walks the hierarchy iterates the table rather than naming
entity types, so adding a link here is all a new child type needs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class EntityType(StrEnum):
    CUSTOMER = "customer"
    SITE = "site"
    BUILDING = "building"
    FLOOR = "floor"
    ASSET = "asset"
    OCCUPANT_TENANT = "occupant_tenant"
    DOCUMENT = "document"

    @property
    def collection(self) -> str:
        """Name of the tenant-scoped collection holding this type."""
        return f"{self.value}s"

    @property
    def reference_field(self) -> str:
        """Field descendants use to reference a record of this type."""
        return f"{self.value}_id"


@dataclass(frozen=True)
class HierarchyLink:
    parent: EntityType
    child: EntityType
    foreign_key: str


HIERARCHY: tuple[HierarchyLink, ...] = (
    HierarchyLink(EntityType.CUSTOMER, EntityType.SITE, "customer_id"),
    HierarchyLink(EntityType.CUSTOMER, EntityType.DOCUMENT, "customer_id"),
    HierarchyLink(EntityType.SITE, EntityType.BUILDING, "site_id"),
    HierarchyLink(EntityType.SITE, EntityType.DOCUMENT, "site_id"),
    HierarchyLink(EntityType.BUILDING, EntityType.FLOOR, "building_id"),
    HierarchyLink(EntityType.BUILDING, EntityType.ASSET, "building_id"),
    HierarchyLink(EntityType.BUILDING, EntityType.OCCUPANT_TENANT, "building_id"),
    HierarchyLink(EntityType.BUILDING, EntityType.DOCUMENT, "building_id"),
    HierarchyLink(EntityType.FLOOR, EntityType.ASSET, "floor_id"),
    HierarchyLink(EntityType.FLOOR, EntityType.OCCUPANT_TENANT, "floor_id"),
    HierarchyLink(EntityType.FLOOR, EntityType.DOCUMENT, "floor_id"),
)

#: Ancestor reference fields from shallowest to deepest.
ANCESTOR_FIELDS: tuple[str, ...] = (
    "customer_id",
    "site_id",
    "building_id",
    "floor_id",
)


def children_of(parent: EntityType) -> tuple[HierarchyLink, ...]:
    return tuple(link for link in HIERARCHY if link.parent is parent)


def parents_of(child: EntityType) -> tuple[HierarchyLink, ...]:
    return tuple(link for link in HIERARCHY if link.child is child)


def ancestor_fields_of(entity_type: EntityType) -> tuple[str, ...]:
    """Ancestor reference fields a record of ``entity_type`` may carry.

    Computed from the table, shallowest first.
    """
    fields: set[str] = set()
    pending = [entity_type]
    while pending:
        current = pending.pop()
        for link in parents_of(current):
            if link.foreign_key not in fields:
                fields.add(link.foreign_key)
                pending.append(link.parent)
    return tuple(field for field in ANCESTOR_FIELDS if field in fields)


def immediate_parent(
    entity_type: EntityType,
    references: dict[str, str | None],
) -> HierarchyLink | None:
    """Return the link to the deepest ancestor referenced, if any."""
    for field in reversed(ANCESTOR_FIELDS):
        if not references.get(field):
            continue
        for link in parents_of(entity_type):
            if link.foreign_key == field:
                return link
    return None


def scoped_collections() -> tuple[str, ...]:
    """Collections of every hierarchy entity type."""
    return tuple(entity_type.collection for entity_type in EntityType)
