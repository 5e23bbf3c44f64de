"""Static registry of collections and their tenancy kind.

Whether a collection is tenant-scoped is declared, never inferred from the
fields a record happens to carry. Accessing a collection that was not
registered is an error.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from shared_kernel.errors import UnregisteredCollection


class CollectionKind(StrEnum):
    SCOPED = "scoped"
    AGNOSTIC = "agnostic"


class CollectionRegistry:
    """Maps collection names to their tenancy kind."""

    def __init__(
        self,
        scoped: Iterable[str] = (),
        agnostic: Iterable[str] = (),
    ) -> None:
        self._kinds: dict[str, CollectionKind] = {}
        for name in scoped:
            self.register(name, CollectionKind.SCOPED)
        for name in agnostic:
            self.register(name, CollectionKind.AGNOSTIC)

    def register(self, name: str, kind: CollectionKind) -> None:
        """Register a collection.

        Raises:
            ValueError: If the collection is already registered with
                a different kind.
        """
        existing = self._kinds.get(name)
        if existing is not None and existing != kind:
            raise ValueError(
                f"Collection '{name}' is already registered as {existing.value}"
            )
        self._kinds[name] = kind

    def kind_of(self, name: str) -> CollectionKind:
        try:
            return self._kinds[name]
        except KeyError:
            raise UnregisteredCollection(
                message=f"Collection '{name}' is not registered",
                details={"collection": name},
            ) from None

    def is_scoped(self, name: str) -> bool:
        return self.kind_of(name) is CollectionKind.SCOPED

    @property
    def scoped_collections(self) -> frozenset[str]:
        return frozenset(
            name for name, kind in self._kinds.items() if kind is CollectionKind.SCOPED
        )

    @property
    def agnostic_collections(self) -> frozenset[str]:
        return frozenset(
            name
            for name, kind in self._kinds.items()
            if kind is CollectionKind.AGNOSTIC
        )
