"""In-process FileStorage for development and tests."""

from __future__ import annotations

from portfolio.domain.value_objects import DeletionTag
from portfolio.ports.file_storage import FileTaggingError


class InMemoryFileStorage:
    """Keeps the latest deletion tag per object.

    Objects listed in ``failing_keys`` reject tagging, which lets tests and
    local runs exercise the reconciliation path.
    """

    def __init__(self, failing_keys: set[str] | None = None) -> None:
        self.tags: dict[tuple[str, str], DeletionTag] = {}
        self.emitted: list[DeletionTag] = []
        self.failing_keys = failing_keys if failing_keys is not None else set()

    async def tag_for_expiry(self, tag: DeletionTag) -> None:
        if tag.object_key in self.failing_keys:
            raise FileTaggingError(f"Tagging rejected for {tag.object_key}")
        self.tags[(tag.bucket_ref, tag.object_key)] = tag
        self.emitted.append(tag)
