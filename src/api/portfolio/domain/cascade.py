"""Progress tracking for cascade deletions.

A ``CascadeReport`` records how far a cascade got: the last state it
completed, per-layer counts, and any file tags that could not be emitted.
When a cascade fails partway the report travels with the error so an
operator can see which layers completed before retrying. Re-running a
cascade is safe because marking an already deleted record is a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from portfolio.domain.hierarchy import EntityType


class CascadeState(StrEnum):
    STARTED = "started"
    DESCENDANTS_ENUMERATED = "descendants_enumerated"
    DESCENDANTS_MARKED = "descendants_marked"
    FILES_TAGGED = "files_tagged"
    ROOT_MARKED = "root_marked"
    COMPLETED = "completed"
    FAILED = "failed"


_ORDER = (
    CascadeState.STARTED,
    CascadeState.DESCENDANTS_ENUMERATED,
    CascadeState.DESCENDANTS_MARKED,
    CascadeState.FILES_TAGGED,
    CascadeState.ROOT_MARKED,
    CascadeState.COMPLETED,
)


@dataclass
class LayerProgress:
    """Counts for one entity type at one depth below the root."""

    depth: int
    entity_type: EntityType
    enumerated: int = 0
    marked: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "depth": self.depth,
            "entityType": self.entity_type.value,
            "enumerated": self.enumerated,
            "marked": self.marked,
        }


@dataclass(frozen=True)
class TagFailure:
    entity_type: EntityType
    entity_id: str
    bucket_ref: str
    object_key: str
    error: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "entityType": self.entity_type.value,
            "entityId": self.entity_id,
            "bucketRef": self.bucket_ref,
            "objectKey": self.object_key,
            "error": self.error,
        }


@dataclass
class CascadeReport:
    """How far a cascade deletion got."""

    root_type: EntityType
    root_id: str
    tenant_id: str | None = None
    state: CascadeState = CascadeState.STARTED
    last_completed: CascadeState = CascadeState.STARTED
    layers: list[LayerProgress] = field(default_factory=list)
    root_marked: bool = False
    tags_emitted: int = 0
    tag_failures: list[TagFailure] = field(default_factory=list)
    error: str | None = None

    def advance(self, state: CascadeState) -> None:
        """Move to the next state.

        Raises:
            ValueError: If ``state`` is not the successor of the current one.
        """
        if self.state is CascadeState.FAILED:
            raise ValueError("Cannot advance a failed cascade")
        expected = _ORDER[_ORDER.index(self.state) + 1]
        if state is not expected:
            raise ValueError(
                f"Cascade cannot move from {self.state.value} to {state.value}"
            )
        self.state = state
        self.last_completed = state

    def fail(self, error: str) -> None:
        self.state = CascadeState.FAILED
        self.error = error

    def layer(self, depth: int, entity_type: EntityType) -> LayerProgress:
        for progress in self.layers:
            if progress.depth == depth and progress.entity_type is entity_type:
                return progress
        progress = LayerProgress(depth=depth, entity_type=entity_type)
        self.layers.append(progress)
        return progress

    @property
    def completed(self) -> bool:
        return self.state is CascadeState.COMPLETED

    @property
    def descendants_marked(self) -> int:
        return sum(progress.marked for progress in self.layers)

    def as_dict(self) -> dict[str, Any]:
        return {
            "rootType": self.root_type.value,
            "rootId": self.root_id,
            "tenantId": self.tenant_id,
            "state": self.state.value,
            "lastCompletedState": self.last_completed.value,
            "layers": [progress.as_dict() for progress in self.layers],
            "rootMarked": self.root_marked,
            "descendantsMarked": self.descendants_marked,
            "tagsEmitted": self.tags_emitted,
            "tagFailures": [failure.as_dict() for failure in self.tag_failures],
            "error": self.error,
        }
