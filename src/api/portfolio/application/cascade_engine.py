"""Cascading soft deletion across the portfolio hierarchy.

The engine walks the declarative hierarchy table in two passes:

1. Top-down enumeration. Children are found through their references to
   the records above them, so every descendant must be found before any
   ancestor disappears. Already deleted descendants are included so that a
   re-run picks up where a failed run stopped.
2. Bottom-up marking. Descendants are marked layer by layer, deepest
   first, and each layer is checkpointed before the next. The root is
   marked last. A child is therefore never left live below a deleted
   ancestor.

Between the two, every file object of a deleted record gets a deletion tag.
A record is stamped with ``files_tagged_at`` once its tags are emitted or
queued, so a re-run after a failure tags exactly the records that still
lack the stamp. Tagging is best-effort: a failure is collected in the
report and queued for the reconciler instead of aborting the cascade.

Cascades are not safely cancellable midway, so each one runs shielded from
the caller's cancellation.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from portfolio.application.observability import CascadeProbe, DefaultCascadeProbe
from portfolio.domain.cascade import CascadeReport, CascadeState, TagFailure
from portfolio.domain.hierarchy import EntityType, children_of
from portfolio.domain.value_objects import DeletionTag, file_references
from portfolio.ports.file_storage import FileStorage
from portfolio.ports.repositories import IPendingFileTagRepository
from shared_kernel.errors import CascadeIncomplete, NotFound
from shared_kernel.persistence.ports import AnyOf, Record
from shared_kernel.request_context import get_context
from shared_kernel.scoping import TenantScopedStore

DEFAULT_RETENTION_DAYS = 90

#: Set on a record once deletion tags for all its files are handled.
FILES_TAGGED_FIELD = "files_tagged_at"


@dataclass
class _Node:
    entity_type: EntityType
    record: Record
    depth: int

    @property
    def id(self) -> str:
        return self.record["id"]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CascadeDeletionEngine:
    """Soft-deletes a record and everything below it.

    Args:
        store: Scoped store used for every read and write
        file_storage: Collaborator receiving deletion tags
        pending_tags: Queue for tags that could not be emitted
        retention_days: Retention window stamped on deletion tags
        probe: Optional domain probe for observability
        clock: Source of the deletion timestamp
    """

    def __init__(
        self,
        store: TenantScopedStore,
        file_storage: FileStorage,
        pending_tags: IPendingFileTagRepository,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        probe: CascadeProbe | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._file_storage = file_storage
        self._pending_tags = pending_tags
        self._retention_days = retention_days
        self._probe = probe or DefaultCascadeProbe()
        self._clock = clock

    async def delete(self, entity_type: EntityType, entity_id: str) -> CascadeReport:
        """Cascade-delete the record and all of its descendants.

        Returns:
            The report of a completed cascade.

        Raises:
            NotFound: If the root does not exist in the bound tenant.
            CascadeIncomplete: If the cascade stopped partway. The error
                carries the report of how far it got.
        """
        return await asyncio.shield(self._run(entity_type, entity_id))

    async def _run(self, root_type: EntityType, root_id: str) -> CascadeReport:
        report = CascadeReport(root_type=root_type, root_id=root_id)
        self._probe.cascade_started(root_type.value, root_id)

        # Resolving through the scoped store keeps other tenants' roots
        # invisible. Deleted roots are included so re-runs are no-ops.
        root = await self._store.read_one(
            root_type.collection, {"id": root_id}, include_deleted=True
        )
        if root is None:
            raise NotFound(root_type.value, root_id)
        tenant_id: str = root["tenant_id"]
        report.tenant_id = tenant_id

        try:
            nodes = await self._enumerate(root_type, root_id, tenant_id)
            self._probe.descendants_enumerated(root_id, len(nodes))
            report.advance(CascadeState.DESCENDANTS_ENUMERATED)

            deleted_at = self._clock()
            await self._mark_descendants(nodes, tenant_id, deleted_at, report)
            report.advance(CascadeState.DESCENDANTS_MARKED)

            await self._tag_files(
                [*nodes, _Node(root_type, root, depth=0)],
                tenant_id,
                deleted_at,
                report,
            )
            report.advance(CascadeState.FILES_TAGGED)

            report.root_marked = await self._mark(
                root_type, root_id, tenant_id, deleted_at
            )
            await self._store.checkpoint()
            report.advance(CascadeState.ROOT_MARKED)
        except Exception as e:
            report.fail(str(e))
            self._probe.cascade_failed(report, e)
            raise CascadeIncomplete(report, cause=str(e)) from e

        report.advance(CascadeState.COMPLETED)
        self._probe.cascade_completed(report)
        return report

    async def _enumerate(
        self,
        root_type: EntityType,
        root_id: str,
        tenant_id: str,
    ) -> list[_Node]:
        """Find every descendant of the root, top-down.

        A record reachable along several paths (an asset under a floor is
        also under its building) is kept once, at its deepest depth.
        """
        nodes: dict[tuple[EntityType, str], _Node] = {}
        frontier: dict[EntityType, set[str]] = {root_type: {root_id}}
        depth = 0

        while frontier:
            next_frontier: dict[EntityType, set[str]] = defaultdict(set)
            for parent_type, parent_ids in frontier.items():
                for link in children_of(parent_type):
                    children = await self._store.read(
                        link.child.collection,
                        {
                            link.foreign_key: AnyOf.of(sorted(parent_ids)),
                            "tenant_id": tenant_id,
                        },
                        include_deleted=True,
                    )
                    for child in children:
                        key = (link.child, child["id"])
                        known = nodes.get(key)
                        if known is not None and known.depth >= depth + 1:
                            continue
                        nodes[key] = _Node(link.child, child, depth + 1)
                        next_frontier[link.child].add(child["id"])
            frontier = next_frontier
            depth += 1

        return list(nodes.values())

    async def _mark_descendants(
        self,
        nodes: list[_Node],
        tenant_id: str,
        deleted_at: datetime,
        report: CascadeReport,
    ) -> None:
        """Mark descendants deepest layer first, checkpointing each layer."""
        layers: dict[int, list[_Node]] = defaultdict(list)
        for node in nodes:
            layers[node.depth].append(node)
            report.layer(node.depth, node.entity_type).enumerated += 1

        for depth in sorted(layers, reverse=True):
            for node in layers[depth]:
                progress = report.layer(depth, node.entity_type)
                if await self._mark(node.entity_type, node.id, tenant_id, deleted_at):
                    progress.marked += 1
            await self._store.checkpoint()
            for progress in report.layers:
                if progress.depth == depth:
                    self._probe.layer_marked(
                        report.root_id,
                        depth,
                        progress.entity_type.value,
                        progress.marked,
                    )

    async def _mark(
        self,
        entity_type: EntityType,
        entity_id: str,
        tenant_id: str,
        deleted_at: datetime,
    ) -> bool:
        """Soft-delete one record if it is still live.

        Returns:
            True if this call moved the record to deleted.
        """
        context = get_context()
        matched = await self._store.write(
            entity_type.collection,
            {"id": entity_id, "tenant_id": tenant_id, "is_deleted": False},
            {
                "is_deleted": True,
                "deleted_at": deleted_at.isoformat(),
                "deleted_by": context.actor_id if context is not None else None,
            },
            include_deleted=True,
        )
        return matched > 0

    async def _tag_files(
        self,
        nodes: list[_Node],
        tenant_id: str,
        tagged_at: datetime,
        report: CascadeReport,
    ) -> None:
        """Tag the files of every record not yet stamped as tagged.

        The stamp is written after each record's tags were either emitted
        or queued for the reconciler, never before.
        """
        queued = False
        for node in nodes:
            if node.record.get(FILES_TAGGED_FIELD):
                continue
            files = file_references(node.entity_type, node.record)
            if not files:
                continue

            for file in files:
                tag = DeletionTag.for_file(file, tagged_at, self._retention_days)
                try:
                    await self._file_storage.tag_for_expiry(tag)
                except Exception as e:
                    self._probe.file_tagging_failed(
                        node.id, file.bucket_ref, file.object_key, e
                    )
                    report.tag_failures.append(
                        TagFailure(
                            entity_type=node.entity_type,
                            entity_id=node.id,
                            bucket_ref=file.bucket_ref,
                            object_key=file.object_key,
                            error=str(e),
                        )
                    )
                    await self._pending_tags.add(
                        tag, tenant_id, node.entity_type, node.id, str(e)
                    )
                    queued = True
                else:
                    report.tags_emitted += 1
                    self._probe.file_tagged(node.id, file.bucket_ref, file.object_key)

            await self._store.write(
                node.entity_type.collection,
                {"id": node.id, "tenant_id": tenant_id},
                {FILES_TAGGED_FIELD: tagged_at.isoformat()},
                include_deleted=True,
            )

        if queued:
            await self._store.checkpoint()
