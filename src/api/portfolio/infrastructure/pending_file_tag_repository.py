"""Document store implementation of IPendingFileTagRepository.

Pending tags live in the tenant-agnostic ``pending_file_tags`` collection
so the reconciler can drain them without binding a tenant. Timestamps are
stored as ISO-8601 strings.
"""

from __future__ import annotations

from datetime import UTC, datetime

from portfolio.domain.hierarchy import EntityType
from portfolio.domain.value_objects import DeletionTag, PendingFileTag
from portfolio.ports.repositories import IPendingFileTagRepository
from shared_kernel.persistence.ports import Record
from shared_kernel.scoping import TenantScopedStore

PENDING_FILE_TAGS_COLLECTION = "pending_file_tags"


def _parse_timestamp(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _to_entry(record: Record) -> PendingFileTag:
    return PendingFileTag(
        id=record["id"],
        tag=DeletionTag(
            bucket_ref=record["bucket_ref"],
            object_key=record["object_key"],
            tagged_at=datetime.fromisoformat(record["tagged_at"]),
            retention_days=record["retention_days"],
        ),
        tenant_id=record["origin_tenant_id"],
        entity_type=EntityType(record["entity_type"]),
        entity_id=record["entity_id"],
        retry_count=record.get("retry_count", 0),
        last_error=record.get("last_error"),
        failed_at=_parse_timestamp(record.get("failed_at")),
        processed_at=_parse_timestamp(record.get("processed_at")),
    )


class PendingFileTagRepository(IPendingFileTagRepository):
    """Pending deletion tags kept in the document store.

    Args:
        store: Scoped store; the collection must be registered as
            tenant-agnostic
    """

    def __init__(self, store: TenantScopedStore) -> None:
        self._store = store

    async def add(
        self,
        tag: DeletionTag,
        tenant_id: str,
        entity_type: EntityType,
        entity_id: str,
        error: str,
    ) -> PendingFileTag:
        record = await self._store.create(
            PENDING_FILE_TAGS_COLLECTION,
            {
                "bucket_ref": tag.bucket_ref,
                "object_key": tag.object_key,
                "tagged_at": tag.tagged_at.isoformat(),
                "retention_days": tag.retention_days,
                "origin_tenant_id": tenant_id,
                "entity_type": entity_type.value,
                "entity_id": entity_id,
                "retry_count": 0,
                "last_error": error,
                "failed_at": None,
                "processed_at": None,
            },
        )
        return _to_entry(record)

    async def fetch_unprocessed(self, limit: int = 100) -> list[PendingFileTag]:
        records = await self._store.read(
            PENDING_FILE_TAGS_COLLECTION,
            {"processed_at": None, "failed_at": None},
            order_by="created_at",
            limit=limit,
        )
        return [_to_entry(record) for record in records]

    async def mark_processed(self, entry_id: str) -> None:
        await self._store.write(
            PENDING_FILE_TAGS_COLLECTION,
            {"id": entry_id},
            {"processed_at": _now()},
        )

    async def record_failure(
        self,
        entry_id: str,
        retry_count: int,
        error: str,
    ) -> None:
        await self._store.write(
            PENDING_FILE_TAGS_COLLECTION,
            {"id": entry_id},
            {"retry_count": retry_count, "last_error": error},
        )

    async def move_to_dlq(
        self,
        entry_id: str,
        retry_count: int,
        error: str,
    ) -> None:
        await self._store.write(
            PENDING_FILE_TAGS_COLLECTION,
            {"id": entry_id},
            {"retry_count": retry_count, "last_error": error, "failed_at": _now()},
        )

    async def list_failed(self) -> list[PendingFileTag]:
        records = await self._store.read(
            PENDING_FILE_TAGS_COLLECTION, order_by="created_at"
        )
        return [_to_entry(record) for record in records if record.get("failed_at")]
