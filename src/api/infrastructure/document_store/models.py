"""SQLAlchemy ORM model for the records table.

Every collection shares one table. The fields the data-access core relies
on (tenant, version, soft-delete flag, timestamps) are first-class columns;
everything else lives in the JSONB ``data`` column.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin
from shared_kernel.persistence.ports import Record

#: Record fields stored as columns rather than inside ``data``.
COLUMN_FIELDS = frozenset(
    {"id", "tenant_id", "version", "is_deleted", "created_at", "updated_at"}
)


class RecordModel(Base, TimestampMixin):
    """ORM model for the records table.

    The composite primary key is (collection, id). The partial index on
    live records serves the tenant-filtered reads every scoped access
    performs.
    """

    __tablename__ = "records"
    __table_args__ = (
        Index(
            "idx_records_tenant_live",
            "collection",
            "tenant_id",
            postgresql_where=text("is_deleted = false"),
        ),
    )

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Agnostic collections keep caller ids, e.g. identity-provider subjects
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    tenant_id: Mapped[str | None] = mapped_column(
        String(26), nullable=True, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    data: Mapped[dict[str, Any]] = mapped_column(
        JSONB, nullable=False, server_default=text("'{}'::jsonb")
    )

    @classmethod
    def from_record(cls, collection: str, record: Record) -> RecordModel:
        return cls(
            collection=collection,
            id=record["id"],
            tenant_id=record.get("tenant_id"),
            version=record.get("version", 0),
            is_deleted=record.get("is_deleted", False),
            data={
                key: value
                for key, value in record.items()
                if key not in COLUMN_FIELDS
            },
        )

    def to_record(self) -> Record:
        record: Record = dict(self.data)
        record["id"] = self.id
        if self.tenant_id is not None:
            record["tenant_id"] = self.tenant_id
        record["version"] = self.version
        record["is_deleted"] = self.is_deleted
        record["created_at"] = self.created_at
        record["updated_at"] = self.updated_at
        return record

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<RecordModel("
            f"collection={self.collection}, "
            f"id={self.id}, "
            f"tenant_id={self.tenant_id}, "
            f"version={self.version}, "
            f"is_deleted={self.is_deleted}"
            f")>"
        )
