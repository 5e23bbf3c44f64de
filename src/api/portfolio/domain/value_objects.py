"""Value objects for the portfolio domain."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from portfolio.domain.hierarchy import EntityType

_ETAG_PATTERN = re.compile(r'^W/"v(\d+)"$')


@dataclass(frozen=True)
class VersionToken:
    """The version of a record a client believes it is editing.

    Carried over HTTP as a weak ETag of the form ``W/"v{version}"``.
    """

    resource_id: str
    version: int

    @property
    def etag(self) -> str:
        return format_etag(self.version)


def format_etag(version: int) -> str:
    return f'W/"v{version}"'


def parse_etag(value: str) -> int | None:
    """Extract the version from a weak ETag, or None if malformed."""
    match = _ETAG_PATTERN.match(value.strip())
    if match is None:
        return None
    return int(match.group(1))


@dataclass(frozen=True)
class FileReference:
    """Location of a stored file object attached to a record."""

    bucket_ref: str
    object_key: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileReference:
        return cls(bucket_ref=data["bucket_ref"], object_key=data["object_key"])


@dataclass(frozen=True)
class DeletionTag:
    """Instruction to the file-storage collaborator to expire an object.

    The collaborator owns the purge once the retention window elapses.
    """

    bucket_ref: str
    object_key: str
    tagged_at: datetime
    retention_days: int

    @classmethod
    def for_file(
        cls,
        file: FileReference,
        tagged_at: datetime,
        retention_days: int,
    ) -> DeletionTag:
        return cls(
            bucket_ref=file.bucket_ref,
            object_key=file.object_key,
            tagged_at=tagged_at,
            retention_days=retention_days,
        )


#: Where file-bearing entity types keep their file references.
FILE_FIELDS: dict[EntityType, str] = {
    EntityType.DOCUMENT: "file",
    EntityType.ASSET: "files",
}


def file_references(entity_type: EntityType, record: dict[str, Any]) -> list[FileReference]:
    """Return the file objects attached to a record.

    Documents carry a single ``file``; assets carry a ``files`` list.
    Entries without a bucket and key are skipped.
    """
    field = FILE_FIELDS.get(entity_type)
    if field is None:
        return []
    value = record.get(field)
    if value is None:
        return []
    entries = value if isinstance(value, list) else [value]
    return [
        FileReference.from_dict(entry)
        for entry in entries
        if isinstance(entry, dict)
        and entry.get("bucket_ref")
        and entry.get("object_key")
    ]


@dataclass(frozen=True)
class PendingFileTag:
    """A deletion tag whose emission failed and awaits reconciliation.

    Attributes:
        id: Identifier of the pending entry
        tag: The deletion tag to emit
        tenant_id: Tenant of the record the file belonged to
        entity_type: Type of the record the file belonged to
        entity_id: Identifier of that record
        retry_count: Number of failed emission attempts so far
        last_error: The most recent error message
        failed_at: When the entry was dead-lettered (None while retrying)
        processed_at: When the tag was finally emitted
    """

    id: str
    tag: DeletionTag
    tenant_id: str
    entity_type: EntityType
    entity_id: str
    retry_count: int = 0
    last_error: str | None = None
    failed_at: datetime | None = None
    processed_at: datetime | None = None

    @property
    def is_processed(self) -> bool:
        return self.processed_at is not None

    @property
    def is_failed(self) -> bool:
        """Check if this entry has been moved to the dead-letter state."""
        return self.failed_at is not None
