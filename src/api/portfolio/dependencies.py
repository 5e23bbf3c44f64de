"""Dependency injection for the portfolio bounded context.

Provides FastAPI dependencies for the record service and its collaborators,
plus the factories the application lifespan uses to run the file tag
reconciler.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from infrastructure.dependencies import get_scoped_store, open_scoped_store
from infrastructure.settings import get_file_storage_settings
from portfolio.application.cascade_engine import CascadeDeletionEngine
from portfolio.application.file_tag_reconciler import FileTagReconciler
from portfolio.application.observability import (
    CascadeProbe,
    DefaultCascadeProbe,
    DefaultVersionGuardProbe,
    VersionGuardProbe,
)
from portfolio.application.record_service import RecordService
from portfolio.application.version_guard import VersionConflictGuard
from portfolio.domain.hierarchy import scoped_collections
from portfolio.infrastructure.memory_file_storage import InMemoryFileStorage
from portfolio.infrastructure.pending_file_tag_repository import (
    PENDING_FILE_TAGS_COLLECTION,
    PendingFileTagRepository,
)
from portfolio.infrastructure.s3_file_storage import S3FileStorage
from portfolio.ports.file_storage import FileStorage
from shared_kernel.scoping import CollectionKind, CollectionRegistry, TenantScopedStore


def register_collections(registry: CollectionRegistry) -> None:
    """Register hierarchy collections as scoped and the tag queue as agnostic.

    The tag queue is drained by a background worker that serves every
    tenant, so it carries the originating tenant as plain data.
    """
    for collection in scoped_collections():
        registry.register(collection, CollectionKind.SCOPED)
    registry.register(PENDING_FILE_TAGS_COLLECTION, CollectionKind.AGNOSTIC)


@lru_cache
def get_file_storage() -> FileStorage:
    """Get the file storage collaborator for the configured backend (singleton)."""
    settings = get_file_storage_settings()
    if settings.backend == "s3":
        return S3FileStorage(
            endpoint_url=settings.s3_endpoint_url,
            region_name=settings.s3_region,
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=(
                settings.s3_secret_access_key.get_secret_value()
                if settings.s3_secret_access_key
                else None
            ),
        )
    return InMemoryFileStorage()


def get_pending_file_tag_repository(
    store: Annotated[TenantScopedStore, Depends(get_scoped_store)],
) -> PendingFileTagRepository:
    return PendingFileTagRepository(store=store)


def get_cascade_probe() -> CascadeProbe:
    return DefaultCascadeProbe()


def get_version_guard_probe() -> VersionGuardProbe:
    return DefaultVersionGuardProbe()


def get_cascade_engine(
    store: Annotated[TenantScopedStore, Depends(get_scoped_store)],
    file_storage: Annotated[FileStorage, Depends(get_file_storage)],
    pending_tags: Annotated[
        PendingFileTagRepository, Depends(get_pending_file_tag_repository)
    ],
    probe: Annotated[CascadeProbe, Depends(get_cascade_probe)],
) -> CascadeDeletionEngine:
    return CascadeDeletionEngine(
        store=store,
        file_storage=file_storage,
        pending_tags=pending_tags,
        retention_days=get_file_storage_settings().retention_days,
        probe=probe,
    )


def get_version_guard(
    store: Annotated[TenantScopedStore, Depends(get_scoped_store)],
    probe: Annotated[VersionGuardProbe, Depends(get_version_guard_probe)],
) -> VersionConflictGuard:
    return VersionConflictGuard(store=store, probe=probe)


def get_record_service(
    store: Annotated[TenantScopedStore, Depends(get_scoped_store)],
    version_guard: Annotated[VersionConflictGuard, Depends(get_version_guard)],
    cascade_engine: Annotated[CascadeDeletionEngine, Depends(get_cascade_engine)],
) -> RecordService:
    """Get RecordService instance.

    All collaborators share the request's scoped store, so they share one
    unit of work.
    """
    return RecordService(
        store=store,
        version_guard=version_guard,
        cascade_engine=cascade_engine,
    )


def create_file_tag_reconciler() -> FileTagReconciler:
    """Build the reconciler worker from settings.

    Each batch opens its own unit of work on the configured store.
    """
    settings = get_file_storage_settings()
    return FileTagReconciler(
        store_scope=open_scoped_store,
        repository_factory=PendingFileTagRepository,
        file_storage=get_file_storage(),
        poll_interval_seconds=settings.reconciler_poll_interval_seconds,
        batch_size=settings.reconciler_batch_size,
        max_retries=settings.reconciler_max_retries,
    )
