"""Background worker retrying deletion tags that could not be emitted.

A cascade never waits for file storage: when a tag fails it is queued in
the pending tag collection and the cascade carries on. This worker polls
the queue, retries each entry, and dead-letters entries that keep failing
so an operator can look at them. Without it a file whose tag failed would
never expire.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from portfolio.application.observability import (
    DefaultFileTagReconcilerProbe,
    FileTagReconcilerProbe,
)
from portfolio.domain.value_objects import PendingFileTag
from portfolio.ports.file_storage import FileStorage
from portfolio.ports.repositories import IPendingFileTagRepository
from shared_kernel.scoping import TenantScopedStore

StoreScopeFactory = Callable[[], AbstractAsyncContextManager[TenantScopedStore]]
RepositoryFactory = Callable[[TenantScopedStore], IPendingFileTagRepository]


class FileTagReconciler:
    """Polls pending deletion tags and retries them.

    Args:
        store_scope: Opens a unit of work and yields a scoped store for it
        repository_factory: Builds the pending tag repository over that store
        file_storage: Collaborator receiving deletion tags
        probe: Observability probe for logging
        poll_interval_seconds: How often to poll for pending entries
        batch_size: Maximum entries to process per batch
        max_retries: Maximum attempts before moving an entry to the DLQ
    """

    def __init__(
        self,
        store_scope: StoreScopeFactory,
        repository_factory: RepositoryFactory,
        file_storage: FileStorage,
        probe: FileTagReconcilerProbe | None = None,
        poll_interval_seconds: int = 30,
        batch_size: int = 100,
        max_retries: int = 5,
    ) -> None:
        self._store_scope = store_scope
        self._repository_factory = repository_factory
        self._file_storage = file_storage
        self._probe = probe or DefaultFileTagReconcilerProbe()
        self._poll_interval = poll_interval_seconds
        self._batch_size = batch_size
        self._max_retries = max_retries
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the poll loop in the background."""
        self._running = True
        self._probe.worker_started()
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Gracefully stop the worker and wait for the loop to finish."""
        self._running = False

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self._probe.worker_stopped()

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                self._probe.poll_loop_error(str(e))

            await asyncio.sleep(self._poll_interval)

    async def run_once(self) -> int:
        """Process one batch of pending entries.

        Returns:
            The number of entries attempted.
        """
        async with self._store_scope() as store:
            repository = self._repository_factory(store)
            entries = await repository.fetch_unprocessed(limit=self._batch_size)

            for entry in entries:
                await self._process(entry, repository)

            if entries:
                await store.checkpoint()
            self._probe.batch_processed(len(entries))
            return len(entries)

    async def _process(
        self,
        entry: PendingFileTag,
        repository: IPendingFileTagRepository,
    ) -> None:
        try:
            await self._file_storage.tag_for_expiry(entry.tag)
        except Exception as e:
            await self._handle_failure(entry, str(e), repository)
            return

        await repository.mark_processed(entry.id)
        self._probe.tag_reconciled(entry.id, entry.tag.object_key)

    async def _handle_failure(
        self,
        entry: PendingFileTag,
        error: str,
        repository: IPendingFileTagRepository,
    ) -> None:
        """Increment the retry count or move the entry to the DLQ."""
        new_retry_count = entry.retry_count + 1

        if new_retry_count >= self._max_retries:
            await repository.move_to_dlq(entry.id, new_retry_count, error)
            self._probe.tag_moved_to_dlq(entry.id, entry.tag.object_key, error)
        else:
            await repository.record_failure(entry.id, new_retry_count, error)
            self._probe.tag_retry_failed(entry.id, error, new_retry_count)
