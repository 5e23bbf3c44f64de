"""Observability probes for the file tag reconciler.

Following Domain Oriented Observability, probes capture domain-significant
events and metrics without cluttering business logic with logging concerns.
"""

from __future__ import annotations

from typing import Protocol

import structlog

logger = structlog.get_logger()


class FileTagReconcilerProbe(Protocol):
    """Protocol for file tag reconciler observability."""

    def worker_started(self) -> None:
        """Called when the worker starts."""
        ...

    def worker_stopped(self) -> None:
        """Called when the worker stops."""
        ...

    def tag_reconciled(self, entry_id: str, object_key: str) -> None:
        """Called when a pending tag is finally emitted."""
        ...

    def tag_retry_failed(self, entry_id: str, error: str, retry_count: int) -> None:
        """Called when a retry fails and the entry stays pending."""
        ...

    def tag_moved_to_dlq(self, entry_id: str, object_key: str, error: str) -> None:
        """Called when an entry exhausts its retries."""
        ...

    def batch_processed(self, count: int) -> None:
        """Called after a batch is processed."""
        ...

    def poll_loop_error(self, error: str) -> None:
        """Called when a poll iteration fails."""
        ...


class DefaultFileTagReconcilerProbe:
    """Default implementation using structlog."""

    def __init__(self) -> None:
        self._log = logger.bind(component="file_tag_reconciler")

    def worker_started(self) -> None:
        self._log.info("file_tag_reconciler_started")

    def worker_stopped(self) -> None:
        self._log.info("file_tag_reconciler_stopped")

    def tag_reconciled(self, entry_id: str, object_key: str) -> None:
        self._log.info(
            "pending_file_tag_reconciled",
            entry_id=entry_id,
            object_key=object_key,
        )

    def tag_retry_failed(self, entry_id: str, error: str, retry_count: int) -> None:
        self._log.warning(
            "pending_file_tag_retry_failed",
            entry_id=entry_id,
            error=error,
            retry_count=retry_count,
        )

    def tag_moved_to_dlq(self, entry_id: str, object_key: str, error: str) -> None:
        self._log.error(
            "pending_file_tag_moved_to_dlq",
            entry_id=entry_id,
            object_key=object_key,
            error=error,
        )

    def batch_processed(self, count: int) -> None:
        if count > 0:
            self._log.info("pending_file_tag_batch_processed", count=count)

    def poll_loop_error(self, error: str) -> None:
        self._log.warning("file_tag_reconciler_poll_error", error=error)
