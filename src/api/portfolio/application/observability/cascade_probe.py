"""Domain probe for cascade deletions.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from portfolio.domain.cascade import CascadeReport
    from shared_kernel.observability_context import ObservationContext


class CascadeProbe(Protocol):
    """Domain probe for cascade deletion operations."""

    def cascade_started(self, root_type: str, root_id: str) -> None:
        """Record that a cascade deletion began."""
        ...

    def descendants_enumerated(self, root_id: str, count: int) -> None:
        """Record how many descendants were found below the root."""
        ...

    def layer_marked(
        self,
        root_id: str,
        depth: int,
        entity_type: str,
        marked: int,
    ) -> None:
        """Record that one layer was marked and checkpointed."""
        ...

    def file_tagged(self, entity_id: str, bucket_ref: str, object_key: str) -> None:
        """Record that a deletion tag was emitted."""
        ...

    def file_tagging_failed(
        self,
        entity_id: str,
        bucket_ref: str,
        object_key: str,
        error: Exception,
    ) -> None:
        """Record that a deletion tag could not be emitted."""
        ...

    def cascade_completed(self, report: CascadeReport) -> None:
        """Record that a cascade finished."""
        ...

    def cascade_failed(self, report: CascadeReport, error: Exception) -> None:
        """Record that a cascade stopped partway."""
        ...

    def with_context(self, context: ObservationContext) -> CascadeProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultCascadeProbe:
    """Default implementation of CascadeProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultCascadeProbe:
        """Create a new probe with observation context bound."""
        return DefaultCascadeProbe(logger=self._logger, context=context)

    def cascade_started(self, root_type: str, root_id: str) -> None:
        self._logger.info(
            "cascade_started",
            root_type=root_type,
            root_id=root_id,
            **self._get_context_kwargs(),
        )

    def descendants_enumerated(self, root_id: str, count: int) -> None:
        self._logger.debug(
            "cascade_descendants_enumerated",
            root_id=root_id,
            count=count,
            **self._get_context_kwargs(),
        )

    def layer_marked(
        self,
        root_id: str,
        depth: int,
        entity_type: str,
        marked: int,
    ) -> None:
        self._logger.debug(
            "cascade_layer_marked",
            root_id=root_id,
            depth=depth,
            entity_type=entity_type,
            marked=marked,
            **self._get_context_kwargs(),
        )

    def file_tagged(self, entity_id: str, bucket_ref: str, object_key: str) -> None:
        self._logger.debug(
            "cascade_file_tagged",
            entity_id=entity_id,
            bucket_ref=bucket_ref,
            object_key=object_key,
            **self._get_context_kwargs(),
        )

    def file_tagging_failed(
        self,
        entity_id: str,
        bucket_ref: str,
        object_key: str,
        error: Exception,
    ) -> None:
        self._logger.warning(
            "cascade_file_tagging_failed",
            entity_id=entity_id,
            bucket_ref=bucket_ref,
            object_key=object_key,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def cascade_completed(self, report: CascadeReport) -> None:
        self._logger.info(
            "cascade_completed",
            root_type=report.root_type.value,
            root_id=report.root_id,
            descendants_marked=report.descendants_marked,
            root_marked=report.root_marked,
            tags_emitted=report.tags_emitted,
            tag_failures=len(report.tag_failures),
            **self._get_context_kwargs(),
        )

    def cascade_failed(self, report: CascadeReport, error: Exception) -> None:
        self._logger.error(
            "cascade_failed",
            root_type=report.root_type.value,
            root_id=report.root_id,
            last_completed_state=report.last_completed.value,
            layers=[progress.as_dict() for progress in report.layers],
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
