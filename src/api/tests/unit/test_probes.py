"""Unit tests for domain probes.

Tests that domain probes correctly capture domain events
following the Domain Oriented Observability pattern.
"""

from unittest.mock import MagicMock

import structlog

from infrastructure.logging import add_request_context
from infrastructure.observability import (
    ConnectionProbe,
    DefaultConnectionProbe,
    DefaultStartupProbe,
    ObservationContext,
    StartupProbe,
)
from shared_kernel.request_context import RequestContext, bound_context
from shared_kernel.scoping import DefaultScopingProbe


class TestConnectionProbe:
    """Tests for ConnectionProbe protocol and implementation."""

    def test_default_probe_creates_with_default_logger(self):
        """Default probe should work without explicit logger."""
        probe = DefaultConnectionProbe()
        assert probe._logger is not None

    def test_engine_created_logs_info(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultConnectionProbe(logger=mock_logger)

        probe.engine_created(
            connection_string="postgresql://u@localhost:5432/db", pool_size=10
        )

        mock_logger.info.assert_called_once_with(
            "database_engine_created",
            connection_string="postgresql://u@localhost:5432/db",
            pool_size=10,
        )

    def test_pool_closed_includes_context(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultConnectionProbe(logger=mock_logger).with_context(
            ObservationContext(request_id="req-1")
        )

        probe.pool_closed()

        mock_logger.info.assert_called_once_with(
            "connection_pool_closed", request_id="req-1"
        )


class TestStartupProbe:
    def test_application_starting_logs_info(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultStartupProbe(logger=mock_logger)

        probe.application_starting(
            app_name="Tenantcore API", version="0.1.0", store_backend="memory"
        )

        mock_logger.info.assert_called_once_with(
            "application_starting",
            app_name="Tenantcore API",
            version="0.1.0",
            store_backend="memory",
        )

    def test_reconciler_disabled_logs_info(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        DefaultStartupProbe(logger=mock_logger).reconciler_disabled()

        mock_logger.info.assert_called_once_with("file_tag_reconciler_disabled")


class TestScopingProbe:
    """Security-relevant scoping events are logged as warnings or errors."""

    def test_missing_tenant_logs_error(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        DefaultScopingProbe(logger=mock_logger).tenant_context_missing(
            "buildings", "read"
        )

        mock_logger.error.assert_called_once_with(
            "scoped_access_without_tenant", collection="buildings", operation="read"
        )

    def test_bypass_logs_warning_with_reason(self):
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        DefaultScopingProbe(logger=mock_logger).bypass_used(
            "buildings", "read", "audit export", "operator", "01ARZ3NDEKTSV4RRFFQ69G5FAV"
        )

        mock_logger.warning.assert_called_once_with(
            "tenant_filter_bypassed",
            collection="buildings",
            operation="read",
            reason="audit export",
            actor_id="operator",
            target_tenant="01ARZ3NDEKTSV4RRFFQ69G5FAV",
        )


class TestProbeProtocolCompliance:
    """Default probes implement their protocols."""

    def test_default_connection_probe_matches_protocol(self):
        probe: ConnectionProbe = DefaultConnectionProbe()
        assert callable(probe.engine_created)
        assert callable(probe.schema_ensured)
        assert callable(probe.pool_closed)
        assert callable(probe.with_context)

    def test_default_startup_probe_matches_protocol(self):
        probe: StartupProbe = DefaultStartupProbe()
        assert callable(probe.application_starting)
        assert callable(probe.collections_registered)
        assert callable(probe.reconciler_disabled)
        assert callable(probe.application_stopped)


class TestObservationContext:
    """Tests for ObservationContext."""

    def test_as_dict_excludes_none_values(self):
        context = ObservationContext(request_id="req-123")
        assert context.as_dict() == {"request_id": "req-123"}

    def test_as_dict_includes_all_set_values(self):
        context = ObservationContext(
            request_id="req-123",
            actor_id="actor-1",
            tenant_id="T1",
            extra={"custom": "value"},
        )
        assert context.as_dict() == {
            "request_id": "req-123",
            "actor_id": "actor-1",
            "tenant_id": "T1",
            "custom": "value",
        }

    def test_with_collection_creates_new_context(self):
        original = ObservationContext(request_id="req-123")
        new_context = original.with_collection("buildings")

        assert new_context is not original
        assert new_context.collection == "buildings"
        assert original.collection is None

    def test_with_extra_merges_metadata(self):
        original = ObservationContext(extra={"a": 1})
        assert original.with_extra(b=2).extra == {"a": 1, "b": 2}
        assert original.extra == {"a": 1}


class TestRequestContextProcessor:
    """Tests for the structlog processor adding request identity."""

    def test_no_context_leaves_event_unchanged(self):
        event = {"event": "something"}
        assert add_request_context(None, "info", event) == {"event": "something"}

    def test_bound_context_is_added(self):
        context = RequestContext(request_id="req-1", tenant_id="T1", actor_id="a1")
        with bound_context(context):
            event = add_request_context(None, "info", {"event": "x"})

        assert event == {
            "event": "x",
            "request_id": "req-1",
            "tenant_id": "T1",
            "actor_id": "a1",
        }

    def test_explicit_values_win(self):
        with bound_context(RequestContext(request_id="req-1", tenant_id="T1")):
            event = add_request_context(None, "info", {"event": "x", "tenant_id": "T2"})

        assert event["tenant_id"] == "T2"
