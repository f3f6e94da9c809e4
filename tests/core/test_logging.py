"""
Tests for the structured logging module.

Tests verify:
- Context binding shows up in captured events
- LogContext restores the context on exit
- configure_from_settings honours the log format setting
"""

import pytest
import structlog
from structlog.testing import capture_logs

from syncviews.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    unbind_context,
)
from syncviews.core.settings import SyncViewSettings


@pytest.fixture
def restore_logging():
    yield
    configure_logging(level="DEBUG", json_format=False)


class TestContextManagement:
    """Test context bind/unbind/clear operations."""

    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_bind_context(self):
        bind_context(view="mc1")
        assert structlog.contextvars.get_contextvars() == {"view": "mc1"}

    def test_unbind_context(self):
        bind_context(view="mc1", event="add")
        unbind_context("event")
        assert structlog.contextvars.get_contextvars() == {"view": "mc1"}

    def test_log_context_is_scoped(self):
        with LogContext(view="mc2"):
            assert structlog.contextvars.get_contextvars()["view"] == "mc2"
        assert "view" not in structlog.contextvars.get_contextvars()


class TestLogging:
    """Events are emitted with their key/value pairs."""

    def test_logger_emits_event(self):
        logger = get_logger("syncviews.tests")
        with capture_logs() as logs:
            logger.warning("mapped_view.correspondence_miss", view="mc1")
        assert logs == [
            {"event": "mapped_view.correspondence_miss", "view": "mc1", "log_level": "warning"}
        ]

    @pytest.mark.parametrize("json_format", [True, False, None])
    def test_configure_logging_accepts_formats(self, restore_logging, json_format):
        configure_logging(level="INFO", json_format=json_format, service="tests")
        assert structlog.is_configured()

    def test_configure_from_settings(self, restore_logging):
        settings = SyncViewSettings(log_level="warning", log_format="json", service_name="svc")
        configure_from_settings(settings)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
