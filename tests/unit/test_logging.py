"""Unit tests for logging module."""

from unittest.mock import patch

import structlog

from app.core.logging import bind_request_context, clear_request_context, setup_logging


def test_setup_logging():
    with patch("app.core.logging.get_settings") as mock_settings:
        mock_settings.return_value.app.log_level.value = "INFO"
        mock_settings.return_value.observability.log_record_format = "json"
        mock_settings.return_value.observability.service_name = "campaign-forensics-service"
        setup_logging()


def test_setup_logging_console():
    with patch("app.core.logging.get_settings") as mock_settings:
        mock_settings.return_value.app.log_level.value = "DEBUG"
        mock_settings.return_value.observability.log_record_format = "console"
        mock_settings.return_value.observability.service_name = "campaign-forensics-service"
        setup_logging()


def test_bind_request_context_skips_empty_values():
    clear_request_context()
    bind_request_context(request_id="req-1", interaction_id="")
    context = structlog.contextvars.get_contextvars()
    assert context == {"request_id": "req-1"}
    clear_request_context()
    assert structlog.contextvars.get_contextvars() == {}
