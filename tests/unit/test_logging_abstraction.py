"""Unit tests for the logging abstraction."""

from __future__ import annotations

import json
import logging

import pytest

from apns_pusher.correlation import correlation_context
from apns_pusher.logging_abstraction import (
    HumanReadableFormatter,
    JSONFormatter,
    PushLogger,
    configure_logging,
    get_logger,
)


def make_record(msg: str = "Connected to %s", args: tuple = ("gateway",), **extra_data: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="apns_pusher.transport.session",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args,
        exc_info=None,
    )
    if extra_data:
        record.extra_data = extra_data
    return record


@pytest.mark.unit
class TestJSONFormatter:
    def test_structure(self) -> None:
        output = json.loads(JSONFormatter().format(make_record(host="gateway", port=2195)))

        assert output["level"] == "INFO"
        assert output["logger"] == "apns_pusher.transport.session"
        assert output["message"] == "Connected to gateway"
        assert output["context"] == {"host": "gateway", "port": 2195}
        assert output["correlation_id"] is None

    def test_includes_correlation_id(self) -> None:
        with correlation_context("abc123"):
            output = json.loads(JSONFormatter().format(make_record()))
        assert output["correlation_id"] == "abc123"

    def test_no_context_key_without_extra(self) -> None:
        output = json.loads(JSONFormatter().format(make_record()))
        assert "context" not in output


@pytest.mark.unit
class TestHumanReadableFormatter:
    def test_appends_context(self) -> None:
        line = HumanReadableFormatter().format(make_record(host="gateway", port=2195))
        assert "Connected to gateway" in line
        assert line.endswith("| host=gateway | port=2195")
        assert "[--------]" in line

    def test_short_correlation_id(self) -> None:
        with correlation_context("0123456789abcdef"):
            line = HumanReadableFormatter().format(make_record())
        assert "[01234567]" in line


@pytest.mark.unit
class TestPushLogger:
    def test_extra_stored_as_extra_data(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = PushLogger("apns_pusher.tests")
        with caplog.at_level(logging.INFO, logger="apns_pusher"):
            logger.info("Sent %d notifications", 3, extra={"count": 3})

        record = caplog.records[-1]
        assert record.getMessage() == "Sent 3 notifications"
        assert record.extra_data == {"count": 3}
        assert record.funcName == "test_extra_stored_as_extra_data"

    def test_set_level(self) -> None:
        logger = PushLogger("apns_pusher.tests.level")
        logger.set_level(logging.ERROR)
        assert not logger.is_enabled_for(logging.WARNING)
        assert logger.is_enabled_for(logging.ERROR)

    def test_get_logger_returns_wrapper(self) -> None:
        logger = get_logger("apns_pusher.tests.wrapper")
        assert isinstance(logger, PushLogger)
        assert logger.name == "apns_pusher.tests.wrapper"


@pytest.mark.unit
class TestConfigureLogging:
    def test_json_file_and_human_stream(self, tmp_path) -> None:
        json_file = tmp_path / "logs" / "apns.json"
        try:
            base_logger = configure_logging("both", json_file=json_file, human_output="stdout", level=logging.DEBUG)

            formatters = {type(handler.formatter) for handler in base_logger.handlers}
            assert formatters == {JSONFormatter, HumanReadableFormatter}
            assert json_file.parent.exists()
        finally:
            configure_logging("human", human_output="stderr", level=logging.INFO)

    def test_reconfigure_replaces_handlers(self) -> None:
        configure_logging("human", human_output="stderr")
        base_logger = configure_logging("human", human_output="stderr")
        assert len(base_logger.handlers) == 1
