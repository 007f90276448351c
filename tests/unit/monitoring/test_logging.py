"""
Unit tests for the structured logging helpers.
"""

import io
import json
import logging
import sys

import pytest

from family_activities.configs.settings import Settings
from family_activities.monitoring.logging import (
    ROOT_LOGGER_NAME,
    ContextAdapter,
    JsonFormatter,
    LoggingOptions,
    TextFormatter,
    configure_logging,
    with_context,
)


@pytest.fixture
def package_logger():
    """Restore the package logger after each test reconfigures it."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handlers, level, propagate = saved
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


def make_record(msg="hello", **extra):
    record = logging.LogRecord(
        name="family_activities.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_base_fields(self):
        data = json.loads(JsonFormatter().format(make_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "family_activities.test"
        assert data["msg"] == "hello"
        assert "ts" in data

    def test_context_fields(self):
        record = make_record(source_url="https://spl.org", stage="normalize", block_index=2)
        data = json.loads(JsonFormatter().format(record))
        assert data["source_url"] == "https://spl.org"
        assert data["stage"] == "normalize"
        assert data["block_index"] == 2
        assert "schema_type" not in data

    def test_payload(self):
        data = json.loads(JsonFormatter().format(make_record(payload={"total": 3})))
        assert data["payload"] == {"total": 3}

    def test_exception(self):
        try:
            raise ValueError("bad payload")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()
        data = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad payload" in data["exc_info"]


class TestTextFormatter:
    def test_plain(self):
        assert TextFormatter().format(make_record()) == "INFO family_activities.test hello"

    def test_context(self):
        record = make_record(source_url="https://spl.org", schema_type="events", stage="extract")
        assert TextFormatter().format(record) == (
            "INFO family_activities.test [source=https://spl.org schema=events stage=extract] hello"
        )


class TestConfigureLogging:
    def test_text_output(self, package_logger):
        stream = io.StringIO()
        logger = configure_logging("DEBUG", json_logs=False, stream=stream)
        logging.getLogger("family_activities.ingestion").debug("segmenting")
        assert logger is package_logger
        assert logger.level == logging.DEBUG
        assert "DEBUG family_activities.ingestion segmenting" in stream.getvalue()

    def test_json_output(self, package_logger):
        stream = io.StringIO()
        configure_logging("INFO", json_logs=True, stream=stream)
        logging.getLogger("family_activities.monitoring").info("ready")
        assert json.loads(stream.getvalue().strip())["msg"] == "ready"

    def test_replaces_handlers(self, package_logger):
        configure_logging("INFO", stream=io.StringIO())
        configure_logging("INFO", stream=io.StringIO())
        assert len(package_logger.handlers) == 1

    def test_level_filters(self, package_logger):
        stream = io.StringIO()
        configure_logging("WARNING", stream=stream)
        logging.getLogger("family_activities.x").info("quiet")
        assert stream.getvalue() == ""

    def test_options_without_console(self, package_logger):
        configure_logging(options=LoggingOptions(level="ERROR", enable_console=False))
        assert package_logger.handlers == []
        assert package_logger.level == logging.ERROR

    def test_settings_defaults(self, package_logger, monkeypatch):
        monkeypatch.setattr(
            "family_activities.monitoring.logging.get_settings",
            lambda: Settings(_env_file=None, LOG_LEVEL="WARNING"),
        )
        assert configure_logging(stream=io.StringIO()).level == logging.WARNING


class TestWithContext:
    def test_adapter_extra(self):
        adapter = with_context(logging.getLogger("x"), source_url="https://spl.org", stage="extract")
        assert isinstance(adapter, ContextAdapter)
        assert adapter.extra == {"source_url": "https://spl.org", "stage": "extract"}

    def test_empty_values_skipped(self):
        assert with_context(logging.getLogger("x"), source_url="").extra == {}

    def test_call_extra_merged(self):
        adapter = with_context(logging.getLogger("x"), stage="normalize")
        _, kwargs = adapter.process("msg", {"extra": {"block_index": 1}})
        assert kwargs["extra"] == {"stage": "normalize", "block_index": 1}

    def test_records_carry_context(self, caplog):
        adapter = with_context(logging.getLogger("family_activities.test"), schema_type="venues")
        with caplog.at_level(logging.INFO, logger="family_activities"):
            adapter.info("normalized")
        assert caplog.records[-1].schema_type == "venues"
