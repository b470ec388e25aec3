"""Tests for logging setup and the processing logger adapter."""

import json
import logging
from pathlib import Path

from sheet_to_json.models.data_models import LoggingConfig
from sheet_to_json.utils.correlation import CorrelationContext
from sheet_to_json.utils.logger import (
    CorrelationFilter,
    JSONFormatter,
    LoggerManager,
    get_processing_logger,
)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatting:
    """Test cases for filters and formatters."""

    def test_correlation_filter(self):
        record = make_record()
        with CorrelationContext("req-1"):
            assert CorrelationFilter().filter(record)
        assert record.correlation_id == "req-1"

    def test_correlation_filter_without_id(self):
        record = make_record()
        CorrelationFilter().filter(record)
        assert record.correlation_id in ("-", CorrelationContext.get_correlation_id())

    def test_json_formatter(self):
        record = make_record(structured={"operation": "load"}, sheet_name="Items")
        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["operation"] == "load"
        assert data["sheet_name"] == "Items"


class TestLoggerManager:
    """Test cases for LoggerManager."""

    def test_setup_console_only(self):
        manager = LoggerManager()
        manager.setup_logging(LoggingConfig(level="WARNING"))

        root = logging.getLogger()
        assert manager.is_configured
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert logging.getLogger("openpyxl").level == logging.WARNING

    def test_setup_file_and_structured(self, temp_dir: Path):
        log_file = temp_dir / "logs" / "app.log"
        config = LoggingConfig(
            level="DEBUG",
            file_enabled=True,
            file_path=log_file,
            console_enabled=False,
            structured_enabled=True,
        )
        manager = LoggerManager()
        manager.setup_logging(config)

        logger = manager.get_processing_logger("sheet_to_json.test")
        logger.log_sheet_skipped("_debug", "excluded")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "Skipping sheet '_debug': excluded" in log_file.read_text(encoding="utf-8")
        entry = json.loads(log_file.with_suffix(".jsonl").read_text(encoding="utf-8").splitlines()[-1])
        assert entry["event_type"] == "sheet_skipped"
        assert entry["reason"] == "excluded"

    def test_adapter_cached(self):
        assert get_processing_logger("a.b") is get_processing_logger("a.b")


class TestProcessingLoggerAdapter:
    """Test cases for conversion events."""

    def test_conversion_events(self, caplog):
        logger = get_processing_logger("sheet_to_json.events")

        with caplog.at_level(logging.INFO):
            logger.log_conversion_start("data.xlsx", "preview", "Items")
            logger.log_conversion_complete("data.xlsx", "convert", 2, 10, 3, output_path="out.json")
            logger.log_error("sheet_not_found", "Sheet not found: X", source_path="data.xlsx")

        start, complete, error = caplog.records[-3:]
        assert start.event_type == "conversion_start"
        assert "sheet 'Items'" in start.getMessage()
        assert complete.structured["row_count"] == 10
        assert "-> out.json" in complete.getMessage()
        assert error.levelno == logging.ERROR
        assert error.error_type == "sheet_not_found"
