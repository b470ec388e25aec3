"""Logging setup for the sheet-to-JSON converter.

This module provides:
- Console, rotating file and structured JSON handlers
- Correlation ID injection into every log record
- A processing logger adapter with conversion-specific events
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from sheet_to_json.models.data_models import LoggingConfig
from .correlation import CorrelationContext


class CorrelationFilter(logging.Filter):
    """Adds the current correlation ID to every record passing a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = CorrelationContext.get_correlation_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """Formats records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread_name": record.threadName,
            "correlation_id": getattr(record, "correlation_id", None),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        structured = getattr(record, "structured", None)
        if isinstance(structured, dict):
            log_entry.update(structured)

        for name in ("source_path", "sheet_name", "event_type", "error_type"):
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ProcessingLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter with conversion-specific logging events."""

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs.setdefault("extra", {})
        kwargs["extra"].update(self.extra)
        return msg, kwargs

    def log_conversion_start(
        self,
        source_path: Union[str, Path],
        mode: str,
        sheet_name: Optional[str] = None,
    ) -> None:
        """Log the start of a preview or conversion.

        Args:
            source_path: Spreadsheet or CSV being read
            mode: "preview" or "convert"
            sheet_name: Explicitly requested sheet, if any
        """
        extra = {
            "event_type": "conversion_start",
            "source_path": str(source_path),
            "structured": {"mode": mode, "requested_sheet": sheet_name},
        }
        target = f" (sheet '{sheet_name}')" if sheet_name else ""
        self.info(f"Started {mode} of {source_path}{target}", extra=extra)

    def log_conversion_complete(
        self,
        source_path: Union[str, Path],
        mode: str,
        sheet_count: int,
        row_count: int,
        max_depth: int,
        output_path: Optional[Union[str, Path]] = None,
    ) -> None:
        """Log the successful end of a preview or conversion."""
        extra = {
            "event_type": "conversion_complete",
            "source_path": str(source_path),
            "structured": {
                "mode": mode,
                "sheet_count": sheet_count,
                "row_count": row_count,
                "max_depth": max_depth,
                "output_path": str(output_path) if output_path else None,
            },
        }
        destination = f" -> {output_path}" if output_path else ""
        self.info(
            f"Completed {mode} of {source_path}{destination}: "
            f"{sheet_count} sheets, {row_count} rows, depth {max_depth}",
            extra=extra,
        )

    def log_sheet_skipped(self, sheet_name: str, reason: str) -> None:
        """Log a sheet dropped by the selector."""
        extra = {
            "event_type": "sheet_skipped",
            "sheet_name": sheet_name,
            "structured": {"reason": reason},
        }
        self.info(f"Skipping sheet '{sheet_name}': {reason}", extra=extra)

    def log_error(
        self,
        error_type: str,
        message: str,
        source_path: Optional[Union[str, Path]] = None,
        sheet_name: Optional[str] = None,
        exc_info: bool = False,
    ) -> None:
        """Log a processing error with context."""
        extra: Dict[str, Any] = {
            "event_type": "processing_error",
            "error_type": error_type,
        }
        if source_path:
            extra["source_path"] = str(source_path)
        if sheet_name:
            extra["sheet_name"] = sheet_name

        self.error(message, extra=extra, exc_info=exc_info)


class LoggerManager:
    """Configures root handlers and hands out named loggers and adapters."""

    def __init__(self):
        self._configured = False
        self._adapters: Dict[str, ProcessingLoggerAdapter] = {}

    @property
    def is_configured(self) -> bool:
        return self._configured

    def setup_logging(self, config: LoggingConfig) -> None:
        """Replace root handlers according to the logging configuration.

        Args:
            config: Logging configuration
        """
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()

        root_logger.setLevel(config.log_level)

        if config.console_enabled:
            self._add_handler(logging.StreamHandler(sys.stderr), config)

        if config.file_enabled:
            config.file_path.parent.mkdir(parents=True, exist_ok=True)
            self._add_handler(
                logging.handlers.RotatingFileHandler(
                    filename=config.file_path,
                    maxBytes=10 * 1024 * 1024,  # 10MB
                    backupCount=5,
                    encoding="utf-8",
                ),
                config,
            )

        if config.structured_enabled:
            structured_path = config.file_path.with_suffix(".jsonl")
            structured_path.parent.mkdir(parents=True, exist_ok=True)
            self._add_handler(
                logging.handlers.RotatingFileHandler(
                    filename=structured_path,
                    maxBytes=10 * 1024 * 1024,  # 10MB
                    backupCount=5,
                    encoding="utf-8",
                ),
                config,
                formatter=JSONFormatter(),
            )

        # Third-party libraries are chatty at INFO
        for name in ("openpyxl", "pandas", "xlrd"):
            logging.getLogger(name).setLevel(logging.WARNING)

        self._configured = True
        logging.getLogger(__name__).debug(
            "Logging configured",
            extra={"structured": {
                "level": config.level,
                "console": config.console_enabled,
                "file": config.file_enabled,
                "structured_json": config.structured_enabled,
            }},
        )

    def _add_handler(
        self,
        handler: logging.Handler,
        config: LoggingConfig,
        formatter: Optional[logging.Formatter] = None,
    ) -> None:
        handler.setLevel(config.log_level)
        handler.addFilter(CorrelationFilter())
        handler.setFormatter(
            formatter or logging.Formatter(fmt=config.format, datefmt="%Y-%m-%d %H:%M:%S")
        )
        logging.getLogger().addHandler(handler)

    def get_processing_logger(
        self,
        name: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> ProcessingLoggerAdapter:
        """Get a processing logger adapter, cached by name and context."""
        cache_key = f"{name}:{sorted((context or {}).items())}"
        if cache_key not in self._adapters:
            self._adapters[cache_key] = ProcessingLoggerAdapter(logging.getLogger(name), context)
        return self._adapters[cache_key]


logger_manager = LoggerManager()


def setup_logging(config: LoggingConfig) -> None:
    """Set up application logging."""
    logger_manager.setup_logging(config)


def get_processing_logger(
    name: str,
    context: Optional[Dict[str, Any]] = None,
) -> ProcessingLoggerAdapter:
    """Get a processing logger adapter (name is typically __name__)."""
    return logger_manager.get_processing_logger(name, context)
