"""Logging decorators and context managers for operation tracking.

``log_operation`` and ``operation_context`` wrap a unit of work with start,
success and failure log records carrying a ``structured`` payload, and record
an OperationMetrics entry for it. Cancellation is logged as an outcome of its
own rather than as a failure.
"""

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, Optional

from sheet_to_json.models.errors import ConversionCancelledError
from .correlation import CorrelationContext
from .metrics import OperationMetrics, create_operation_metrics, get_metrics_collector


MAX_LOGGED_VALUE_LENGTH = 200


def _sanitize_args(args: tuple, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    """Summarize call arguments for logging, truncating long values.

    Args:
        args: Positional arguments
        kwargs: Keyword arguments

    Returns:
        Dictionary safe to attach to a log record
    """
    sanitized: Dict[str, Any] = {}

    for i, arg in enumerate(args[:3]):
        sanitized[f"arg_{i}"] = _shorten(arg)

    for key, value in list(kwargs.items())[:5]:
        sanitized[key] = _shorten(value)

    return sanitized


def _shorten(value: Any) -> str:
    text = str(value)
    if len(text) > MAX_LOGGED_VALUE_LENGTH:
        text = text[:MAX_LOGGED_VALUE_LENGTH] + "..."
    return text


def _finish(
    logger: logging.Logger,
    operation_name: str,
    metrics: Optional[OperationMetrics],
    error: Optional[BaseException] = None,
) -> None:
    """Complete metrics and emit the closing log record of an operation."""
    if metrics is not None:
        metrics.complete(
            success=error is None,
            error_type=type(error).__name__ if error is not None else None,
        )
        get_metrics_collector().record_operation(metrics)

    data: Dict[str, Any] = {"operation": operation_name}
    if metrics is not None:
        data["duration_ms"] = metrics.duration_ms

    if error is None:
        data["status"] = "SUCCESS"
        logger.debug("Operation completed", extra={"structured": data})
    elif isinstance(error, ConversionCancelledError):
        data["status"] = "CANCELLED"
        logger.info("Operation cancelled", extra={"structured": data})
    else:
        data.update({
            "status": "ERROR",
            "error_type": type(error).__name__,
            "error_message": str(error),
        })
        logger.error("Operation failed", extra={"structured": data})


def log_operation(
    operation_name: str,
    log_args: bool = True,
    collect_metrics: bool = True,
) -> Callable:
    """Decorator for automatic operation logging with metrics collection.

    Args:
        operation_name: Name of the operation being logged
        log_args: Whether to log function arguments
        collect_metrics: Whether to record OperationMetrics

    Returns:
        Decorated function with logging
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = logging.getLogger(func.__module__)
            correlation_id = CorrelationContext.ensure_correlation_id()

            metrics = None
            if collect_metrics:
                metrics = create_operation_metrics(operation_name, correlation_id)

            start_data: Dict[str, Any] = {"operation": operation_name, "status": "START"}
            if log_args:
                start_data["args"] = _sanitize_args(args, kwargs)
            logger.debug("Operation started", extra={"structured": start_data})

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _finish(logger, operation_name, metrics, e)
                raise

            _finish(logger, operation_name, metrics)
            return result

        return wrapper
    return decorator


@contextmanager
def operation_context(
    operation_name: str,
    logger: Optional[logging.Logger] = None,
    collect_metrics: bool = True,
    **metadata: Any,
) -> Generator[Optional[OperationMetrics], None, None]:
    """Context manager for operation tracking with logging and metrics.

    Args:
        operation_name: Name of the operation
        logger: Logger to use (defaults to this module's logger)
        collect_metrics: Whether to record OperationMetrics
        **metadata: Additional metadata attached to the start record

    Yields:
        OperationMetrics for the operation, or None if metrics are disabled
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    correlation_id = CorrelationContext.ensure_correlation_id()

    metrics = None
    if collect_metrics:
        metrics = create_operation_metrics(operation_name, correlation_id)
        for key, value in metadata.items():
            metrics.add_metadata(key, value)

    logger.debug(
        "Operation context started",
        extra={"structured": {"operation": operation_name, "status": "START", **metadata}},
    )

    try:
        yield metrics
    except Exception as e:
        _finish(logger, operation_name, metrics, e)
        raise

    _finish(logger, operation_name, metrics)
