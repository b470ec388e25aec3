"""Operation timing and outcome metrics.

Every logged operation (see ``logging_decorators``) records one
OperationMetrics entry in a bounded, thread-safe collector so that repeated
live previews cannot grow memory without limit.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Deque, Dict, List, Optional


@dataclass
class OperationMetrics:
    """Timing and outcome of a single operation."""

    operation_name: str
    correlation_id: str
    start_time: float = field(default_factory=time.perf_counter)
    duration_ms: Optional[float] = None
    success: Optional[bool] = None
    error_type: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def complete(self, success: bool, error_type: Optional[str] = None) -> None:
        """Mark the operation finished and compute its duration.

        Args:
            success: Whether the operation succeeded
            error_type: Exception class name if it failed
        """
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        self.success = success
        self.error_type = error_type

    def add_metadata(self, key: str, value: Any) -> None:
        """Attach a metadata value to the operation."""
        self.metadata[key] = value

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since start, or the final duration once completed."""
        if self.duration_ms is not None:
            return self.duration_ms
        return (time.perf_counter() - self.start_time) * 1000

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to a dictionary for structured logging."""
        return {
            "operation_name": self.operation_name,
            "correlation_id": self.correlation_id,
            "duration_ms": self.duration_ms,
            "success": self.success,
            "error_type": self.error_type,
            "metadata": dict(self.metadata),
        }


class MetricsCollector:
    """Keeps the most recent operation metrics and summarizes them."""

    def __init__(self, max_entries: int = 1000):
        self._metrics: Deque[OperationMetrics] = deque(maxlen=max_entries)
        self._lock = Lock()

    def record_operation(self, metrics: OperationMetrics) -> None:
        """Record a completed operation."""
        with self._lock:
            self._metrics.append(metrics)

    def get_recent_metrics(self, limit: int = 100) -> List[OperationMetrics]:
        """Return up to ``limit`` most recent entries, oldest first."""
        with self._lock:
            entries = list(self._metrics)
        return entries[-limit:]

    def get_metrics_summary(self, operation_name: Optional[str] = None) -> Dict[str, Any]:
        """Summarize recorded operations, optionally for one operation name.

        Returns:
            Dictionary with operation counts, success rate, duration stats
            and a breakdown of error types
        """
        with self._lock:
            entries = [
                m for m in self._metrics
                if operation_name is None or m.operation_name == operation_name
            ]

        completed = [m for m in entries if m.success is not None]
        if not completed:
            return {"total_operations": len(entries)}

        failed = [m for m in completed if not m.success]
        durations = [m.duration_ms for m in completed if m.duration_ms is not None]

        summary: Dict[str, Any] = {
            "total_operations": len(entries),
            "successful_operations": len(completed) - len(failed),
            "failed_operations": len(failed),
            "success_rate": (len(completed) - len(failed)) / len(completed),
        }
        if durations:
            summary["avg_duration_ms"] = sum(durations) / len(durations)
            summary["max_duration_ms"] = max(durations)

        if failed:
            breakdown: Dict[str, int] = {}
            for metrics in failed:
                key = metrics.error_type or "Unknown"
                breakdown[key] = breakdown.get(key, 0) + 1
            summary["error_breakdown"] = breakdown

        return summary

    def clear_metrics(self) -> None:
        """Drop all recorded metrics."""
        with self._lock:
            self._metrics.clear()


_global_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the process-wide metrics collector."""
    return _global_metrics_collector


def create_operation_metrics(operation_name: str, correlation_id: str) -> OperationMetrics:
    """Start metrics for a new operation."""
    return OperationMetrics(operation_name=operation_name, correlation_id=correlation_id)
