"""Cooperative cancellation for conversion requests."""

import threading
from typing import Optional

from sheet_to_json.models.errors import ConversionCancelledError


class CancellationToken:
    """Signal checked by the pipeline at coarse checkpoints.

    Example:
        >>> token = CancellationToken()
        >>> token.cancel()
        >>> token.is_cancelled
        True
    """

    def __init__(self):
        self._event = threading.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    def raise_if_cancelled(self, checkpoint: Optional[str] = None) -> None:
        """Raise ConversionCancelledError if cancellation was requested.

        Args:
            checkpoint: Name of the pipeline stage, used in the message
        """
        if self._event.is_set():
            where = f" before {checkpoint}" if checkpoint else ""
            raise ConversionCancelledError(f"Conversion cancelled{where}")

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds, waking early on cancellation.

        Returns:
            True if cancellation was requested
        """
        return self._event.wait(timeout)


class _NeverCancelled(CancellationToken):
    """Token for callers that do not cancel."""

    def cancel(self) -> None:
        raise RuntimeError("NEVER_CANCELLED cannot be cancelled")


NEVER_CANCELLED = _NeverCancelled()
