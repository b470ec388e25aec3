"""Correlation IDs for tying together the log records of one request.

Each preview or conversion runs under its own correlation ID. IDs live in a
context variable, so preview worker threads started with a copied context
keep the ID of the request that scheduled them.
"""

import contextvars
import uuid
from typing import Optional


class CorrelationContext:
    """Context manager and accessors for the current correlation ID."""

    _context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
        "sheet_to_json_correlation_id", default=None
    )

    @classmethod
    def set_correlation_id(cls, correlation_id: str) -> None:
        """Set the correlation ID for the current context."""
        cls._context.set(correlation_id)

    @classmethod
    def get_correlation_id(cls) -> Optional[str]:
        """Return the current correlation ID, or None if none is set."""
        return cls._context.get()

    @classmethod
    def generate_correlation_id(cls) -> str:
        """Generate a short request identifier."""
        return uuid.uuid4().hex[:12]

    @classmethod
    def ensure_correlation_id(cls) -> str:
        """Return the current correlation ID, creating one if needed."""
        correlation_id = cls.get_correlation_id()
        if correlation_id is None:
            correlation_id = cls.generate_correlation_id()
            cls.set_correlation_id(correlation_id)
        return correlation_id

    def __init__(self, correlation_id: Optional[str] = None):
        """Prepare a context with the given or a freshly generated ID."""
        self.correlation_id = correlation_id or self.generate_correlation_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = self._context.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            self._context.reset(self._token)
            self._token = None
