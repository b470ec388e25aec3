"""Debounced, cancellable live previews.

Each call to ``schedule`` supersedes the previous request: the previous
request's token is cancelled, so it either stops at its next checkpoint or,
if it already finished, its result is discarded instead of delivered.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from sheet_to_json.converter import SheetToJsonConverter
from sheet_to_json.models.data_models import ConversionOptions, ConversionPreview, PreviewConfig
from sheet_to_json.models.errors import ConversionCancelledError, ConversionError
from sheet_to_json.utils.cancellation import CancellationToken
from sheet_to_json.utils.logger import get_processing_logger


PreviewCallback = Callable[[ConversionPreview], None]
ErrorCallback = Callable[[ConversionError], None]


class PreviewScheduler:
    """Runs previews on worker threads as options change.

    Example:
        >>> scheduler = PreviewScheduler(on_result=lambda p: print(p.text))
        >>> scheduler.schedule(options)
        >>> scheduler.schedule(options.with_overrides(lowercase=True))  # supersedes
        >>> scheduler.shutdown()
    """

    def __init__(
        self,
        on_result: PreviewCallback,
        on_error: Optional[ErrorCallback] = None,
        converter: Optional[SheetToJsonConverter] = None,
        config: Optional[PreviewConfig] = None,
    ):
        self.config = config or PreviewConfig()
        self.converter = converter or SheetToJsonConverter()
        self.on_result = on_result
        self.on_error = on_error
        self.logger = get_processing_logger(__name__)

        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="PreviewWorker",
        )
        self._lock = threading.Lock()
        self._current: Optional[CancellationToken] = None
        self._closed = False

    def schedule(self, options: ConversionOptions) -> "Future[Optional[ConversionPreview]]":
        """Schedule a preview, cancelling the one in flight.

        Args:
            options: Options for the new preview

        Returns:
            Future resolving to the preview, or None if it was superseded,
            cancelled or failed

        Raises:
            RuntimeError: If the scheduler has been shut down
        """
        token = CancellationToken()
        with self._lock:
            if self._closed:
                raise RuntimeError("PreviewScheduler has been shut down")
            if self._current is not None:
                self._current.cancel()
            self._current = token

        return self._executor.submit(self._run, options, token)

    def cancel(self) -> None:
        """Cancel the request in flight, if any."""
        with self._lock:
            if self._current is not None:
                self._current.cancel()

    def shutdown(self, wait: bool = True) -> None:
        """Cancel outstanding work and stop the worker threads."""
        with self._lock:
            self._closed = True
            if self._current is not None:
                self._current.cancel()
        self._executor.shutdown(wait=wait)

    def _run(self, options: ConversionOptions, token: CancellationToken) -> Optional[ConversionPreview]:
        if self.config.debounce_seconds > 0 and token.wait(self.config.debounce_seconds):
            self.logger.debug("Preview superseded during debounce")
            return None

        try:
            preview = self.converter.preview(options, token)
        except ConversionCancelledError:
            self.logger.debug("Preview cancelled")
            return None
        except ConversionError as e:
            if token.is_cancelled:
                return None
            if self.on_error is not None:
                self.on_error(e)
            return None

        with self._lock:
            superseded = token.is_cancelled or token is not self._current
        if superseded:
            self.logger.debug("Discarding result of superseded preview")
            return None

        self.on_result(preview)
        return preview

    def __enter__(self) -> "PreviewScheduler":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
