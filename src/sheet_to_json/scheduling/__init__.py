"""Live preview scheduling for the sheet-to-JSON converter.

This package runs previews on worker threads, debouncing bursts of option
changes and discarding the results of superseded requests.
"""

from .preview_scheduler import PreviewScheduler

__all__ = ["PreviewScheduler"]
