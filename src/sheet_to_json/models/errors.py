"""Error taxonomy for sheet-to-JSON conversion.

Loading- and configuration-stage failures are raised as one of the
ConversionError subclasses below and surfaced to the caller. Cell-level
JSON parse failures and formatting failures never reach this module; they
are absorbed where they happen.
"""

from pathlib import Path
from typing import Optional, Union


class ConversionError(Exception):
    """Base class for errors raised by the conversion pipeline.

    Attributes:
        message: Error message describing what went wrong
        file_path: Path to the file that caused the error (if applicable)
        error_type: Category of error used in structured logs
    """

    error_type = "conversion"

    def __init__(
        self,
        message: str,
        file_path: Optional[Union[str, Path]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.file_path = Path(file_path) if file_path is not None else None

    def __str__(self) -> str:
        if self.file_path:
            return f"{self.message} (File: {self.file_path})"
        return self.message


class UnreadableSourceError(ConversionError):
    """Source file is missing, unsupported, corrupt or cannot be decoded."""

    error_type = "unreadable_source"


class EmptySourceError(ConversionError):
    """Source was parsed but contains no sheets at all."""

    error_type = "empty_source"


class SheetNotFoundError(ConversionError):
    """An explicitly requested sheet does not exist in the source."""

    error_type = "sheet_not_found"

    def __init__(
        self,
        sheet_name: str,
        file_path: Optional[Union[str, Path]] = None,
    ):
        super().__init__(f"Sheet not found: {sheet_name}", file_path)
        self.sheet_name = sheet_name


class InvalidConfigurationError(ConversionError):
    """A required option is missing or invalid. Raised before any I/O."""

    error_type = "invalid_configuration"


class OutputWriteError(ConversionError):
    """Rendered JSON could not be encoded or written to the output path."""

    error_type = "output_write"


class ConversionCancelledError(ConversionError):
    """The request was cancelled or superseded. Not a failure."""

    error_type = "cancelled"

    def __init__(self, message: str = "Conversion cancelled"):
        super().__init__(message)
