"""Sheet-to-JSON Converter.

Converts spreadsheet (.xlsx, .xlsm, .xls) and CSV tables into JSON documents
with configurable shaping rules, and renders them either as standard indented
JSON or with one compact line per array element.
"""

__version__ = "1.0.0"

from sheet_to_json.models.data_models import (
    ConversionOptions,
    ConversionPreview,
    ConversionResult,
    Sheet,
)
from sheet_to_json.models.errors import (
    ConversionCancelledError,
    ConversionError,
    EmptySourceError,
    InvalidConfigurationError,
    OutputWriteError,
    SheetNotFoundError,
    UnreadableSourceError,
)
from sheet_to_json.converter import SheetToJsonConverter
from sheet_to_json.scheduling.preview_scheduler import PreviewScheduler
from sheet_to_json.utils.cancellation import CancellationToken

__all__ = [
    "ConversionOptions",
    "ConversionPreview",
    "ConversionResult",
    "Sheet",
    "ConversionError",
    "UnreadableSourceError",
    "EmptySourceError",
    "SheetNotFoundError",
    "InvalidConfigurationError",
    "OutputWriteError",
    "ConversionCancelledError",
    "SheetToJsonConverter",
    "PreviewScheduler",
    "CancellationToken",
]
