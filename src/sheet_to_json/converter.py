"""Conversion entry points for the sheet-to-JSON converter.

This module ties the pipeline together:
- loading sheets from the tabular source
- selecting and filtering the working set of sheets
- building the JSON value tree
- rendering it to text and computing its depth
- writing the text atomically for full conversions
"""

import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from sheet_to_json.generators.document_builder import DocumentBuilder
from sheet_to_json.generators.json_formatter import JsonFormatter
from sheet_to_json.generators.json_writer import JsonFileWriter
from sheet_to_json.models.data_models import (
    DEFAULT_HEADER_ROWS,
    ConversionOptions,
    ConversionPreview,
    ConversionResult,
    Sheet,
)
from sheet_to_json.models.errors import (
    ConversionCancelledError,
    ConversionError,
    InvalidConfigurationError,
)
from sheet_to_json.models.json_tree import max_depth
from sheet_to_json.processors.sheet_reader import SheetReader
from sheet_to_json.processors.sheet_selector import SheetSelector
from sheet_to_json.utils.cancellation import NEVER_CANCELLED, CancellationToken
from sheet_to_json.utils.encodings import resolve_encoding
from sheet_to_json.utils.logger import get_processing_logger
from sheet_to_json.utils.logging_decorators import log_operation, operation_context


@dataclass
class ProcessingStats:
    """Statistics for conversion requests."""
    previews_completed: int = 0
    conversions_completed: int = 0
    requests_failed: int = 0
    requests_cancelled: int = 0
    rows_converted: int = 0


class SheetToJsonConverter:
    """Converts spreadsheet and CSV files to JSON documents.

    Example:
        >>> converter = SheetToJsonConverter()
        >>> options = ConversionOptions(source_path="data.csv", header_rows=1)
        >>> preview = converter.preview(options)
        >>> print(preview.text)

        >>> result = converter.convert(options.with_overrides(output_path="data.json"))
        >>> result.row_count
        2
    """

    def __init__(
        self,
        reader: Optional[SheetReader] = None,
        writer: Optional[JsonFileWriter] = None,
    ):
        """Initialize converter.

        Args:
            reader: Tabular source reader (a default SheetReader if None)
            writer: Output writer (a default JsonFileWriter if None)
        """
        self.reader = reader or SheetReader()
        self.writer = writer or JsonFileWriter()
        self.logger = get_processing_logger(__name__)
        self.stats = ProcessingStats()
        self._stats_lock = threading.Lock()

    @log_operation("preview_conversion", log_args=False)
    def preview(
        self,
        options: ConversionOptions,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ConversionPreview:
        """Build and render the JSON document without writing anything.

        Args:
            options: Conversion options
            cancel_token: Token checked before and after loading

        Returns:
            Rendered text with sheet count, row count and depth

        Raises:
            ConversionError: If loading or selection fails
            ConversionCancelledError: If the token is cancelled
        """
        self.logger.log_conversion_start(options.source_path, "preview", options.sheet_name)
        try:
            preview = self._render(options, cancel_token or NEVER_CANCELLED)
        except ConversionError as e:
            self._record_failure(e, options)
            raise

        with self._stats_lock:
            self.stats.previews_completed += 1

        self.logger.log_conversion_complete(
            options.source_path,
            "preview",
            preview.sheet_count,
            preview.row_count,
            preview.max_depth,
        )
        return preview

    @log_operation("convert_to_file", log_args=False)
    def convert(
        self,
        options: ConversionOptions,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ConversionResult:
        """Build, render and atomically write the JSON document.

        The written text is byte-for-byte the text ``preview`` returns for
        the same options, encoded with ``options.encoding``.

        Raises:
            InvalidConfigurationError: If no output path is set or the
                encoding is unknown; raised before any I/O
            OutputWriteError: If the output cannot be encoded or written
        """
        token = cancel_token or NEVER_CANCELLED
        self.logger.log_conversion_start(options.source_path, "convert", options.sheet_name)

        try:
            if options.output_path is None:
                raise InvalidConfigurationError("output_path is required for conversion")
            resolve_encoding(options.encoding)

            preview = self._render(options, token)
            token.raise_if_cancelled("write")
            output_path = self.writer.write(preview.text, options.output_path, options.encoding)
        except ConversionError as e:
            self._record_failure(e, options)
            raise

        with self._stats_lock:
            self.stats.conversions_completed += 1
            self.stats.rows_converted += preview.row_count

        self.logger.log_conversion_complete(
            options.source_path,
            "convert",
            preview.sheet_count,
            preview.row_count,
            preview.max_depth,
            output_path=output_path,
        )
        return ConversionResult(
            output_path=output_path,
            sheet_count=preview.sheet_count,
            row_count=preview.row_count,
        )

    def list_sheet_names(
        self,
        source_path: Union[str, Path],
        header_rows: int = DEFAULT_HEADER_ROWS,
    ) -> List[str]:
        """Return the sheet names of a source. Only the load step runs."""
        return self.reader.list_sheet_names(source_path, header_rows)

    def get_statistics(self) -> Dict[str, Any]:
        """Get conversion statistics.

        Returns:
            Dictionary with request counters
        """
        with self._stats_lock:
            stats = asdict(self.stats)

        finished = stats["previews_completed"] + stats["conversions_completed"]
        attempted = finished + stats["requests_failed"]
        if attempted > 0:
            stats["success_rate"] = (finished / attempted) * 100
        return stats

    def _render(self, options: ConversionOptions, token: CancellationToken) -> ConversionPreview:
        with operation_context(
            "conversion_pipeline",
            self.logger,
            source_path=str(options.source_path),
            header_rows=options.header_rows,
            sheet_name=options.sheet_name,
        ) as metrics:
            token.raise_if_cancelled("load")
            sheets = self.reader.load_sheets(options.source_path, options.header_rows)
            token.raise_if_cancelled("build")

            selector = SheetSelector(options.exclude_prefix)
            working = selector.select(sheets, options.sheet_name, options.source_path)
            loaded = working if options.sheet_name else sheets
            sheet_count, row_count = self._count(loaded, options)

            tree = DocumentBuilder(options).build(working)
            formatter = JsonFormatter(options.date_format, options.single_line_array)
            text = formatter.format(tree)
            depth = max_depth(tree)

            if metrics is not None:
                metrics.add_metadata("sheets_loaded", sheet_count)
                metrics.add_metadata("sheets_built", len(working))
                metrics.add_metadata("data_rows", row_count)
                metrics.add_metadata("max_depth", depth)

            return ConversionPreview(
                text=text,
                sheet_count=sheet_count,
                row_count=row_count,
                max_depth=depth,
            )

    @staticmethod
    def _count(sheets: List[Sheet], options: ConversionOptions) -> Tuple[int, int]:
        rows = sum(sheet.data_row_count(options.first_data_row) for sheet in sheets)
        return len(sheets), rows

    def _record_failure(self, error: ConversionError, options: ConversionOptions) -> None:
        with self._stats_lock:
            if isinstance(error, ConversionCancelledError):
                self.stats.requests_cancelled += 1
                return
            self.stats.requests_failed += 1

        self.logger.log_error(
            error.error_type,
            error.message,
            source_path=options.source_path,
            sheet_name=getattr(error, "sheet_name", None),
        )
