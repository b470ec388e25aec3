"""Core data models for the sheet-to-JSON converter.

This module contains the dataclasses used throughout the application for
conversion options, loaded sheets, conversion results and configuration.
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from sheet_to_json.models.errors import InvalidConfigurationError


DEFAULT_HEADER_ROWS = 3
DEFAULT_ENCODING = "utf-8"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class ConversionOptions:
    """Caller-supplied options for one preview or conversion request.

    Attributes:
        source_path: Spreadsheet or CSV file to read
        output_path: JSON file to write (None for preview-only requests)
        header_rows: Number of header rows; clamped to at least 1
        lowercase: Fold field names to lowercase
        export_array: Build each sheet as an array instead of a dictionary
        encoding: Text encoding used when writing the output file
        date_format: strftime pattern for date-valued cells
        force_sheet_name: Always wrap sheets in an object keyed by sheet name
        exclude_prefix: Sheets and columns starting with this are skipped
        cell_json: Parse cells that look like JSON into nested structures
        all_string: Coerce every value to text
        single_line_array: Render array elements one per line, compactly
        sheet_name: Explicit sheet to convert (None for all sheets)
    """
    source_path: Path
    output_path: Optional[Path] = None
    header_rows: int = DEFAULT_HEADER_ROWS
    lowercase: bool = False
    export_array: bool = False
    encoding: str = DEFAULT_ENCODING
    date_format: str = DEFAULT_DATE_FORMAT
    force_sheet_name: bool = False
    exclude_prefix: str = ""
    cell_json: bool = False
    all_string: bool = False
    single_line_array: bool = False
    sheet_name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate and normalize options after initialization."""
        if self.source_path is None or not str(self.source_path).strip():
            raise InvalidConfigurationError("source_path is required")

        # Frozen dataclass: normalize through object.__setattr__
        if not isinstance(self.source_path, Path):
            object.__setattr__(self, "source_path", Path(str(self.source_path).strip()))

        if self.output_path is not None:
            if not str(self.output_path).strip():
                object.__setattr__(self, "output_path", None)
            elif not isinstance(self.output_path, Path):
                object.__setattr__(self, "output_path", Path(str(self.output_path).strip()))

        try:
            header_rows = int(self.header_rows)
        except (TypeError, ValueError):
            raise InvalidConfigurationError(
                f"header_rows must be an integer, got {self.header_rows!r}"
            )
        object.__setattr__(self, "header_rows", max(header_rows, 1))

        if not self.encoding or not self.encoding.strip():
            raise InvalidConfigurationError("encoding cannot be empty")

        if not self.date_format:
            raise InvalidConfigurationError("date_format cannot be empty")

        object.__setattr__(self, "exclude_prefix", (self.exclude_prefix or "").strip())

        if self.sheet_name is not None and not self.sheet_name.strip():
            object.__setattr__(self, "sheet_name", None)

    @property
    def first_data_row(self) -> int:
        """Index of the first data row within a loaded sheet."""
        return max(self.header_rows - 1, 0)

    @property
    def resolved_output_path(self) -> Path:
        """Output path, defaulting to the source path with a .json suffix."""
        if self.output_path is not None:
            return self.output_path
        return self.source_path.with_suffix(".json")

    def with_overrides(self, **changes: Any) -> "ConversionOptions":
        """Return a copy of these options with the given fields replaced."""
        return replace(self, **changes)


@dataclass
class Sheet:
    """One named table loaded from a tabular source.

    Attributes:
        name: Sheet name, unique within its source
        columns: Ordered column names
        rows: Ordered rows, each a list of cell values aligned to columns
    """
    name: str
    columns: List[str] = field(default_factory=list)
    rows: List[List[Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Pad or trim rows so every row is aligned to the columns."""
        width = len(self.columns)
        aligned = []
        for row in self.rows:
            row = list(row)
            if len(row) < width:
                row.extend([None] * (width - len(row)))
            aligned.append(row[:width])
        self.rows = aligned

    @property
    def row_count(self) -> int:
        """Number of rows below the column header."""
        return len(self.rows)

    @property
    def column_count(self) -> int:
        """Number of columns."""
        return len(self.columns)

    @property
    def is_empty(self) -> bool:
        """A sheet without columns or without rows is empty."""
        return not self.columns or not self.rows

    def copy(self) -> "Sheet":
        """Return an independent copy of the sheet."""
        return Sheet(
            name=self.name,
            columns=list(self.columns),
            rows=[list(row) for row in self.rows],
        )

    def data_row_count(self, first_data_row: int) -> int:
        """Number of data rows at or after first_data_row."""
        return max(0, self.row_count - first_data_row)


@dataclass(frozen=True)
class ConversionPreview:
    """Result of a preview request.

    Attributes:
        text: Rendered JSON text
        sheet_count: Number of sheets loaded for the build
        row_count: Total number of data rows across loaded sheets
        max_depth: Maximum nesting depth of the built document
    """
    text: str
    sheet_count: int
    row_count: int
    max_depth: int


@dataclass(frozen=True)
class ConversionResult:
    """Result of a conversion request that wrote an output file."""
    output_path: Path
    sheet_count: int
    row_count: int


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level
        format: Log message format string
        file_enabled: Whether to log to file
        file_path: Path for log file
        console_enabled: Whether to log to console
        structured_enabled: Whether to use structured JSON logging
    """
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - [%(correlation_id)s] - %(levelname)s - %(message)s"
    file_enabled: bool = False
    file_path: Path = Path("./logs/sheet_to_json.log")
    console_enabled: bool = True
    structured_enabled: bool = False

    def __post_init__(self) -> None:
        """Validate logging configuration after initialization."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")

        self.level = self.level.upper()

        if not isinstance(self.file_path, Path):
            self.file_path = Path(self.file_path)

    @property
    def log_level(self) -> int:
        """Get numeric logging level."""
        return getattr(logging, self.level)


@dataclass
class ConversionDefaults:
    """Default values for every conversion option except the paths."""
    header_rows: int = DEFAULT_HEADER_ROWS
    lowercase: bool = False
    export_array: bool = False
    encoding: str = DEFAULT_ENCODING
    date_format: str = DEFAULT_DATE_FORMAT
    force_sheet_name: bool = False
    exclude_prefix: str = ""
    cell_json: bool = False
    all_string: bool = False
    single_line_array: bool = False
    sheet_name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate conversion defaults after initialization."""
        if self.header_rows < 1:
            raise ValueError("header_rows must be at least 1")

        if not self.encoding.strip():
            raise ValueError("encoding cannot be empty")

        if not self.date_format.strip():
            raise ValueError("date_format cannot be empty")

    def to_options(
        self,
        source_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        **overrides: Any,
    ) -> ConversionOptions:
        """Build ConversionOptions from these defaults.

        Overrides whose value is None are ignored so that unset command-line
        flags fall back to the configured defaults.

        Args:
            source_path: Source spreadsheet or CSV file
            output_path: Optional output JSON path
            **overrides: Option values taking precedence over the defaults

        Returns:
            Conversion options
        """
        values: Dict[str, Any] = {
            "header_rows": self.header_rows,
            "lowercase": self.lowercase,
            "export_array": self.export_array,
            "encoding": self.encoding,
            "date_format": self.date_format,
            "force_sheet_name": self.force_sheet_name,
            "exclude_prefix": self.exclude_prefix,
            "cell_json": self.cell_json,
            "all_string": self.all_string,
            "single_line_array": self.single_line_array,
            "sheet_name": self.sheet_name,
        }
        for key, value in overrides.items():
            if key not in values:
                raise InvalidConfigurationError(f"Unknown conversion option: {key}")
            if value is not None:
                values[key] = value

        return ConversionOptions(
            source_path=Path(source_path),
            output_path=Path(output_path) if output_path else None,
            **values,
        )


@dataclass
class PreviewConfig:
    """Configuration for live preview scheduling.

    Attributes:
        debounce_seconds: Delay before a scheduled preview starts
        max_workers: Worker threads used for previews
    """
    debounce_seconds: float = 0.2
    max_workers: int = 2

    def __post_init__(self) -> None:
        """Validate preview configuration after initialization."""
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds cannot be negative")

        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")


@dataclass
class AppConfig:
    """Main configuration for the sheet-to-JSON converter.

    Attributes:
        conversion: Defaults for conversion options
        preview: Live preview scheduling settings
        logging: Logging configuration
    """
    conversion: ConversionDefaults = field(default_factory=ConversionDefaults)
    preview: PreviewConfig = field(default_factory=PreviewConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
