"""Tabular source reading for the sheet-to-JSON converter.

This module loads spreadsheet and CSV files into ``Sheet`` objects:
- .xlsx/.xlsm through pandas with the openpyxl engine
- .xls through pandas with the xlrd engine
- .csv through pandas, with per-column type inference over the text cells

Only blank cells are missing values. Text such as ``NA`` or ``None`` is kept
as written.

Both readers apply the same header arithmetic: the row at index
``max(header_rows - 1, 0)`` of the raw table holds the column names, rows
above it are discarded and rows below it become the sheet rows.
"""

import re
import warnings
from pathlib import Path
from typing import Any, List, Union

import numpy as np
import pandas as pd

from sheet_to_json.models.data_models import Sheet
from sheet_to_json.models.errors import UnreadableSourceError
from sheet_to_json.utils.logger import get_processing_logger
from sheet_to_json.utils.logging_decorators import log_operation, operation_context


# Numbers written with leading zeros are identifiers, not quantities
LEADING_ZERO = re.compile(r"^[+-]?0\d")


class SheetReader:
    """Loads named sheets of typed cells from spreadsheet and CSV files.

    Example:
        >>> reader = SheetReader()
        >>> sheets = reader.load_sheets("data.xlsx", header_rows=1)
        >>> [sheet.name for sheet in sheets]
        ['Items', 'Prices']
    """

    # Extension -> pandas Excel engine
    EXCEL_ENGINES = {
        ".xlsx": "openpyxl",
        ".xlsm": "openpyxl",
        ".xls": "xlrd",
    }
    CSV_EXTENSIONS = {".csv"}

    def __init__(self, csv_encoding: str = "utf-8-sig"):
        """Initialize sheet reader.

        Args:
            csv_encoding: Text encoding used to decode CSV sources
        """
        self.csv_encoding = csv_encoding
        self.logger = get_processing_logger(__name__)

    @property
    def supported_extensions(self) -> List[str]:
        return sorted(set(self.EXCEL_ENGINES) | self.CSV_EXTENSIONS)

    @log_operation("load_sheets", log_args=False)
    def load_sheets(self, file_path: Union[str, Path], header_rows: int = 1) -> List[Sheet]:
        """Load every sheet of a source file, in source order.

        Args:
            file_path: Spreadsheet or CSV file
            header_rows: Configured header-row count (clamped to >= 1)

        Returns:
            List of sheets

        Raises:
            UnreadableSourceError: If the file is missing, unsupported or corrupt
        """
        file_path = Path(file_path)
        header_index = max(int(header_rows) - 1, 0)
        self._validate_file(file_path)

        with operation_context(
            "tabular_source_read",
            self.logger,
            file_path=str(file_path),
            header_index=header_index,
        ) as metrics:
            try:
                if file_path.suffix.lower() in self.CSV_EXTENSIONS:
                    sheets = [self._read_csv(file_path, header_index)]
                else:
                    sheets = self._read_workbook(file_path, header_index)
            except UnreadableSourceError:
                raise
            except UnicodeDecodeError as e:
                raise UnreadableSourceError(
                    f"Cannot decode source with {self.csv_encoding}: {e}", file_path
                ) from e
            except Exception as e:
                raise UnreadableSourceError(f"Cannot read source: {e}", file_path) from e

            if metrics is not None:
                metrics.add_metadata("sheet_count", len(sheets))
                metrics.add_metadata("total_rows", sum(sheet.row_count for sheet in sheets))

            self.logger.debug(
                f"Loaded {len(sheets)} sheets from {file_path}",
                extra={"structured": {
                    "operation": "tabular_source_loaded",
                    "sheets": [
                        {"name": s.name, "rows": s.row_count, "columns": s.column_count}
                        for s in sheets
                    ],
                }},
            )
            return sheets

    def list_sheet_names(self, file_path: Union[str, Path], header_rows: int = 1) -> List[str]:
        """Return sheet names in source order without building any JSON."""
        return [sheet.name for sheet in self.load_sheets(file_path, header_rows)]

    def _validate_file(self, file_path: Path) -> None:
        """Check the source exists, is a file and has a supported extension."""
        if not file_path.exists():
            raise UnreadableSourceError(f"File not found: {file_path}", file_path)

        if not file_path.is_file():
            raise UnreadableSourceError(f"Path is not a file: {file_path}", file_path)

        extension = file_path.suffix.lower()
        if extension not in self.EXCEL_ENGINES and extension not in self.CSV_EXTENSIONS:
            raise UnreadableSourceError(
                f"Unsupported file extension: {file_path.suffix or '(none)'}. "
                f"Supported: {', '.join(self.supported_extensions)}",
                file_path,
            )

    def _read_workbook(self, file_path: Path, header_index: int) -> List[Sheet]:
        engine = self.EXCEL_ENGINES[file_path.suffix.lower()]
        sheets = []
        with pd.ExcelFile(file_path, engine=engine) as workbook:
            for sheet_name in workbook.sheet_names:
                frame = workbook.parse(
                    sheet_name,
                    header=None,
                    dtype=object,
                    keep_default_na=False,
                    na_values=[""],
                )
                raw_rows = frame.to_numpy(dtype=object).tolist()
                sheets.append(self._sheet_from_rows(str(sheet_name), raw_rows, header_index))
        return sheets

    def _sheet_from_rows(self, name: str, raw_rows: List[List[Any]], header_index: int) -> Sheet:
        if header_index >= len(raw_rows):
            return Sheet(name=name)

        columns = [column_name(value) for value in raw_rows[header_index]]
        rows = [
            [to_cell_value(value) for value in raw_row]
            for raw_row in raw_rows[header_index + 1:]
        ]
        return Sheet(name=name, columns=columns, rows=rows)

    def _read_csv(self, file_path: Path, header_index: int) -> Sheet:
        name = file_path.stem or "csv"
        try:
            header = pd.read_csv(
                file_path,
                header=None,
                skiprows=header_index,
                nrows=1,
                dtype=str,
                keep_default_na=False,
                encoding=self.csv_encoding,
            )
        except pd.errors.EmptyDataError:
            return Sheet(name=name)

        if header.empty:
            return Sheet(name=name)

        columns = [column_name(value) for value in header.iloc[0].tolist()]

        try:
            with warnings.catch_warnings():
                # Rows longer than the header are truncated to the header width
                warnings.simplefilter("ignore", pd.errors.ParserWarning)
                data = pd.read_csv(
                    file_path,
                    header=None,
                    skiprows=header_index + 1,
                    names=list(range(len(columns))),
                    index_col=False,
                    dtype=str,
                    keep_default_na=False,
                    na_values=[""],
                    encoding=self.csv_encoding,
                )
        except pd.errors.EmptyDataError:
            return Sheet(name=name, columns=columns)

        data = data.apply(infer_column)
        rows = [
            [to_cell_value(value) for value in raw_row]
            for raw_row in data.to_numpy(dtype=object).tolist()
        ]
        return Sheet(name=name, columns=columns, rows=rows)


def to_cell_value(value: Any) -> Any:
    """Convert a raw pandas cell to a plain Python value.

    Returns None for empty cells, ``datetime`` for timestamps and Python
    scalars for numpy scalars; everything else is returned unchanged.
    """
    if value is None:
        return None
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.datetime64):
        return pd.Timestamp(value).to_pydatetime()
    if isinstance(value, np.generic):
        return value.item()
    return value


def column_name(value: Any) -> str:
    """Render a header cell as a column name. Blank cells give ""."""
    value = to_cell_value(value)
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def infer_column(values: pd.Series) -> pd.Series:
    """Infer the type of a CSV column from its text cells.

    A column whose cells are all numbers becomes numeric and one whose cells
    are all ``true``/``false`` becomes boolean. Any number written with a
    leading zero (``00501``) or a non-finite number keeps the column as text.

    Args:
        values: Column of strings, NaN for blank cells

    Returns:
        The column with converted values
    """
    present = values.dropna().str.strip()
    if present.empty:
        return values
    if present.map(lambda text: bool(LEADING_ZERO.match(text))).any():
        return values

    try:
        numbers = pd.to_numeric(present)
    except (ValueError, TypeError):
        if present.str.lower().isin(["true", "false"]).all():
            return values.map(lambda v: None if pd.isna(v) else v.strip().lower() == "true")
        return values

    if not np.isfinite(numbers.astype(float)).all():
        return values
    return pd.to_numeric(values.str.strip())
