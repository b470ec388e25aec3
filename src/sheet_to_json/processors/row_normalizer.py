"""Row and cell normalization.

Turns one sheet row into a JSON object: excluded columns are dropped, field
names are derived from column names and each value goes through the
normalization steps below, always in this order:

1. empty cell -> zero value of the column's type
2. integral float -> int
3. JSON-looking text -> parsed structure (when cell JSON is enabled)
4. non-text value -> text (when all-string is enabled)

Step 4 runs after step 3, so with both options enabled an expanded
structure is turned back into text.
"""

import json
from datetime import date, datetime
from typing import Any, Dict, Optional

from sheet_to_json.models.data_models import ConversionOptions, Sheet
from sheet_to_json.models.json_tree import JsonObject, JsonValue, from_python
from sheet_to_json.processors.sheet_selector import has_excluded_prefix
from sheet_to_json.utils.logger import get_processing_logger


EPOCH = datetime(1970, 1, 1)


def zero_value(sample: Any) -> Any:
    """Zero value of the type of ``sample``. Unknown types give ""."""
    if isinstance(sample, bool):
        return False
    if isinstance(sample, (int, float)):
        return 0
    if isinstance(sample, datetime):
        return EPOCH
    if isinstance(sample, date):
        return EPOCH.date()
    return ""


def narrow_number(value: Any) -> Any:
    """Return an int for floats without a fractional part."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class RowNormalizer:
    """Builds per-row JSON objects for one conversion request.

    Column defaults are computed lazily and cached for the sheet currently
    being normalized.
    """

    def __init__(self, options: ConversionOptions):
        self.options = options
        self.logger = get_processing_logger(__name__)
        self._defaults: Dict[int, Any] = {}
        self._defaults_sheet: Optional[Sheet] = None

    def normalize_row(self, sheet: Sheet, row_index: int) -> JsonObject:
        """Build the JSON object for one data row.

        Args:
            sheet: Sheet containing the row
            row_index: 0-based index of the row within the sheet

        Returns:
            Row object keyed by field name
        """
        row = sheet.rows[row_index]
        row_object = JsonObject()
        emitted = 0

        for column_index, column in enumerate(sheet.columns):
            if has_excluded_prefix(column, self.options.exclude_prefix):
                continue

            field_name = column if column.strip() else f"col_{emitted}"
            if self.options.lowercase:
                field_name = field_name.lower()

            row_object.set(field_name, self.normalize_value(row[column_index], sheet, column_index))
            emitted += 1

        return row_object

    def normalize_value(self, value: Any, sheet: Sheet, column_index: int) -> JsonValue:
        """Apply the normalization steps to a single cell value."""
        if value is None:
            value = self.column_default(sheet, column_index)

        value = narrow_number(value)

        if self.options.cell_json and isinstance(value, str):
            value = self._expand_json(value)

        if self.options.all_string and value is not None and not isinstance(value, str):
            value = self.to_text(value)

        return from_python(value)

    def column_default(self, sheet: Sheet, column_index: int) -> Any:
        """Default for empty cells: zero value of the column's first non-empty cell."""
        if sheet is not self._defaults_sheet:
            self._defaults = {}
            self._defaults_sheet = sheet

        if column_index not in self._defaults:
            default: Any = ""
            for row in sheet.rows[self.options.first_data_row:]:
                if row[column_index] is not None:
                    default = zero_value(row[column_index])
                    break
            self._defaults[column_index] = default

        return self._defaults[column_index]

    def row_identifier(self, sheet: Sheet, row_index: int) -> str:
        """Dictionary key for a row: first column text, or row_<index> when blank."""
        value = sheet.rows[row_index][0] if sheet.columns else None
        text = "" if value is None else self.to_text(narrow_number(value))
        if not text.strip():
            return f"row_{row_index}"
        return text

    def to_text(self, value: Any) -> str:
        """Textual form of a value: structures as compact JSON, dates with the date pattern."""
        if isinstance(value, str):
            return value
        if isinstance(value, (dict, list)):
            return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
        if isinstance(value, (datetime, date)):
            return value.strftime(self.options.date_format)
        return str(value)

    def _expand_json(self, text: str) -> Any:
        candidate = text.strip()
        if not candidate.startswith(("[", "{")):
            return text
        try:
            return json.loads(candidate, parse_constant=_reject_constant)
        except (ValueError, RecursionError):
            self.logger.debug(f"Cell is not valid JSON, keeping text: {candidate[:60]!r}")
            return text


def _reject_constant(name: str) -> Any:
    # NaN and Infinity have no JSON representation
    raise ValueError(f"Non-finite number in cell: {name}")
