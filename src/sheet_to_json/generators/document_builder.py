"""Assembly of the JSON document from selected sheets."""

from typing import List, Optional

from sheet_to_json.models.data_models import ConversionOptions, Sheet
from sheet_to_json.models.json_tree import JsonArray, JsonObject, JsonValue
from sheet_to_json.processors.row_normalizer import RowNormalizer
from sheet_to_json.utils.logger import get_processing_logger
from sheet_to_json.utils.logging_decorators import log_operation


class DocumentBuilder:
    """Builds the JSON value tree for one conversion request.

    Each sheet becomes either an array of row objects or an object keyed by
    row identifier. Several sheets, or a single sheet when sheet wrapping is
    forced, are wrapped in an object keyed by sheet name.

    Example:
        >>> builder = DocumentBuilder(options)
        >>> tree = builder.build(selector.select(sheets))
    """

    def __init__(self, options: ConversionOptions, normalizer: Optional[RowNormalizer] = None):
        self.options = options
        self.normalizer = normalizer or RowNormalizer(options)
        self.logger = get_processing_logger(__name__)

    @log_operation("build_document", log_args=False)
    def build(self, sheets: List[Sheet]) -> JsonValue:
        """Build the document root from the filtered sheets.

        Args:
            sheets: Sheets to include, in output order

        Returns:
            Root of the value tree. An empty object when there are no sheets.
        """
        if len(sheets) == 1 and not self.options.force_sheet_name:
            return self.build_sheet(sheets[0])

        root = JsonObject()
        for sheet in sheets:
            root.set(sheet.name, self.build_sheet(sheet))
        return root

    def build_sheet(self, sheet: Sheet) -> JsonValue:
        """Build the value of one sheet from its data rows."""
        first_data_row = self.options.first_data_row
        row_indexes = range(first_data_row, sheet.row_count)

        if self.options.export_array:
            array = JsonArray()
            for row_index in row_indexes:
                array.append(self.normalizer.normalize_row(sheet, row_index))
            return array

        rows = JsonObject()
        for row_index in row_indexes:
            identifier = self.normalizer.row_identifier(sheet, row_index)
            # Later rows overwrite earlier ones with the same identifier
            rows.set(identifier, self.normalizer.normalize_row(sheet, row_index))

        self.logger.debug(
            f"Built sheet '{sheet.name}' with {len(rows)} keyed rows",
            extra={"structured": {
                "operation": "sheet_built",
                "sheet_name": sheet.name,
                "data_rows": sheet.data_row_count(first_data_row),
                "distinct_keys": len(rows),
            }},
        )
        return rows
