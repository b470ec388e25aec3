"""Sheet selection and filtering.

Picks the working set of sheets for one request: either the single
explicitly named sheet, or every sheet that is non-empty and not excluded
by the exclusion prefix.
"""

from pathlib import Path
from typing import List, Optional, Union

from sheet_to_json.models.data_models import Sheet
from sheet_to_json.models.errors import EmptySourceError, SheetNotFoundError
from sheet_to_json.utils.logger import get_processing_logger


def has_excluded_prefix(name: str, prefix: str) -> bool:
    """Case-insensitive prefix test. An empty prefix excludes nothing."""
    if not prefix:
        return False
    return name.casefold().startswith(prefix.casefold())


class SheetSelector:
    """Selects and filters sheets loaded from a tabular source.

    Example:
        >>> selector = SheetSelector(exclude_prefix="_")
        >>> [s.name for s in selector.select(sheets)]
        ['Items']
    """

    def __init__(self, exclude_prefix: str = ""):
        self.exclude_prefix = exclude_prefix or ""
        self.logger = get_processing_logger(__name__)

    def select(
        self,
        sheets: List[Sheet],
        sheet_name: Optional[str] = None,
        source_path: Optional[Union[str, Path]] = None,
    ) -> List[Sheet]:
        """Return the sheets to convert, in source order.

        Args:
            sheets: All sheets loaded from the source
            sheet_name: Explicit sheet to select (case-insensitive), or None
            source_path: Source file, used in error messages

        Returns:
            Working set of sheets

        Raises:
            SheetNotFoundError: If sheet_name is given and absent
            EmptySourceError: If no sheet_name is given and the source has no sheets
        """
        if sheet_name:
            return [self.find(sheets, sheet_name, source_path).copy()]

        if not sheets:
            raise EmptySourceError("Source contains no sheets", source_path)

        selected = []
        for sheet in sheets:
            if has_excluded_prefix(sheet.name, self.exclude_prefix):
                self.logger.log_sheet_skipped(
                    sheet.name, f"name starts with excluded prefix '{self.exclude_prefix}'"
                )
                continue
            if sheet.is_empty:
                self.logger.log_sheet_skipped(sheet.name, "sheet has no columns or no rows")
                continue
            selected.append(sheet)

        return selected

    @staticmethod
    def find(
        sheets: List[Sheet],
        sheet_name: str,
        source_path: Optional[Union[str, Path]] = None,
    ) -> Sheet:
        """Find a sheet by case-insensitive name.

        Raises:
            SheetNotFoundError: If no sheet matches
        """
        wanted = sheet_name.casefold()
        for sheet in sheets:
            if sheet.name.casefold() == wanted:
                return sheet
        raise SheetNotFoundError(sheet_name, source_path)
