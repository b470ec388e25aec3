"""Integration tests for end-to-end conversion workflows."""

import json
from datetime import datetime
from pathlib import Path

from sheet_to_json import (
    ConversionOptions,
    PreviewScheduler,
    SheetToJsonConverter,
)
from sheet_to_json.config.config_manager import ConfigManager
from sheet_to_json.models.data_models import PreviewConfig


class TestEndToEndWorkflows:
    """Integration tests for complete sheet-to-JSON workflows."""

    def test_workbook_to_json_file(self, make_workbook, temp_dir: Path):
        """A multi-sheet workbook becomes one document keyed by sheet name."""
        source = make_workbook("catalog.xlsx", {
            "Products": [
                ["Catalog export", None, None],
                ["internal", None, None],
                ["SKU", "Name", "Specs"],
                ["A-1", "Lamp", '{"watts": 40}'],
                ["B-2", "Desk", "[1, 2]"],
                ["C-3", "Chair", None],
            ],
            "Suppliers": [
                ["Supplier list", None, None],
                ["confidential", None, None],
                ["Id", "Company", "Since"],
                [10, "Acme", datetime(2019, 6, 1)],
                [11, "Globex", datetime(2021, 2, 3)],
                [12, "Initech", datetime(2023, 9, 30)],
            ],
            "~notes": [["a"], ["b"], ["c"], ["d"]],
        })
        output = temp_dir / "export" / "catalog.json"
        options = ConversionOptions(
            source_path=source,
            output_path=output,
            lowercase=True,
            cell_json=True,
            exclude_prefix="~",
            date_format="%Y-%m-%d",
        )

        result = SheetToJsonConverter().convert(options)
        document = json.loads(output.read_text(encoding="utf-8"))

        # Data rows start header_rows - 1 rows below the column names
        assert result.sheet_count == 3
        assert result.row_count == 2
        assert list(document) == ["Products", "Suppliers"]
        assert document["Products"] == {"C-3": {"sku": "C-3", "name": "Chair", "specs": ""}}
        assert document["Suppliers"] == {"12": {"id": 12, "company": "Initech", "since": "2023-09-30"}}

    def test_header_rows_one_keeps_all_rows(self, make_workbook):
        source = make_workbook("flat.xlsx", {
            "Products": [
                ["SKU", "Specs"],
                ["A-1", '{"watts": 40}'],
                ["B-2", "[1, 2]"],
            ],
        })
        options = ConversionOptions(source_path=source, header_rows=1, cell_json=True)

        preview = SheetToJsonConverter().preview(options)

        assert json.loads(preview.text) == {
            "A-1": {"SKU": "A-1", "Specs": {"watts": 40}},
            "B-2": {"SKU": "B-2", "Specs": [1, 2]},
        }
        assert preview.max_depth == 4

    def test_missing_value_words_are_row_keys(self, write_csv, make_workbook):
        """Text such as NA keys its row; only a blank first cell falls back to row_<i>."""
        csv_source = write_csv("countries.csv", "code,country\nNA,Namibia\n,Nowhere\nnull,Nulland\n")
        xlsx_source = make_workbook("countries.xlsx", {
            "Countries": [["code", "country"], ["NA", "Namibia"], [None, "Nowhere"], ["null", "Nulland"]],
        })
        expected = {
            "NA": {"code": "NA", "country": "Namibia"},
            "row_1": {"code": "", "country": "Nowhere"},
            "null": {"code": "null", "country": "Nulland"},
        }

        for source in (csv_source, xlsx_source):
            preview = SheetToJsonConverter().preview(ConversionOptions(source_path=source, header_rows=1))
            assert json.loads(preview.text) == expected

    def test_configured_defaults_drive_conversion(self, sample_config_file: Path,
                                                 people_csv: Path, temp_dir: Path):
        config = ConfigManager().load_config(sample_config_file, use_env_overrides=False)
        options = config.conversion.to_options(people_csv, temp_dir / "people.json", export_array=True)

        result = SheetToJsonConverter().convert(options)

        text = result.output_path.read_text(encoding="utf-8-sig")
        assert json.loads(text) == [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}]

    def test_live_preview_follows_latest_options(self, people_csv: Path):
        """Rapid option changes deliver only the final preview."""
        delivered = []
        base = ConversionOptions(source_path=people_csv, header_rows=1)

        with PreviewScheduler(delivered.append, config=PreviewConfig(debounce_seconds=0.3)) as scheduler:
            scheduler.schedule(base)
            scheduler.schedule(base.with_overrides(lowercase=True))
            final = scheduler.schedule(base.with_overrides(export_array=True, single_line_array=True))
            final.result(timeout=10)

        assert [p.text for p in delivered] == [
            '[\n  {"id":1,"name":"Alice"},\n  {"id":2,"name":"Bob"}\n]'
        ]
