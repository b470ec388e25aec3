"""Tests for the command-line interface."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from sheet_to_json.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestCLI:
    """Test cases for CLI commands."""

    def test_version(self, runner: CliRunner):
        result = runner.invoke(main, ['--version'])
        assert result.exit_code == 0
        assert "Sheet-to-JSON Converter v1.0.0" in result.output

    def test_help_without_command(self, runner: CliRunner):
        result = runner.invoke(main, [])
        assert result.exit_code == 0
        assert "convert" in result.output
        assert "preview" in result.output

    def test_convert(self, runner: CliRunner, people_csv: Path, temp_dir: Path):
        output = temp_dir / "people.out.json"
        result = runner.invoke(main, ['convert', str(people_csv), '-H', '1', '--array', '-o', str(output)])

        assert result.exit_code == 0, result.output
        assert "Rows: 2" in result.output
        assert json.loads(output.read_text()) == [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ]

    def test_convert_default_output_path(self, runner: CliRunner, people_csv: Path):
        """Without -o the output is written next to the source."""
        result = runner.invoke(main, ['convert', str(people_csv), '--header-rows', '1'])

        assert result.exit_code == 0, result.output
        output = people_csv.with_suffix(".json")
        assert json.loads(output.read_text())["2"] == {"id": 2, "name": "Bob"}

    def test_convert_flags(self, runner: CliRunner, people_csv: Path, temp_dir: Path):
        output = temp_dir / "flags.json"
        result = runner.invoke(main, [
            'convert', str(people_csv), '-H', '1', '-o', str(output),
            '--all-string', '--force-sheet-name', '--single-line-array', '--array',
        ])

        assert result.exit_code == 0, result.output
        assert output.read_text() == (
            '{\n'
            '  "people": [\n'
            '    {"id":"1","name":"Alice"},\n'
            '    {"id":"2","name":"Bob"}\n'
            '  ]\n'
            '}'
        )

    def test_convert_missing_sheet(self, runner: CliRunner, people_csv: Path, temp_dir: Path):
        result = runner.invoke(main, [
            'convert', str(people_csv), '-H', '1', '-s', 'Prices', '-o', str(temp_dir / "x.json"),
        ])

        assert result.exit_code == 1
        assert "Sheet not found: Prices" in result.output

    def test_convert_uses_config_defaults(self, runner: CliRunner, people_csv: Path,
                                          sample_config_file: Path, temp_dir: Path):
        """Unset flags fall back to the configuration file."""
        output = temp_dir / "configured.json"
        result = runner.invoke(main, [
            '--config', str(sample_config_file), 'convert', str(people_csv), '-o', str(output),
        ])

        assert result.exit_code == 0, result.output
        # sample config: header_rows 1, utf-8-bom encoding
        assert output.read_bytes().startswith(b"\xef\xbb\xbf")
        assert json.loads(output.read_text(encoding="utf-8-sig"))["1"]["name"] == "Alice"

    def test_convert_env_override(self, runner: CliRunner, people_csv: Path, temp_dir: Path):
        output = temp_dir / "env.json"
        result = runner.invoke(
            main,
            ['convert', str(people_csv), '-o', str(output)],
            env={"SHEET_TO_JSON_HEADER_ROWS": "1", "SHEET_TO_JSON_EXPORT_ARRAY": "true"},
        )

        assert result.exit_code == 0, result.output
        assert len(json.loads(output.read_text())) == 2

    def test_preview(self, runner: CliRunner, people_csv: Path):
        result = runner.invoke(main, ['preview', str(people_csv), '-H', '1', '--lowercase'])

        assert result.exit_code == 0, result.output
        assert '"name": "Alice"' in result.output
        assert "Sheets: 1, Rows: 2, Depth: 3" in result.output

    def test_preview_missing_file(self, runner: CliRunner, temp_dir: Path):
        result = runner.invoke(main, ['preview', str(temp_dir / "missing.csv")])
        assert result.exit_code != 0

    def test_preview_corrupt_file(self, runner: CliRunner, invalid_excel_file: Path):
        result = runner.invoke(main, ['preview', str(invalid_excel_file)])

        assert result.exit_code == 1
        assert "Preview error" in result.output

    def test_sheets(self, runner: CliRunner, inventory_workbook: Path):
        result = runner.invoke(main, ['sheets', str(inventory_workbook)])

        assert result.exit_code == 0, result.output
        assert "Found 3 sheets:" in result.output
        assert "1. Items" in result.output
        assert "2. _debug" in result.output

    def test_config_check(self, runner: CliRunner, sample_config_file: Path):
        result = runner.invoke(main, ['--config', str(sample_config_file), 'config-check'])

        assert result.exit_code == 0, result.output
        assert "Configuration loaded successfully" in result.output
        assert "header_rows: 1" in result.output
        assert "Preview debounce: 0.5s" in result.output

    def test_config_check_invalid(self, runner: CliRunner, temp_dir: Path):
        bad = temp_dir / "bad.yaml"
        bad.write_text("logging:\n  level: LOUD\n")

        result = runner.invoke(main, ['--config', str(bad), 'config-check'])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
