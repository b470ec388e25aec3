"""Pytest configuration and shared fixtures for sheet-to-JSON converter tests."""

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List

import pytest
import yaml
from openpyxl import Workbook

from sheet_to_json.config.config_manager import config_manager


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Clear cached configuration and handlers installed by CLI runs."""
    root_logger = logging.getLogger()
    original_level = root_logger.level
    config_manager.clear_cache()
    yield
    config_manager.clear_cache()
    root_logger.setLevel(original_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def write_csv(temp_dir: Path) -> Callable[[str, str], Path]:
    """Factory writing CSV text to a file in the temporary directory."""
    def _write(name: str, text: str) -> Path:
        path = temp_dir / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def people_csv(write_csv) -> Path:
    """CSV with a single header row and two people."""
    return write_csv("people.csv", "id,name\n1,Alice\n2,Bob\n")


@pytest.fixture
def make_workbook(temp_dir: Path) -> Callable[..., Path]:
    """Factory building an .xlsx file from {sheet name: rows}."""
    def _make(name: str, sheets: Dict[str, List[List[Any]]]) -> Path:
        workbook = Workbook()
        workbook.remove(workbook.active)
        for sheet_name, rows in sheets.items():
            worksheet = workbook.create_sheet(sheet_name)
            for row in rows:
                worksheet.append(row)
        path = temp_dir / name
        workbook.save(path)
        return path
    return _make


@pytest.fixture
def inventory_workbook(make_workbook) -> Path:
    """Workbook with a data sheet, an excluded sheet and an empty sheet."""
    return make_workbook("inventory.xlsx", {
        "Items": [
            ["id", "_internal", "name", "added"],
            [1, "x", "Widget", datetime(2024, 1, 15, 9, 30)],
            [2, "y", "Gadget", None],
        ],
        "_debug": [
            ["key", "value"],
            ["trace", "on"],
        ],
        "Blank": [],
    })


@pytest.fixture
def invalid_excel_file(temp_dir: Path) -> Path:
    """Create an invalid Excel file for testing."""
    invalid_file = temp_dir / "invalid.xlsx"
    invalid_file.write_text("This is not an Excel file")
    return invalid_file


@pytest.fixture
def sample_config_dict() -> dict:
    """Sample configuration dictionary for testing."""
    return {
        "conversion": {
            "header_rows": 1,
            "lowercase": True,
            "exclude_prefix": "_",
            "encoding": "utf-8-bom",
        },
        "preview": {
            "debounce_seconds": 0.5,
        },
        "logging": {
            "level": "DEBUG",
            "file": {
                "enabled": False,
                "path": "./logs/test.log",
            },
        },
    }


@pytest.fixture
def sample_config_file(temp_dir: Path, sample_config_dict: dict) -> Path:
    """Create a sample configuration file for testing."""
    config_file = temp_dir / "test_config.yaml"
    with open(config_file, 'w') as f:
        yaml.dump(sample_config_dict, f)
    return config_file


@pytest.fixture
def env_override():
    """Set SHEET_TO_JSON_* variables for one test and restore them afterwards."""
    class EnvOverride:
        def __init__(self):
            self.original_env = {}

        def set(self, key: str, value: str):
            if key not in self.original_env:
                self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

        def clear(self):
            for key, value in self.original_env.items():
                if value is None:
                    os.environ.pop(key, None)
                else:
                    os.environ[key] = value

    override = EnvOverride()
    yield override
    override.clear()
