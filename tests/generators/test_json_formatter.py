"""Unit tests for JSON text rendering."""

import json
from datetime import date, datetime
from unittest.mock import patch

from sheet_to_json.generators.json_formatter import JsonFormatter
from sheet_to_json.models.json_tree import (
    JsonArray,
    JsonDate,
    JsonNumber,
    JsonObject,
    from_python,
    parse_json_text,
    to_python,
)


PEOPLE = [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}]


class TestStandardLayout:
    """Test cases for the standard indented layout."""

    def test_matches_json_dumps(self):
        """Standard layout equals two-space indented json.dumps output."""
        value = {"Items": {"1": {"id": 1, "tags": ["a", "b"], "ok": True, "note": None}}, "n": 2.5}
        text = JsonFormatter().format(from_python(value))

        assert text == json.dumps(value, indent=2, ensure_ascii=False)

    def test_empty_containers(self):
        text = JsonFormatter().format(from_python({"a": [], "b": {}}))
        assert text == '{\n  "a": [],\n  "b": {}\n}'

    def test_empty_root(self):
        assert JsonFormatter().format(JsonObject()) == "{}"
        assert JsonFormatter(single_line_array=True).format(JsonArray()) == "[]"

    def test_non_ascii_kept(self):
        """Test non-ASCII text is written as-is."""
        text = JsonFormatter().format(from_python({"name": "Café ☕"}))
        assert '"Café ☕"' in text

    def test_integral_numbers_have_no_decimal_point(self):
        text = JsonFormatter().format(from_python({"int": 3, "float": 1.5}))
        assert '"int": 3,' in text
        assert '"float": 1.5' in text

    def test_dates_use_date_format(self):
        """Test date leaves are rendered with the configured pattern."""
        tree = JsonObject()
        tree.set("at", JsonDate(datetime(2024, 1, 2, 3, 4, 5)))
        tree.set("on", JsonDate(date(2024, 1, 2)))

        assert '"at": "2024-01-02 03:04:05"' in JsonFormatter().format(tree)
        assert '"on": "02/01/2024"' in JsonFormatter(date_format="%d/%m/%Y").format(tree)

    def test_root_array_indented(self):
        text = JsonFormatter().format(from_python(PEOPLE))
        assert text == json.dumps(PEOPLE, indent=2)


class TestSingleLineArrayLayout:
    """Test cases for the single-line-array layout."""

    def test_root_array_of_objects(self):
        """Each root element is one compact line."""
        text = JsonFormatter(single_line_array=True).format(from_python(PEOPLE))
        assert text == '[\n  {"id":1,"name":"Alice"},\n  {"id":2,"name":"Bob"}\n]'

    def test_nested_arrays_inside_objects(self):
        """Objects stay multi-line; arrays break one element per line."""
        tree = from_python({"rows": [[1, 2], {"a": [3]}], "meta": {"n": 1}})
        text = JsonFormatter(single_line_array=True).format(tree)

        assert text == (
            '{\n'
            '  "rows": [\n'
            '    [1,2],\n'
            '    {"a":[3]}\n'
            '  ],\n'
            '  "meta": {\n'
            '    "n": 1\n'
            '  }\n'
            '}'
        )

    def test_one_line_per_element(self):
        """Lines between the brackets equal the element count."""
        elements = [{"id": i, "nested": {"deep": [i, {"x": "a\nb"}]}} for i in range(5)]
        text = JsonFormatter(single_line_array=True).format(from_python({"rows": elements}))

        lines = text.split("\n")
        start = lines.index('  "rows": [')
        end = lines.index("  ]")
        assert end - start - 1 == len(elements)
        for line in lines[start + 1:end]:
            assert line.startswith("    {")
            assert json.loads(line.strip().rstrip(",")) is not None

    def test_empty_array_inside(self):
        text = JsonFormatter(single_line_array=True).format(from_python({"a": []}))
        assert text == '{\n  "a": []\n}'

    def test_parses_back_to_same_value(self):
        value = {"Sheet": PEOPLE, "Other": {"k": [[], {}]}}
        text = JsonFormatter(single_line_array=True).format(from_python(value))
        assert json.loads(text) == value


class TestFormattingProperties:
    """Test cases for cross-layout properties."""

    def test_formatting_is_idempotent(self):
        """Formatting the parse of formatted text gives the same text."""
        tree = from_python({"a": [1, {"b": [True, None, "x"]}], "c": {}})
        for single_line in (False, True):
            formatter = JsonFormatter(single_line_array=single_line)
            text = formatter.format(tree)
            assert formatter.format(parse_json_text(text)) == text

    def test_format_does_not_mutate_tree(self):
        tree = from_python({"a": [1, 2]})
        before = to_python(tree)
        JsonFormatter(single_line_array=True).format(tree)
        assert to_python(tree) == before

    def test_failure_falls_back_to_raw_dump(self):
        """A formatting failure is reported in the text, not raised."""
        tree = JsonObject()
        tree.set("a", JsonNumber(1))
        formatter = JsonFormatter()

        with patch.object(formatter, "_scalar", side_effect=ValueError("boom")):
            text = formatter.format(tree)

        assert text.startswith("// Formatting failed: boom\n")
        assert text.endswith('{"a": 1}')
