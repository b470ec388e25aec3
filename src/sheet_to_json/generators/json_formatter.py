"""JSON text rendering for the sheet-to-JSON converter.

Two layouts are produced by a single recursive writer:

- standard: two-space indented JSON, equivalent to
  ``json.dumps(value, indent=2, ensure_ascii=False)``
- single-line-array: every array puts each element on its own line and
  writes the element itself compactly, e.g.::

      [
        {"id":1,"name":"Alice"},
        {"id":2,"name":"Bob"}
      ]

The layout of the enclosing container is passed down on each recursive call,
so both modes share the same code for every node type.
"""

import json
from enum import Enum
from typing import Any, List

from sheet_to_json.models.data_models import DEFAULT_DATE_FORMAT
from sheet_to_json.models.json_tree import (
    JsonArray,
    JsonBool,
    JsonDate,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonString,
    JsonValue,
    to_python,
)
from sheet_to_json.utils.logger import get_processing_logger


FAILURE_MARKER = "// Formatting failed: "


class Layout(Enum):
    """How a container is laid out."""
    BLOCK = "block"
    COMPACT = "compact"


class JsonFormatter:
    """Renders a JSON value tree to text.

    Args:
        date_format: strftime pattern for date leaves
        single_line_array: Use the single-line-array layout
        indent: Spaces per nesting level
    """

    def __init__(
        self,
        date_format: str = DEFAULT_DATE_FORMAT,
        single_line_array: bool = False,
        indent: int = 2,
    ):
        self.date_format = date_format
        self.single_line_array = single_line_array
        self.indent = indent
        self.logger = get_processing_logger(__name__)

    def format(self, tree: JsonValue) -> str:
        """Render the tree. Never raises.

        On failure the text starts with a ``// Formatting failed:`` line
        followed by a raw dump of the tree.
        """
        try:
            parts: List[str] = []
            self._write(tree, 0, Layout.BLOCK, parts)
            return "".join(parts)
        except Exception as e:
            self.logger.warning(
                f"Formatting failed, falling back to raw dump: {e}",
                extra={"structured": {
                    "operation": "format_failed",
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                }},
            )
            return f"{FAILURE_MARKER}{e}\n{raw_dump(tree)}"

    def _write(self, node: JsonValue, depth: int, layout: Layout, out: List[str]) -> None:
        if isinstance(node, JsonObject):
            self._write_object(node, depth, layout, out)
        elif isinstance(node, JsonArray):
            self._write_array(node, depth, layout, out)
        else:
            out.append(self._scalar(node))

    def _write_object(self, node: JsonObject, depth: int, layout: Layout, out: List[str]) -> None:
        if not node.fields:
            out.append("{}")
            return

        if layout is Layout.COMPACT:
            out.append("{")
            for i, (key, child) in enumerate(node.fields.items()):
                if i:
                    out.append(",")
                out.append(_quote(key))
                out.append(":")
                self._write(child, depth + 1, Layout.COMPACT, out)
            out.append("}")
            return

        inner = self._pad(depth + 1)
        out.append("{\n")
        for i, (key, child) in enumerate(node.fields.items()):
            if i:
                out.append(",\n")
            out.append(f"{inner}{_quote(key)}: ")
            self._write(child, depth + 1, Layout.BLOCK, out)
        out.append(f"\n{self._pad(depth)}}}")

    def _write_array(self, node: JsonArray, depth: int, layout: Layout, out: List[str]) -> None:
        if not node.items:
            out.append("[]")
            return

        if layout is Layout.COMPACT:
            out.append("[")
            for i, child in enumerate(node.items):
                if i:
                    out.append(",")
                self._write(child, depth + 1, Layout.COMPACT, out)
            out.append("]")
            return

        element_layout = Layout.COMPACT if self.single_line_array else Layout.BLOCK
        inner = self._pad(depth + 1)
        out.append("[\n")
        for i, child in enumerate(node.items):
            if i:
                out.append(",\n")
            out.append(inner)
            self._write(child, depth + 1, element_layout, out)
        out.append(f"\n{self._pad(depth)}]")

    def _scalar(self, node: JsonValue) -> str:
        if isinstance(node, JsonString):
            return _quote(node.value)
        if isinstance(node, JsonBool):
            return "true" if node.value else "false"
        if isinstance(node, JsonNumber):
            return json.dumps(node.value)
        if isinstance(node, JsonNull):
            return "null"
        if isinstance(node, JsonDate):
            return _quote(node.value.strftime(self.date_format))
        raise TypeError(f"Not a JSON value node: {type(node).__name__}")

    def _pad(self, depth: int) -> str:
        return " " * (depth * self.indent)


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def raw_dump(tree: Any) -> str:
    """Unformatted dump of a tree, used after a formatting failure."""
    try:
        return json.dumps(to_python(tree), default=str, ensure_ascii=False)
    except Exception:
        return repr(tree)
