"""JSON value tree.

The value tree is the only representation passed from the document builder
to the formatter. Each node is one variant of the ``JsonValue`` union, so the
formatter and the depth computation can dispatch exhaustively on node type.
"""

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Union


@dataclass(frozen=True)
class JsonString:
    value: str


@dataclass(frozen=True)
class JsonNumber:
    value: Union[int, float]

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise TypeError(f"JsonNumber requires int or float, got {type(self.value).__name__}")


@dataclass(frozen=True)
class JsonBool:
    value: bool


@dataclass(frozen=True)
class JsonNull:
    pass


@dataclass(frozen=True)
class JsonDate:
    """Date or datetime leaf, rendered with the configured date pattern."""
    value: Union[datetime, date]


@dataclass
class JsonArray:
    items: List["JsonValue"] = field(default_factory=list)

    def append(self, value: "JsonValue") -> None:
        self.items.append(value)

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class JsonObject:
    fields: Dict[str, "JsonValue"] = field(default_factory=dict)

    def set(self, key: str, value: "JsonValue") -> None:
        """Insert or overwrite a member; an overwritten key moves to the end."""
        self.fields.pop(key, None)
        self.fields[key] = value

    def get(self, key: str) -> "JsonValue":
        return self.fields[key]

    def keys(self) -> List[str]:
        return list(self.fields.keys())

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, key: object) -> bool:
        return key in self.fields


JsonScalar = Union[JsonString, JsonNumber, JsonBool, JsonNull, JsonDate]
JsonValue = Union[JsonObject, JsonArray, JsonScalar]

JSON_NULL = JsonNull()


def from_python(value: Any) -> JsonValue:
    """Convert a plain Python value (as produced by json.loads) to a tree.

    Args:
        value: dict, list, str, int, float, bool, None, date or datetime

    Returns:
        Equivalent JSON value tree
    """
    if value is None:
        return JSON_NULL
    if isinstance(value, bool):
        return JsonBool(value)
    if isinstance(value, (int, float)):
        return JsonNumber(value)
    if isinstance(value, str):
        return JsonString(value)
    if isinstance(value, (datetime, date)):
        return JsonDate(value)
    if isinstance(value, dict):
        node = JsonObject()
        for key, child in value.items():
            node.set(str(key), from_python(child))
        return node
    if isinstance(value, (list, tuple)):
        return JsonArray([from_python(child) for child in value])
    return JsonString(str(value))


def to_python(value: JsonValue) -> Any:
    """Convert a tree back to plain Python values.

    Date leaves are returned as date/datetime objects.
    """
    if isinstance(value, JsonObject):
        return {key: to_python(child) for key, child in value.fields.items()}
    if isinstance(value, JsonArray):
        return [to_python(child) for child in value.items]
    if isinstance(value, JsonNull):
        return None
    if isinstance(value, (JsonString, JsonNumber, JsonBool, JsonDate)):
        return value.value
    raise TypeError(f"Not a JSON value node: {type(value).__name__}")


def parse_json_text(text: str) -> JsonValue:
    """Parse JSON text into a value tree.

    Raises:
        json.JSONDecodeError: If the text is not valid JSON
    """
    return from_python(json.loads(text))


def max_depth(value: JsonValue) -> int:
    """Maximum nesting depth of a tree.

    A leaf has depth 1; a container has depth 1 + the deepest child, or 1
    when it has no children.
    """
    if isinstance(value, JsonObject):
        children = list(value.fields.values())
    elif isinstance(value, JsonArray):
        children = value.items
    else:
        return 1

    if not children:
        return 1
    return 1 + max(max_depth(child) for child in children)
