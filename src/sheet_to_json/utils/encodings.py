"""Output text encodings.

Legacy encoding names commonly offered to users (``utf-8-bom``, ``ansi``,
``unicode``) are not known to Python's codec registry. They are registered
by ``register_encoding_aliases``, an explicit one-time initialization the
process performs before any conversion runs.
"""

import codecs
import threading
from typing import Dict, Optional

from sheet_to_json.models.errors import InvalidConfigurationError


# Keys are in the form codecs passes to search functions:
# lower case, hyphens and spaces replaced by underscores.
ENCODING_ALIASES: Dict[str, str] = {
    "utf_8_bom": "utf_8_sig",
    "utf8bom": "utf_8_sig",
    "ansi": "cp1252",
    "unicode": "utf_16",
    "unicode_big_endian": "utf_16_be",
}

_registered = False
_lock = threading.Lock()


def _search_alias(name: str) -> Optional[codecs.CodecInfo]:
    target = ENCODING_ALIASES.get(name.replace("-", "_").replace(" ", "_"))
    if target is None:
        return None
    return codecs.lookup(target)


def register_encoding_aliases() -> None:
    """Register legacy encoding aliases with the codec registry.

    Safe to call more than once; only the first call registers.
    """
    global _registered
    with _lock:
        if _registered:
            return
        codecs.register(_search_alias)
        _registered = True


def resolve_encoding(name: str) -> str:
    """Return the canonical codec name for an encoding name.

    Args:
        name: Encoding name as configured by the user

    Returns:
        Canonical Python codec name

    Raises:
        InvalidConfigurationError: If the encoding is unknown
    """
    register_encoding_aliases()
    if not name or not name.strip():
        raise InvalidConfigurationError("encoding cannot be empty")
    try:
        return codecs.lookup(name.strip()).name
    except LookupError:
        raise InvalidConfigurationError(f"Unknown text encoding: {name}")
