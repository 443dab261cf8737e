"""
JSON helpers for the schema form editor.
Strict parsing, canonical serialization and copy-on-write path updates.
"""

import copy
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from .exceptions import JsonParseError, PathUpdateError

logger = logging.getLogger(__name__)

JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]
Path = Sequence[str]

DEFAULT_INDENT = 2


class _Missing:
    """Marker for "no value"; removes a key when written at a path."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING = _Missing()


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing raw text as JSON."""
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _reject_constant(name: str) -> Any:
    # json accepts NaN/Infinity by default; JSON text does not
    raise ValueError(f"Unexpected token {name} is not valid JSON")


def loads_strict(text: str) -> Any:
    """
    Parse JSON text, rejecting the NaN/Infinity extensions.

    Raises:
        JsonParseError: If the text is not valid JSON
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except (json.JSONDecodeError, ValueError, TypeError, RecursionError) as e:
        # RecursionError: nesting deeper than the decoder can follow
        raise JsonParseError(text, e)


def parse_json_text(text: str) -> ParseResult:
    """Parse JSON text into a ParseResult instead of raising."""
    try:
        return ParseResult(value=loads_strict(text))
    except JsonParseError as e:
        return ParseResult(error=e.message)


def to_json_text(value: Any, indent: int = DEFAULT_INDENT) -> str:
    """Serialize a value with canonical indentation."""
    if value is MISSING:
        value = None
    return json.dumps(value, indent=indent, ensure_ascii=False)


def _is_index(segment: Any) -> bool:
    if isinstance(segment, bool):
        return False
    if isinstance(segment, int):
        return True
    return isinstance(segment, str) and segment.isdigit()


def update_value_at_path(root: Any, path: Path, new_value: Any) -> Any:
    """
    Return a copy of ``root`` with the location at ``path`` replaced.

    Intermediate containers that are missing or None are created. Writing
    MISSING removes an object key (a list slot becomes None). The input tree
    is never modified.

    Args:
        root: Current JSON value
        path: Sequence of property names or list indexes
        new_value: Value to write

    Returns:
        New JSON value

    Raises:
        PathUpdateError: If the path cannot be applied to ``root``
    """
    path = tuple(path)
    return _update(root, path, 0, new_value)


def _update(node: Any, path: tuple, position: int, new_value: Any) -> Any:
    if position == len(path):
        return None if new_value is MISSING else copy.deepcopy(new_value)

    segment = path[position]

    if node is None or node is MISSING:
        node = [] if _is_index(segment) else {}

    if isinstance(node, dict):
        updated = dict(node)
        key = str(segment)
        if position == len(path) - 1 and new_value is MISSING:
            updated.pop(key, None)
            return updated
        updated[key] = _update(node.get(key), path, position + 1, new_value)
        return updated

    if isinstance(node, list):
        if not _is_index(segment):
            raise PathUpdateError(path[:position + 1], f"invalid array index '{segment}'")
        index = int(segment)
        if index > len(node):
            raise PathUpdateError(
                path[:position + 1],
                f"array index {index} out of range for length {len(node)}"
            )
        updated_list = list(node)
        child = node[index] if index < len(node) else None
        child_value = _update(child, path, position + 1, new_value)
        if index == len(node):
            updated_list.append(child_value)
        else:
            updated_list[index] = child_value
        return updated_list

    raise PathUpdateError(
        path[:position + 1],
        f"cannot descend into {type(node).__name__} value"
    )

