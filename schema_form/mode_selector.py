"""
Editor mode selection.
Decides from the schema shape whether field-by-field editing is possible and
holds the user's choice between structured and raw-text editing.
"""

import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

SCALAR_TYPES = ('string', 'number', 'integer', 'boolean', 'null')


class EditorMode:
    """Editor mode constants."""
    STRUCTURED = "structured"
    RAW_TEXT = "raw-text"


def is_structured_capable(schema: Dict[str, Any]) -> bool:
    """
    Check whether a schema can be edited field by field.

    True for scalar schemas and for objects whose declared properties are
    all scalars. Nested objects or arrays anywhere in ``properties`` make
    the schema raw-text only.
    """
    if not isinstance(schema, dict):
        return False

    schema_type = schema.get('type')
    if schema_type in SCALAR_TYPES:
        return True
    if schema_type != 'object':
        return False

    properties = schema.get('properties') or {}
    if not isinstance(properties, dict):
        return False
    return all(
        isinstance(prop, dict) and prop.get('type') in SCALAR_TYPES
        for prop in properties.values()
    )


def requires_raw_text(schema: Dict[str, Any]) -> bool:
    """True for object schemas that declare no properties to render."""
    if not isinstance(schema, dict) or schema.get('type') != 'object':
        return False
    properties = schema.get('properties')
    return not isinstance(properties, dict) or len(properties) == 0


class ModeSelector:
    """Holds the current editor mode for one schema."""

    def __init__(self, schema: Dict[str, Any]):
        self.schema = schema
        self.capable = is_structured_capable(schema)
        self.mode = EditorMode.STRUCTURED if self.capable else EditorMode.RAW_TEXT
        self.enforce()

    @property
    def show_toggle(self) -> bool:
        return self.capable

    @property
    def is_raw_text(self) -> bool:
        return self.mode == EditorMode.RAW_TEXT

    def set_schema(self, schema: Dict[str, Any]) -> None:
        """Re-derive capability for a new schema, keeping the user's mode where allowed."""
        self.schema = schema
        self.capable = is_structured_capable(schema)
        if not self.capable:
            self.mode = EditorMode.RAW_TEXT
        self.enforce()

    def switch_to(self, mode: str) -> None:
        if mode not in (EditorMode.STRUCTURED, EditorMode.RAW_TEXT):
            raise ValueError(f"Unknown editor mode: {mode}")
        if mode == EditorMode.STRUCTURED and not self.capable:
            logger.warning("Structured mode is not available for this schema")
            return
        if mode != self.mode:
            logger.debug(f"Mode transition: {self.mode} -> {mode}")
        self.mode = mode
        self.enforce()

    def enforce(self) -> None:
        """Force raw-text mode when the schema has nothing to render as fields."""
        if requires_raw_text(self.schema) and self.mode != EditorMode.RAW_TEXT:
            logger.debug("Object schema without properties, forcing raw-text mode")
            self.mode = EditorMode.RAW_TEXT
