"""
Default value generation for schema nodes.
Produces schema-conformant placeholders used whenever the owner's value is absent.
"""

import copy
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


def get_required_names(schema: Dict[str, Any]) -> list:
    """Return the list form of a schema's ``required`` keyword."""
    required = schema.get('required') if isinstance(schema, dict) else None
    if isinstance(required, (list, tuple)):
        return [name for name in required if isinstance(name, str)]
    return []


def generate_default_value(schema: Dict[str, Any]) -> Any:
    """
    Generate a placeholder value for a schema node.

    Object schemas only receive their required properties, in declaration
    order. An explicit ``default`` keyword always wins.

    Args:
        schema: Schema node

    Returns:
        JSON value matching the node's declared type
    """
    if not isinstance(schema, dict):
        return None

    if 'default' in schema:
        return copy.deepcopy(schema['default'])

    schema_type = schema.get('type')

    if schema_type == 'string':
        return ""
    elif schema_type in ('number', 'integer'):
        return 0
    elif schema_type == 'boolean':
        return False
    elif schema_type == 'array':
        return []
    elif schema_type == 'object':
        properties = schema.get('properties')
        if not isinstance(properties, dict):
            return {}
        required = get_required_names(schema)
        return {
            name: generate_default_value(prop_schema)
            for name, prop_schema in properties.items()
            if name in required
        }

    logger.debug(f"No default for schema type {schema_type!r}, using null")
    return None
