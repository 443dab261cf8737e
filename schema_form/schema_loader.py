"""
Schema loader for the schema form editor.
Handles loading and validation of YAML/JSON schema documents.
"""

import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Union
import logging

from .exceptions import SchemaLoadError

logger = logging.getLogger(__name__)

SCHEMAS_DIR = Path("schemas")
SCHEMA_SUFFIXES = ('.yaml', '.yml', '.json')

# Types the editor understands; anything else is rejected at load time
SUPPORTED_TYPES = {
    'string', 'number', 'integer', 'boolean', 'null', 'object', 'array'
}


def load_schema(schema_path: Union[str, Path], schemas_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load a schema from a YAML or JSON file.

    Args:
        schema_path: Path to schema file, relative to ``schemas_dir`` unless absolute
        schemas_dir: Directory holding schemas (defaults to ./schemas)

    Returns:
        Schema dictionary

    Raises:
        SchemaLoadError: If the file is missing, unparseable or invalid
    """
    full_path = Path(schema_path)
    if not full_path.is_absolute():
        full_path = (schemas_dir or SCHEMAS_DIR) / full_path

    if not full_path.exists():
        logger.error(f"Schema file not found: {full_path}")
        raise SchemaLoadError(full_path, FileNotFoundError(str(full_path)))

    suffix = full_path.suffix.lower()
    if suffix not in SCHEMA_SUFFIXES:
        logger.error(f"Unsupported schema file format: {suffix}")
        raise SchemaLoadError(full_path, message=f"Unsupported schema file format: {suffix}")

    try:
        with open(full_path, 'r', encoding='utf-8') as f:
            if suffix in ('.yaml', '.yml'):
                schema = yaml.safe_load(f)
            else:
                schema = json.load(f)
    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {full_path}: {e}")
        raise SchemaLoadError(full_path, e)
    except json.JSONDecodeError as e:
        logger.error(f"JSON parsing error in {full_path}: {e}")
        raise SchemaLoadError(full_path, e)
    except (IOError, OSError) as e:
        logger.error(f"Error reading schema {full_path}: {e}")
        raise SchemaLoadError(full_path, e)

    errors = validate_schema(schema)
    if errors:
        for error in errors:
            logger.error(f"Invalid schema {full_path.name}: {error}")
        raise SchemaLoadError(full_path, message=f"Invalid schema {full_path.name}: {errors[0]}")

    logger.info(f"Successfully loaded schema: {full_path.name}")
    return schema


def validate_schema(schema: Any, location: str = "<root>") -> List[str]:
    """
    Validate the keywords the editor interprets.

    Args:
        schema: Schema node to validate
        location: Dotted location used in messages

    Returns:
        List of validation error messages (empty when valid)
    """
    errors: List[str] = []

    if not isinstance(schema, dict):
        return [f"{location}: schema must be a mapping"]

    schema_type = schema.get('type')
    if schema_type not in SUPPORTED_TYPES:
        errors.append(f"{location}: unsupported type {schema_type!r}")

    required = schema.get('required')
    if required is not None and not isinstance(required, (bool, list)):
        errors.append(f"{location}: 'required' must be a boolean or a list of names")

    enum = schema.get('enum')
    if enum is not None:
        if not isinstance(enum, list):
            errors.append(f"{location}: 'enum' must be a list")
        else:
            enum_names = schema.get('enumNames')
            if enum_names is not None and (not isinstance(enum_names, list) or len(enum_names) != len(enum)):
                errors.append(f"{location}: 'enumNames' must parallel 'enum'")

    properties = schema.get('properties')
    if properties is not None:
        if not isinstance(properties, dict):
            errors.append(f"{location}: 'properties' must be a mapping")
        else:
            for prop_name, prop_schema in properties.items():
                child = prop_name if location == "<root>" else f"{location}.{prop_name}"
                errors.extend(validate_schema(prop_schema, child))

    return errors


def list_available_schemas(schemas_dir: Optional[Path] = None) -> List[str]:
    """
    List schema files in the schemas directory.

    Returns:
        Sorted list of schema file names
    """
    directory = schemas_dir or SCHEMAS_DIR
    if not directory.is_dir():
        logger.warning(f"Schemas directory not found: {directory}")
        return []
    return sorted(
        path.name for path in directory.iterdir()
        if path.is_file() and path.suffix.lower() in SCHEMA_SUFFIXES
    )


def create_fallback_schema() -> Dict[str, Any]:
    """
    Create a minimal schema used when no schema file can be loaded.

    An object without properties, so the editor works in raw-text mode.
    """
    return {
        'type': 'object',
        'title': 'Fallback Schema',
        'description': 'No schema could be loaded; edit the value as JSON.'
    }


def load_schema_or_fallback(schema_path: Union[str, Path],
                            schemas_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load a schema, falling back to ``create_fallback_schema()`` on failure."""
    try:
        return load_schema(schema_path, schemas_dir)
    except SchemaLoadError as e:
        logger.warning(f"Using fallback schema: {e}")
        return create_fallback_schema()
