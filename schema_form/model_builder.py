"""
Dynamic Pydantic model builder for the schema form editor.
Creates Pydantic models from JSON-Schema-like nodes so the host can report
constraint violations (length, pattern, bounds) next to a control.
"""

import json
import re
import logging
from typing import Dict, Any, Type, Optional, List, Tuple

from pydantic import (
    BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr,
    ValidationError, create_model, field_validator,
)

logger = logging.getLogger(__name__)

# Models are rebuilt on every rerun otherwise
_model_cache: Dict[str, Type[BaseModel]] = {}


def get_field_type(field_schema: Dict[str, Any]) -> Any:
    """
    Map a schema node type to a Python/Pydantic type.

    Args:
        field_schema: Schema node

    Returns:
        Python type for the field
    """
    field_type = field_schema.get('type')

    if field_type == 'string':
        return StrictStr
    elif field_type == 'integer':
        return StrictInt
    elif field_type == 'number':
        # Strict floats still accept ints
        return StrictFloat
    elif field_type == 'boolean':
        return StrictBool
    elif field_type == 'null':
        return type(None)
    elif field_type == 'array':
        return List[Any]
    elif field_type == 'object':
        properties = field_schema.get('properties')
        if isinstance(properties, dict) and properties:
            return create_nested_model(field_schema, f"NestedModel_{abs(hash(_cache_key(field_schema)))}")
        return Dict[str, Any]

    logger.warning(f"Unknown field type '{field_type}', accepting any value")
    return Any


def create_field_from_config(field_name: str, field_schema: Dict[str, Any],
                             required: bool = False) -> Tuple[Any, Any]:
    """
    Create a Pydantic field from a schema node.

    Args:
        field_name: Name of the field
        field_schema: Schema node for the field
        required: Whether the field must be present

    Returns:
        Tuple of (field_type, FieldInfo)
    """
    field_type = get_field_type(field_schema)
    field_kwargs: Dict[str, Any] = {}

    if not required:
        field_type = Optional[field_type]
        field_kwargs['default'] = None

    if 'title' in field_schema:
        field_kwargs['title'] = field_schema['title']
    if 'description' in field_schema:
        field_kwargs['description'] = field_schema['description']

    schema_type = field_schema.get('type')
    if schema_type == 'string':
        if field_schema.get('minLength') is not None:
            field_kwargs['min_length'] = field_schema['minLength']
        if field_schema.get('maxLength') is not None:
            field_kwargs['max_length'] = field_schema['maxLength']
    elif schema_type in ('number', 'integer'):
        if field_schema.get('minimum') is not None:
            field_kwargs['ge'] = field_schema['minimum']
        if field_schema.get('maximum') is not None:
            field_kwargs['le'] = field_schema['maximum']

    return field_type, Field(**field_kwargs)


def create_validators_for_field(field_name: str, field_schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create validators the Field constraints cannot express.

    Patterns follow HTML input semantics: the whole value must match.
    Enum membership is checked for string enums.

    Returns:
        Dictionary of validator functions
    """
    validators = {}

    if field_schema.get('type') != 'string':
        return validators

    pattern = field_schema.get('pattern')
    if pattern:
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            logger.warning(f"Ignoring invalid pattern for '{field_name}': {e}")
            compiled = None

        if compiled is not None:
            @field_validator(field_name)
            @classmethod
            def pattern_validator_func(cls, v):
                if v is not None and not compiled.fullmatch(str(v)):
                    raise ValueError(f'Value must match pattern: {pattern}')
                return v
            validators[f'validate_{field_name}_pattern'] = pattern_validator_func

    choices = field_schema.get('enum')
    if choices:
        @field_validator(field_name)
        @classmethod
        def enum_validator_func(cls, v):
            if v is not None and v not in choices:
                raise ValueError(f'Value must be one of: {choices}')
            return v
        validators[f'validate_{field_name}_enum'] = enum_validator_func

    return validators


def _required_names(schema: Dict[str, Any], properties: Dict[str, Any]) -> List[str]:
    required = schema.get('required')
    if required is True:
        return list(properties)
    if isinstance(required, list):
        return [name for name in required if name in properties]
    return []


def _cache_key(schema: Dict[str, Any]) -> str:
    return json.dumps(schema, sort_keys=True, default=str)


def create_nested_model(schema: Dict[str, Any], model_name: str) -> Type[BaseModel]:
    """
    Create a Pydantic model for an object schema node.

    Args:
        schema: Object schema with ``properties``
        model_name: Name for the generated model class

    Returns:
        Pydantic model class
    """
    properties = schema.get('properties') or {}
    required = _required_names(schema, properties)
    model_fields = {}
    validators_dict = {}

    for prop_name, prop_schema in properties.items():
        if not isinstance(prop_schema, dict):
            continue
        model_fields[prop_name] = create_field_from_config(prop_name, prop_schema, prop_name in required)
        validators_dict.update(create_validators_for_field(prop_name, prop_schema))

    return create_model(
        model_name,
        __config__=ConfigDict(extra='ignore'),
        __validators__=validators_dict,
        **model_fields
    )


def create_model_from_schema(schema: Dict[str, Any], model_name: str = "DynamicModel") -> Type[BaseModel]:
    """
    Create a Pydantic model from an object schema.

    Args:
        schema: Object schema dictionary with ``properties``
        model_name: Name for the generated model class

    Returns:
        Pydantic model class
    """
    if not isinstance(schema, dict) or schema.get('type') != 'object' or not schema.get('properties'):
        raise ValueError("Schema must be an object with 'properties'")

    key = f"{model_name}:{_cache_key(schema)}"
    if key in _model_cache:
        return _model_cache[key]

    try:
        model = create_nested_model(schema, model_name)
    except Exception as e:
        logger.error(f"Failed to create model '{model_name}': {e}")
        raise

    _model_cache[key] = model
    logger.info(f"Created dynamic model '{model_name}' with {len(model.model_fields)} fields")
    return model


def validate_model_data(data: Dict[str, Any], model_class: Type[BaseModel]) -> List[str]:
    """
    Validate data against a Pydantic model and return validation errors.

    Args:
        data: Data to validate
        model_class: Pydantic model class

    Returns:
        List of validation error messages
    """
    try:
        model_class.model_validate(data)
        return []
    except ValidationError as e:
        error_messages = []
        for error in e.errors():
            field_path = ' -> '.join(str(loc) for loc in error.get('loc', []))
            message = error.get('msg', 'Invalid value')
            error_messages.append(f"{field_path}: {message}" if field_path else message)
        return error_messages


def check_constraints(schema: Dict[str, Any], value: Any) -> List[str]:
    """
    Report constraint violations for a value without blocking anything.

    Absent values are not checked; requiredness is the host control's
    concern.

    Args:
        schema: Leaf or object schema node
        value: Current value

    Returns:
        List of human-readable messages (empty when the value satisfies
        the schema's declarative constraints)
    """
    if value is None or not isinstance(schema, dict):
        return []

    if schema.get('type') == 'object':
        if not schema.get('properties') or not isinstance(value, dict):
            return []
        return validate_model_data(value, create_model_from_schema(schema))

    wrapper = {
        'type': 'object',
        'required': ['value'],
        'properties': {'value': schema},
    }
    errors = validate_model_data({'value': value}, create_model_from_schema(wrapper, "FieldCheck"))
    return [message.split(': ', 1)[-1] if message.startswith('value') else message for message in errors]
