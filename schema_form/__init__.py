"""
Schema-driven editor for JSON values.

``DynamicJsonForm`` is the toolkit-independent controller;
``render_dynamic_json_form`` draws it with Streamlit.
"""

from .dynamic_form import CommitOutcome, CommitStatus, DynamicJsonForm, FormView, SummaryView
from .exceptions import (
    ConfigurationLoadError, JsonParseError, PathUpdateError, SchemaFormError, SchemaLoadError,
)
from .json_utils import MISSING, update_value_at_path
from .mode_selector import EditorMode
from .schema_defaults import generate_default_value
from .streamlit_form import render_dynamic_json_form

__version__ = "1.0.0"

__all__ = [
    'CommitOutcome',
    'CommitStatus',
    'ConfigurationLoadError',
    'DynamicJsonForm',
    'EditorMode',
    'FormView',
    'JsonParseError',
    'MISSING',
    'PathUpdateError',
    'SchemaFormError',
    'SchemaLoadError',
    'SummaryView',
    'generate_default_value',
    'render_dynamic_json_form',
    'update_value_at_path',
]
