"""
Main Streamlit application for the JSON parameter editor.
Pick a schema, edit a value through the schema-driven form or as raw JSON,
and review the changes made since the value was loaded.
"""

import streamlit as st
from pathlib import Path
import logging

from schema_form.config_loader import (
    get_config, get_config_summary, get_config_value, get_logging_level, validate_config,
)
from schema_form.diff_utils import calculate_diff, format_diff_for_display, has_changes
from schema_form.error_handler import ErrorHandler, ErrorType
from schema_form.model_builder import check_constraints
from schema_form.schema_defaults import generate_default_value
from schema_form.schema_loader import list_available_schemas, load_schema_or_fallback
from schema_form.session_manager import SessionManager
from schema_form.streamlit_form import render_dynamic_json_form

# Configure logging dynamically from config
try:
    log_level_str = get_config_value('logging', 'level', 'INFO')
    log_format = get_config_value('logging', 'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    logging.basicConfig(level=get_logging_level(log_level_str), format=log_format)
    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured to level: {log_level_str}")
except Exception as e:
    # Fallback to INFO if config reading fails
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)
    logger.error(f"Failed to configure logging from config: {e}, using INFO level")

config = get_config()
page_title = get_config_value('ui', 'page_title', 'JSON Parameter Editor')

st.set_page_config(
    page_title=page_title,
    page_icon="🧩",
    layout="wide",
    initial_sidebar_state="expanded"
)

FORM_KEY = "parameters"


def main():
    """Main application entry point."""
    try:
        SessionManager.initialize()
        validate_configuration()

        st.title(page_title)
        render_sidebar()
        render_main_content()

    except Exception as e:
        ErrorHandler.handle_error(e, "application startup", ErrorType.SYSTEM)


def validate_configuration():
    """Warn when config.yaml has invalid settings; defaults are used for them."""
    if not validate_config(config):
        st.warning("⚠️ Some configuration settings are invalid, using defaults where necessary.")
    summary = get_config_summary(config)
    logger.debug(f"Configuration summary: {summary}")


def _schemas_dir() -> Path:
    return Path(get_config_value('schema', 'directory', 'schemas'))


def select_schema(name: str):
    """Load a schema and start editing its default value."""
    schema = load_schema_or_fallback(name, _schemas_dir())
    SessionManager.drop_form(FORM_KEY)
    SessionManager.set_active_schema(name, schema)
    SessionManager.load_value(generate_default_value(schema))


def render_sidebar():
    """Render schema selection and session controls."""
    with st.sidebar:
        st.header(get_config_value('ui', 'sidebar_title', 'Schemas'))

        schemas = list_available_schemas(_schemas_dir())
        if not schemas:
            st.info(f"No schemas found in '{_schemas_dir()}'.")

        active = SessionManager.get_active_schema_name()
        if active is None:
            default_schema = get_config_value('schema', 'default_schema', 'server_parameters.yaml')
            active = default_schema if default_schema in schemas else (schemas[0] if schemas else default_schema)
            select_schema(active)

        if schemas:
            index = schemas.index(active) if active in schemas else 0
            choice = st.selectbox("Schema", schemas, index=index, key="schema_choice")
            if choice != active:
                ErrorHandler.with_error_handling(
                    lambda: select_schema(choice), "schema selection", ErrorType.SCHEMA
                )
                st.rerun()

        if st.button("Reset value", use_container_width=True):
            SessionManager.drop_form(FORM_KEY)
            SessionManager.load_value(SessionManager.get_original_value())
            st.rerun()

        st.divider()
        st.caption(f"Version {get_config_value('app', 'version', 'Unknown')}")


def render_main_content():
    """Render the editor next to the live value and the changes panel."""
    schema = SessionManager.get_schema()
    if schema.get('description'):
        st.caption(schema['description'])

    col1, col2 = st.columns([3, 2])

    with col1:
        st.subheader("Editor")
        render_dynamic_json_form(
            schema,
            SessionManager.get_current_value(),
            SessionManager.set_current_value,
            key=FORM_KEY,
            config=config,
        )

    with col2:
        current = SessionManager.get_current_value()
        st.subheader("Value")
        st.json(current if current is not None else None)

        problems = check_constraints(schema, current)
        if problems:
            with st.expander(f"⚠️ {len(problems)} constraint issue(s)", expanded=True):
                for problem in problems:
                    st.write(f"- {problem}")

        st.subheader("Changes")
        diff = calculate_diff(SessionManager.get_original_value(), current)
        if has_changes(diff):
            st.markdown(format_diff_for_display(diff))
        else:
            st.caption("No changes since the schema was loaded.")


if __name__ == "__main__":
    main()
