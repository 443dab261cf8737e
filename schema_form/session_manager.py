"""
Session state management for the Streamlit schema form editor.
Holds the active schema, the loaded and edited values and the form
controllers that must survive reruns.
"""

import streamlit as st
from typing import Dict, Any, Optional
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


class SessionManager:
    """Manages Streamlit session state for the schema form editor."""

    @staticmethod
    def initialize():
        """Initialize all session state variables with default values."""
        defaults = {
            'active_schema_name': None,
            'schema': {},
            'original_value': None,
            'current_value': None,
            'form_controllers': {},
            'last_activity': datetime.now(),
            'session_id': None,
        }

        for key, default_value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = default_value

        if not st.session_state.session_id:
            st.session_state.session_id = f"session_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
            logger.info(f"Session initialized: {st.session_state.session_id}")

    @staticmethod
    def get_active_schema_name() -> Optional[str]:
        """Get the file name of the active schema."""
        return st.session_state.get('active_schema_name')

    @staticmethod
    def set_active_schema(name: Optional[str], schema: Dict[str, Any]):
        """Switch to a schema, dropping the values edited under the previous one."""
        old_name = st.session_state.get('active_schema_name')
        if old_name != name:
            logger.info(f"Schema transition: {old_name} -> {name}")
        st.session_state.active_schema_name = name
        st.session_state.schema = schema

    @staticmethod
    def get_schema() -> Dict[str, Any]:
        """Get the active schema."""
        return st.session_state.get('schema', {})

    @staticmethod
    def get_original_value() -> Any:
        """Get the value as it was loaded."""
        return st.session_state.get('original_value')

    @staticmethod
    def get_current_value() -> Any:
        """Get the value being edited."""
        return st.session_state.get('current_value')

    @staticmethod
    def set_current_value(value: Any):
        """Replace the value being edited."""
        st.session_state.current_value = value
        SessionManager.update_activity()

    @staticmethod
    def load_value(value: Any):
        """Set both the original and the current value, e.g. after loading a schema."""
        st.session_state.original_value = value
        st.session_state.current_value = value
        SessionManager.update_activity()

    @staticmethod
    def has_unsaved_changes() -> bool:
        """True if the current value differs from the loaded one."""
        return st.session_state.get('current_value') != st.session_state.get('original_value')

    @staticmethod
    def get_form_controller(key: str):
        """Get the form controller stored under a widget key."""
        return st.session_state.get('form_controllers', {}).get(key)

    @staticmethod
    def set_form_controller(key: str, controller):
        """Store a form controller under a widget key."""
        if 'form_controllers' not in st.session_state:
            st.session_state.form_controllers = {}
        st.session_state.form_controllers[key] = controller

    @staticmethod
    def drop_form(key: str):
        """Tear down and forget the controller stored under a widget key."""
        controller = st.session_state.get('form_controllers', {}).pop(key, None)
        if controller is not None:
            controller.teardown()
            logger.debug(f"Dropped form controller {key}")

    @staticmethod
    def update_activity():
        """Update last activity timestamp."""
        st.session_state.last_activity = datetime.now()

    @staticmethod
    def reset_session():
        """Reset session state, tearing down every form controller."""
        logger.info("Resetting session state")
        for key in list(st.session_state.get('form_controllers', {})):
            SessionManager.drop_form(key)

        st.session_state.active_schema_name = None
        st.session_state.schema = {}
        st.session_state.original_value = None
        st.session_state.current_value = None
        st.session_state.form_controllers = {}

    @staticmethod
    def get_session_info() -> Dict[str, Any]:
        """Get session information for debugging."""
        return {
            'session_id': st.session_state.get('session_id'),
            'active_schema_name': st.session_state.get('active_schema_name'),
            'form_count': len(st.session_state.get('form_controllers', {})),
            'unsaved_changes': SessionManager.has_unsaved_changes(),
            'last_activity': st.session_state.get('last_activity'),
        }
