"""
Error handling utilities for the schema form editor.
Logs errors and shows user-friendly messages in the Streamlit host.
"""

import streamlit as st
import logging
import json
from typing import Any, Callable, Optional

import yaml

from .exceptions import SchemaFormError, SchemaLoadError

logger = logging.getLogger(__name__)


class ErrorType:
    """Error type constants."""
    SCHEMA = "schema"
    SYSTEM = "system"


class ErrorHandler:
    """Error handling for the Streamlit host."""

    @staticmethod
    def handle_error(
        error: Exception,
        context: str,
        error_type: str = ErrorType.SYSTEM,
        user_message: Optional[str] = None,
        show_details: bool = False
    ) -> None:
        """
        Handle errors with user-friendly messages.

        Args:
            error: The exception that occurred
            context: Context where the error occurred
            error_type: Type of error (from ErrorType constants)
            user_message: Custom user-friendly message
            show_details: Whether to show technical details
        """
        logger.error(f"Error in {context}: {str(error)}", exc_info=True)

        if not user_message:
            user_message = ErrorHandler._get_user_friendly_message(error, error_type)

        ErrorHandler._display_error(user_message, error, context, show_details)

    @staticmethod
    def _get_user_friendly_message(error: Exception, error_type: str) -> str:
        """Generate user-friendly error messages based on error type."""
        error_messages = {
            ErrorType.SCHEMA: {
                SchemaLoadError: "📋 The schema could not be loaded. Please check the schema file.",
                yaml.YAMLError: "📋 Schema file contains invalid YAML. Please check the schema file.",
                json.JSONDecodeError: "📋 Schema file contains invalid JSON. Please check the schema file.",
                "default": "📋 Schema error occurred. Please check your schema files."
            },

            ErrorType.SYSTEM: {
                MemoryError: "💻 System is running low on memory. Please try again.",
                ImportError: "💻 Required system component is missing. Please check the installation.",
                "default": "💻 System error occurred. Please try again."
            }
        }

        error_type_messages = error_messages.get(error_type, error_messages[ErrorType.SYSTEM])

        for exception_type, message in error_type_messages.items():
            if exception_type != "default" and isinstance(error, exception_type):
                return message

        return error_type_messages.get("default", "An unexpected error occurred.")

    @staticmethod
    def _display_error(
        user_message: str,
        error: Exception,
        context: str,
        show_details: bool = False
    ) -> None:
        """Display error message to user with optional technical details."""
        st.error(user_message)

        if isinstance(error, SchemaFormError) and error.recovery_suggestions:
            for suggestion in error.recovery_suggestions:
                st.caption(f"• {suggestion}")

        if show_details:
            with st.expander("🔍 Technical Details"):
                st.write(f"**Error Type:** {type(error).__name__}")
                st.write(f"**Context:** {context}")
                st.write(f"**Error Message:** {str(error)}")

    @staticmethod
    def with_error_handling(
        func: Callable,
        context: str,
        error_type: str = ErrorType.SYSTEM,
        user_message: Optional[str] = None,
        show_details: bool = False,
        default_return: Any = None
    ) -> Any:
        """
        Decorator-like function to wrap operations with error handling.

        Args:
            func: Function to execute
            context: Context description
            error_type: Type of error expected
            user_message: Custom user message
            show_details: Show technical details
            default_return: Value to return on error

        Returns:
            Function result or default_return on error
        """
        try:
            return func()
        except Exception as e:
            ErrorHandler.handle_error(e, context, error_type, user_message, show_details)
            return default_return


# Convenience functions
def handle_error(error: Exception, context: str, error_type: str = ErrorType.SYSTEM) -> None:
    """Convenience function for error handling."""
    ErrorHandler.handle_error(error, context, error_type)


def with_error_handling(func: Callable, context: str, **kwargs) -> Any:
    """Convenience function for wrapping operations with error handling."""
    return ErrorHandler.with_error_handling(func, context, **kwargs)
