"""
Custom exception classes for the schema form editor.

This module provides specialized exception classes for the failures the
editor knows how to recover from, each carrying context and recovery hints.
"""

import logging
from typing import Optional, Dict, Any, List, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)


class SchemaFormError(Exception):
    """
    Base exception for schema form errors.

    Attributes:
        message: Error message
        context: Additional context information
        recovery_suggestions: List of suggested recovery actions
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 recovery_suggestions: Optional[List[str]] = None):
        self.message = message
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def get_full_details(self) -> Dict[str, Any]:
        """Get complete error details including context and suggestions."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context,
            'recovery_suggestions': self.recovery_suggestions
        }


class PathUpdateError(SchemaFormError):
    """
    Exception raised when a value cannot be written at a path.

    This covers scalar intermediates, non-integer list indexes and
    out-of-range list indexes.
    """

    def __init__(self, path: Sequence[Any], reason: str, message: Optional[str] = None):
        self.path = tuple(path)
        self.reason = reason

        if message is None:
            dotted = ".".join(str(segment) for segment in self.path)
            message = f"Cannot update path '{dotted}': {reason}"

        context = {
            'path': list(self.path),
            'reason': reason
        }

        recovery_suggestions = [
            "Switch to JSON mode and correct the value structure",
            "Check that the value matches the declared schema shape"
        ]

        super().__init__(message, context, recovery_suggestions)


class JsonParseError(SchemaFormError):
    """
    Exception raised when raw text is not valid JSON.

    The message is the underlying parser's message, shown verbatim.
    """

    def __init__(self, text: str, original_error: Exception, message: Optional[str] = None):
        self.text = text
        self.original_error = original_error

        if message is None:
            message = str(original_error)

        context = {
            'text_length': len(text or ""),
            'original_error_type': type(original_error).__name__
        }

        recovery_suggestions = [
            "Check for missing quotes, commas or brackets",
            "Use 'Format JSON' to locate the problem"
        ]

        super().__init__(message, context, recovery_suggestions)


class SchemaLoadError(SchemaFormError):
    """
    Exception raised when a schema file cannot be loaded or is invalid.
    """

    def __init__(self, schema_path: Path, original_error: Optional[Exception] = None,
                 message: Optional[str] = None):
        self.schema_path = schema_path
        self.original_error = original_error

        if message is None:
            if original_error is not None:
                message = f"Failed to load schema from {schema_path}: {str(original_error)}"
            else:
                message = f"Failed to load schema from {schema_path}"

        context = {
            'schema_path': str(schema_path),
            'original_error_type': type(original_error).__name__ if original_error else None
        }

        recovery_suggestions = [
            "Check that the schema file exists and is readable",
            "Verify YAML/JSON syntax is correct",
            "Ensure the root node declares a supported 'type'"
        ]

        super().__init__(message, context, recovery_suggestions)


class ConfigurationLoadError(SchemaFormError):
    """
    Exception raised when configuration file loading fails.

    This includes YAML parsing errors, file not found, permission issues, etc.
    """

    def __init__(self, config_path: Path, original_error: Exception,
                 message: Optional[str] = None):
        self.config_path = config_path
        self.original_error = original_error

        if message is None:
            message = f"Failed to load configuration from {config_path}: {str(original_error)}"

        context = {
            'config_path': str(config_path),
            'original_error_type': type(original_error).__name__,
            'original_error_message': str(original_error)
        }

        recovery_suggestions = [
            "Check if config.yaml exists and is readable",
            "Verify YAML syntax is correct",
            "Application will use default configuration as fallback"
        ]

        super().__init__(message, context, recovery_suggestions)


def handle_schema_form_error(error: Exception, context: str = "unknown") -> bool:
    """
    Log a schema form error and report whether the caller can continue.

    Args:
        error: The exception that occurred
        context: Context where the error occurred

    Returns:
        True if processing can continue with a fallback, False otherwise
    """
    if isinstance(error, (PathUpdateError, JsonParseError)):
        logger.warning(f"Recoverable editor error in {context}: {error.message}")
        return True

    elif isinstance(error, ConfigurationLoadError):
        logger.warning(f"Configuration load error in {context}: {error.message}")
        logger.info("Falling back to default configuration")
        for suggestion in error.recovery_suggestions:
            logger.info(f"Recovery suggestion: {suggestion}")
        return True

    elif isinstance(error, SchemaLoadError):
        logger.error(f"Schema load failed in {context}: {error.message}")
        for suggestion in error.recovery_suggestions:
            logger.error(f"Recovery action needed: {suggestion}")
        return False

    elif isinstance(error, SchemaFormError):
        logger.error(f"General schema form error in {context}: {error.message}")
        return True

    else:
        logger.error(f"Unexpected error in {context}: {error}")
        return False
