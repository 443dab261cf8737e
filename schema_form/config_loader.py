"""
Configuration loading utilities for the schema form editor.

This module provides functionality to load and validate application
configuration, including editor behaviour and logging, with fallback to
defaults.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging
from copy import deepcopy

from .exceptions import ConfigurationLoadError, handle_schema_form_error

logger = logging.getLogger(__name__)

CONFIG_FILE = Path("config.yaml")

LOGGING_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}

# Global configuration cache
_config_cache = None


def deep_merge(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries, with update_dict taking precedence.

    Args:
        base_dict: Base dictionary (defaults)
        update_dict: Dictionary to merge in (user config)

    Returns:
        Merged dictionary
    """
    result = deepcopy(base_dict)

    for key, value in update_dict.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def get_default_config() -> Dict[str, Any]:
    """
    Get default configuration.

    Returns:
        Dictionary with default configuration
    """
    return {
        'app': {
            'name': 'Schema Form Editor',
            'version': '1.0.0',
            'debug': False
        },
        'editor': {
            'max_depth': 3,
            'debounce_ms': 300,
            'indent': 2,
            'skip_resync_while_pending': False
        },
        'schema': {
            'directory': 'schemas',
            'default_schema': 'server_parameters.yaml'
        },
        'ui': {
            'page_title': 'JSON Parameter Editor',
            'sidebar_title': 'Schemas'
        },
        'logging': {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        }
    }


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load application configuration merged over the defaults.

    Args:
        config_path: Optional path to config file (defaults to config.yaml)

    Returns:
        Complete configuration dictionary
    """
    if config_path is None:
        config_path = CONFIG_FILE
    config_path = Path(config_path)

    default_config = get_default_config()

    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}")
        logger.info("Using default configuration")
        return default_config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f)

        if user_config is None:
            logger.warning(f"Configuration file is empty: {config_path}")
            return default_config

        if not isinstance(user_config, dict):
            logger.error(f"Configuration file is not a valid dictionary: {config_path}")
            logger.info("Using default configuration")
            return default_config

        config = deep_merge(default_config, user_config)

        logger.info(f"Successfully loaded configuration from {config_path}")
        return config

    except (yaml.YAMLError, IOError, OSError) as e:
        handle_schema_form_error(ConfigurationLoadError(config_path, e), "load_config")
        return default_config


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration structure and editor settings.

    Args:
        config: Configuration dictionary to validate

    Returns:
        True if configuration is valid, False otherwise
    """
    required_sections = ['app', 'editor', 'schema', 'ui', 'logging']

    for section in required_sections:
        if section not in config:
            logger.warning(f"Missing required configuration section: {section}")
            return False

    app = config.get('app', {})
    if 'name' not in app or 'version' not in app:
        logger.warning("Missing required app configuration (name or version)")
        return False

    editor = config.get('editor', {})
    for key in ('max_depth', 'debounce_ms', 'indent'):
        if key not in editor:
            continue
        value = editor[key]
        if isinstance(value, bool):
            logger.warning(f"editor.{key} must be a valid integer")
            return False
        try:
            number = int(value)
        except (ValueError, TypeError):
            logger.warning(f"editor.{key} must be a valid integer")
            return False
        if number < 0:
            logger.warning(f"editor.{key} must not be negative")
            return False

    if 'skip_resync_while_pending' in editor and not isinstance(editor['skip_resync_while_pending'], bool):
        logger.warning("editor.skip_resync_while_pending must be true or false")
        return False

    level = config.get('logging', {}).get('level', 'INFO')
    if not isinstance(level, str) or level.upper() not in LOGGING_LEVELS:
        logger.warning(f"Unknown logging level: {level}")
        return False

    return True


def get_config() -> Dict[str, Any]:
    """Return the cached application configuration, loading it on first use."""
    global _config_cache
    if _config_cache is None:
        _config_cache = load_config()
    return _config_cache


def get_config_value(section: str, key: str, default: Any = None) -> Any:
    """
    Get a specific configuration value.

    Args:
        section: Configuration section (e.g., 'editor', 'ui')
        key: Configuration key within section
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    config = get_config()
    return config.get(section, {}).get(key, default)


def get_editor_settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Extract editor settings, filling gaps from the defaults.

    Args:
        config: Complete configuration dictionary (defaults when None)

    Returns:
        Dictionary with max_depth, debounce_ms, indent and skip_resync_while_pending
    """
    defaults = get_default_config()['editor']
    editor = (config or {}).get('editor') or {}
    settings = deep_merge(defaults, editor if isinstance(editor, dict) else {})

    for key in ('max_depth', 'debounce_ms', 'indent'):
        try:
            settings[key] = int(settings[key])
        except (ValueError, TypeError):
            logger.warning(f"Invalid editor.{key} {settings[key]!r}, using {defaults[key]}")
            settings[key] = defaults[key]
    settings['skip_resync_while_pending'] = bool(settings['skip_resync_while_pending'])
    return settings


def get_logging_level(level_str: str) -> int:
    """Map string logging level to logging constant."""
    if not isinstance(level_str, str):
        return logging.INFO
    return LOGGING_LEVELS.get(level_str.upper(), logging.INFO)


def get_config_summary(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Get a summary of the current configuration.

    Args:
        config: Configuration dictionary

    Returns:
        Dictionary with configuration summary
    """
    editor = get_editor_settings(config)
    return {
        'app_name': config.get('app', {}).get('name', 'Unknown'),
        'app_version': config.get('app', {}).get('version', 'Unknown'),
        'debug_mode': config.get('app', {}).get('debug', False),
        'schema_directory': config.get('schema', {}).get('directory', 'schemas'),
        'max_depth': editor['max_depth'],
        'debounce_ms': editor['debounce_ms'],
        'logging_level': config.get('logging', {}).get('level', 'INFO')
    }
