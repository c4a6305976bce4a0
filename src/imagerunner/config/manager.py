"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import ConfigurationError, ErrorSeverity, handle_config_error
from .loader import load_main_config
from .validators import validate_app_config

logger = logging.getLogger(__name__)

# Environment variable that points to an alternative config.toml.
CONFIG_PATH_ENV = "IMAGERUNNER_CONFIG"

# --- Global Singleton for Configuration ---

# This global variable will hold the single instance of the loaded AppConfig.
_CONFIG: Optional[AppConfig] = None

# Defines the default path to the main configuration file, shipped inside the
# package. It can be overridden with set_config_path() or IMAGERUNNER_CONFIG.
_CONFIG_FILE_PATH = Path(__file__).parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.
    
    Args:
        config_path: Path to the main config.toml file
        
    Note:
        The cached configuration is dropped, the next call to get_config()
        loads from the new path.
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """
    Clear the cached configuration, forcing a reload on next access.
    """
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def get_config_path() -> Path:
    """Return the configuration file that get_config() will load."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override)
    return _CONFIG_FILE_PATH


def _load_config(config_path: Path) -> AppConfig:
    """
    Load and validate the application configuration from a TOML file.
    
    Args:
        config_path: Path to the main config.toml file
        
    Returns:
        Fully validated AppConfig instance
        
    Raises:
        ConfigurationError: If the file is missing or malformed, or a
            value fails validation (``ValidationError``)
    """
    try:
        config_data = load_main_config(config_path)
        app_config = validate_app_config(config_data)
    except ConfigurationError as e:
        handle_config_error(
            error=e,
            context=f"loading {config_path}",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise

    app_config.source = config_path
    logger.debug(f"Successfully loaded configuration from {config_path}")
    return app_config


def get_config() -> AppConfig:
    """
    Return the application configuration, loading it on first use.

    Returns:
        The cached AppConfig instance
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(get_config_path())
    return _CONFIG


def is_config_loaded() -> bool:
    """Check whether the configuration has been loaded and cached."""
    return _CONFIG is not None
