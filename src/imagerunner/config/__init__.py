"""
Configuration management for the imagerunner package.

This module provides a clean interface for loading, validating and accessing
the tool configuration from TOML, and the parser for the hosted options of a
build (``-H:`` and ``-R:`` arguments).
"""

# Main configuration interface
from .manager import (
    clear_config_cache,
    get_config,
    get_config_path,
    is_config_loaded,
    set_config_path,
)

# For advanced usage - direct access to loaders and validators
from .loader import load_main_config, load_toml_file
from .validators import validate_app_config

# Hosted option parsing
from .options import HostedOptionParser, option_argument

__all__ = [
    # Main interface
    "get_config",
    "get_config_path",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    # Advanced interface
    "load_toml_file",
    "load_main_config",
    "validate_app_config",
    # Hosted options
    "HostedOptionParser",
    "option_argument",
]
