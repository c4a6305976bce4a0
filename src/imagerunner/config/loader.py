"""
Reading of the tool's ``config.toml``.

Problems with the file itself (missing, unreadable, not valid TOML) are
reported as ``ConfigurationError`` naming the file, so they reach the user
as ``Error:`` lines like any other configuration mistake. Validation of the
parsed tables is done in ``validators``.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import ConfigurationError

logger = logging.getLogger(__name__)


def load_toml_file(file_path: Path) -> Dict[str, Any]:
    """
    Parse a TOML configuration file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or malformed
    """
    path = Path(file_path)
    logger.debug(f"Loading configuration from: {path}")

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {path}", cause=e)
    except OSError as e:
        raise ConfigurationError(f"Configuration file {path} cannot be read: {e.strerror or e}", cause=e)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Configuration file {path} is not valid TOML: {e}", cause=e)


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """Load the main configuration file; its top level must be a table of sections."""
    data = load_toml_file(config_path)
    unknown = sorted(key for key, value in data.items() if not isinstance(value, dict))
    if unknown:
        raise ConfigurationError(
            f"Configuration file {config_path} has top-level keys outside a section: {', '.join(unknown)}"
        )
    return data
