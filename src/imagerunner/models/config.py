"""
Configuration data models.

This module contains the tool-wide settings loaded from ``config.toml``:
builder defaults, host environment requirements, watchdog behaviour and
logging.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple


@dataclass
class BuilderSettings:
    """
    Defaults for a build, loaded from the ``[builder]`` table.
    """

    # Name used in user-facing tool messages.
    tool_name: str
    # Image kind used when -H:Kind is not given.
    default_image_kind: str
    # Entry point method used when -H:Method is not given.
    default_method: str
    # Default for -H:NumberOfThreads; 0 means the host CPU count.
    max_threads: int
    # "module:attribute" import path of the image generator factory.
    generator: str
    # Directory the image is written to when -H:Path is not given.
    output_dir: Path


@dataclass
class EnvironmentSettings:
    """
    Host requirements checked before a build starts, from ``[environment]``.
    """

    minimum_python: Tuple[int, int]
    # Environment variable that skips the interpreter version check.
    ignore_version_check_env: str
    supported_architectures: List[str]
    supported_systems: List[str]


@dataclass
class WatchdogSettings:
    """
    Settings of the -watchpid liveness poller, from ``[watchdog]``.
    """

    interval_seconds: float
    # Substring the watched process name must contain to count as alive.
    identity: str


@dataclass
class LoggingSettings:
    """
    Diagnostic logging settings, from ``[logging]``.
    """

    level: str
    format: str


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    builder: BuilderSettings
    environment: EnvironmentSettings
    watchdog: WatchdogSettings
    logging: LoggingSettings
    # File the configuration was loaded from, None for built-in defaults.
    source: Optional[Path] = None
