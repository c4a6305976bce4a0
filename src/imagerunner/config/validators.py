"""
Configuration validation utilities.

This module provides specialized validation functions for each table of
``config.toml``: builder defaults, environment requirements, watchdog and
logging settings.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Tuple

from ..models.config import (
    AppConfig,
    BuilderSettings,
    EnvironmentSettings,
    LoggingSettings,
    WatchdogSettings,
)
from ..models.runtime import ImageKind
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_string_list,
)

logger = logging.getLogger(__name__)

_GENERATOR_PATH = re.compile(r"^[A-Za-z_][\w.]*:[A-Za-z_][\w.]*$")
_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def validate_builder_settings(builder_data: Dict[str, Any]) -> BuilderSettings:
    """
    Validate and create BuilderSettings from the raw ``[builder]`` table.

    Raises:
        ValidationError: If validation fails
    """
    tool_name = builder_data.get("tool_name", "native-image")
    if not isinstance(tool_name, str) or not tool_name:
        raise ValidationError(
            "builder.tool_name must be a non-empty string",
            field_name="builder.tool_name",
            value=tool_name,
        )

    default_image_kind = validate_enum_choice(
        builder_data.get("default_image_kind", ImageKind.EXECUTABLE.label),
        choices=list(ImageKind.names()),
        field_name="builder.default_image_kind",
        case_sensitive=False,
    )

    default_method = builder_data.get("default_method", "main")
    if not isinstance(default_method, str) or not default_method.isidentifier():
        raise ValidationError(
            f"builder.default_method must be a valid identifier, got {default_method!r}",
            field_name="builder.default_method",
            value=default_method,
        )

    max_threads = validate_positive_integer(
        builder_data.get("max_threads", 0),
        min_value=0,
        max_value=4096,
        field_name="builder.max_threads",
    )

    generator = builder_data.get("generator", "imagerunner.engine.manifest:ManifestImageGenerator")
    if not isinstance(generator, str) or not _GENERATOR_PATH.match(generator):
        raise ValidationError(
            f"builder.generator must have the form 'module:attribute', got {generator!r}",
            field_name="builder.generator",
            value=generator,
        )

    return BuilderSettings(
        tool_name=tool_name,
        default_image_kind=default_image_kind,
        default_method=default_method,
        max_threads=max_threads,
        generator=generator,
        output_dir=Path(builder_data.get("output_dir", ".")),
    )


def _parse_version(value: Any, field_name: str) -> Tuple[int, int]:
    match = re.fullmatch(r"(\d+)\.(\d+)", str(value))
    if not match:
        raise ValidationError(
            f"{field_name} must have the form 'MAJOR.MINOR', got {value!r}",
            field_name=field_name,
            value=value,
        )
    return int(match.group(1)), int(match.group(2))


def validate_environment_settings(environment_data: Dict[str, Any]) -> EnvironmentSettings:
    """
    Validate and create EnvironmentSettings from the raw ``[environment]`` table.

    Raises:
        ValidationError: If validation fails
    """
    minimum_python = _parse_version(
        environment_data.get("minimum_python", "3.11"),
        "environment.minimum_python",
    )
    architectures = validate_string_list(
        environment_data.get("supported_architectures", ["amd64"]),
        field_name="environment.supported_architectures",
    )
    systems = validate_string_list(
        environment_data.get("supported_systems", ["linux", "darwin", "windows"]),
        field_name="environment.supported_systems",
    )
    return EnvironmentSettings(
        minimum_python=minimum_python,
        ignore_version_check_env=environment_data.get(
            "ignore_version_check_env", "IMAGERUNNER_IGNORE_VERSION_CHECK"
        ),
        supported_architectures=[a.lower() for a in architectures],
        supported_systems=[s.lower() for s in systems],
    )


def validate_watchdog_settings(watchdog_data: Dict[str, Any]) -> WatchdogSettings:
    """
    Validate and create WatchdogSettings from the raw ``[watchdog]`` table.

    Raises:
        ValidationError: If validation fails
    """
    interval_seconds = validate_positive_float(
        watchdog_data.get("interval_seconds", 1.0),
        min_value=0.01,  # 10ms minimum
        max_value=60.0,  # 60s maximum
        field_name="watchdog.interval_seconds",
    )
    identity = watchdog_data.get("identity", "native-image")
    if not isinstance(identity, str) or not identity:
        raise ValidationError(
            "watchdog.identity must be a non-empty string",
            field_name="watchdog.identity",
            value=identity,
        )
    return WatchdogSettings(interval_seconds=interval_seconds, identity=identity)


def validate_logging_settings(logging_data: Dict[str, Any]) -> LoggingSettings:
    """
    Validate and create LoggingSettings from the raw ``[logging]`` table.

    Raises:
        ValidationError: If validation fails
    """
    level = validate_enum_choice(
        logging_data.get("level", "WARNING"),
        choices=_LOG_LEVELS,
        field_name="logging.level",
        case_sensitive=False,
    )
    log_format = logging_data.get(
        "format",
        "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    )
    return LoggingSettings(level=level, format=log_format)


def validate_app_config(config_data: Dict[str, Any]) -> AppConfig:
    """
    Validate every table of ``config.toml`` and assemble the AppConfig.

    Missing tables fall back to the built-in defaults.

    Raises:
        ValidationError: If any table fails validation
    """
    try:
        return AppConfig(
            builder=validate_builder_settings(config_data.get("builder", {})),
            environment=validate_environment_settings(config_data.get("environment", {})),
            watchdog=validate_watchdog_settings(config_data.get("watchdog", {})),
            logging=validate_logging_settings(config_data.get("logging", {})),
        )
    except ValidationError as e:
        logger.error(f"Configuration validation failed: {e}")
        raise
