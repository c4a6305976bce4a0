"""
Parser for the hosted options of a build.

Hosted options configure the image builder itself and use the grammar

- ``-H:<Name>=<value>`` for valued options
- ``-H:+<Name>`` / ``-H:-<Name>`` for boolean options
- ``-R:<...>`` for options of the generated image's runtime, which are only
  recorded by name

Tokens that do not match a known option are returned to the caller, which
decides how to report them.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import psutil

from ..models.config import BuilderSettings
from ..models.runtime import BuildOptions, ImageKind
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

HOSTED_PREFIX = "-H:"
RUNTIME_PREFIX = "-R:"

VALUE_OPTIONS = ("Name", "Kind", "Class", "Method", "NumberOfThreads",
                 "NumberOfAnalysisThreads", "Path")
BOOLEAN_OPTIONS = ("ReportExceptionStackTraces", "ExitAfterAnalysis")

MAX_THREADS = 4096


def option_argument(name: str, value: str) -> str:
    """
    Render the command line argument that sets a hosted option.

    ``option_argument("ReportExceptionStackTraces", "+")`` gives
    ``-H:+ReportExceptionStackTraces``, other values give ``-H:<name>=<value>``.
    """
    if value in ("+", "-"):
        return f"{HOSTED_PREFIX}{value}{name}"
    return f"{HOSTED_PREFIX}{name}={value}"


def _parse_boolean(name: str, value: str) -> bool:
    lowered = value.lower()
    if lowered in ("true", "+"):
        return True
    if lowered in ("false", "-"):
        return False
    raise ValidationError(
        f"Boolean option '{name}' must be set with {option_argument(name, '+')} "
        f"or {option_argument(name, '-')}, got '{value}'",
        field_name=name,
        value=value,
    )


class HostedOptionParser:
    """
    Turns the post-extraction argument list into ``BuildOptions``.

    Args:
        settings: Builder defaults from the application configuration
        cpu_count: Host CPU count used for the default thread limits,
            detected with psutil when None
    """

    def __init__(self, settings: BuilderSettings, cpu_count: Optional[int] = None):
        self.settings = settings
        self.cpu_count = cpu_count
        self.values: Dict[str, str] = {}
        self.flags: Dict[str, bool] = {}
        self.runtime_option_names: List[str] = []

    def parse(self, arguments: Sequence[str]) -> Tuple[BuildOptions, List[str]]:
        """
        Parse hosted and runtime options.

        Args:
            arguments: Command line arguments without -imagecp and -watchpid

        Returns:
            The resolved build options and the tokens that were not recognised

        Raises:
            ValidationError: If a recognised option has an invalid value
        """
        remaining: List[str] = []
        for argument in arguments:
            if argument.startswith(HOSTED_PREFIX):
                if not self._parse_hosted(argument[len(HOSTED_PREFIX):]):
                    remaining.append(argument)
            elif argument.startswith(RUNTIME_PREFIX) and len(argument) > len(RUNTIME_PREFIX):
                self._parse_runtime(argument[len(RUNTIME_PREFIX):])
            else:
                remaining.append(argument)

        options = self._build_options()
        logger.debug(f"Parsed hosted options: {options}")
        return options, remaining

    def _parse_hosted(self, option: str) -> bool:
        if option[:1] in ("+", "-"):
            name = option[1:]
            if name not in BOOLEAN_OPTIONS:
                return False
            self.flags[name] = option[0] == "+"
            return True

        name, separator, value = option.partition("=")
        if not separator:
            return False
        if name in BOOLEAN_OPTIONS:
            self.flags[name] = _parse_boolean(name, value)
            return True
        if name in VALUE_OPTIONS:
            self.values[name] = value
            return True
        return False

    def _parse_runtime(self, option: str) -> None:
        name = option.lstrip("+-").partition("=")[0]
        if name and name not in self.runtime_option_names:
            self.runtime_option_names.append(name)

    def _default_threads(self) -> int:
        if self.settings.max_threads:
            return self.settings.max_threads
        cpu_count = self.cpu_count if self.cpu_count is not None else psutil.cpu_count()
        return max(1, min(cpu_count or 1, MAX_THREADS))

    def _build_options(self) -> BuildOptions:
        kind_name = validate_enum_choice(
            self.values.get("Kind", self.settings.default_image_kind),
            choices=list(ImageKind.names()),
            field_name="Kind",
            case_sensitive=False,
        )

        if "NumberOfThreads" in self.values:
            number_of_threads = validate_positive_integer(
                self.values["NumberOfThreads"],
                min_value=1,
                max_value=MAX_THREADS,
                field_name="NumberOfThreads",
            )
        else:
            number_of_threads = self._default_threads()

        if "NumberOfAnalysisThreads" in self.values:
            number_of_analysis_threads = validate_positive_integer(
                self.values["NumberOfAnalysisThreads"],
                min_value=1,
                max_value=MAX_THREADS,
                field_name="NumberOfAnalysisThreads",
            )
        else:
            number_of_analysis_threads = number_of_threads

        output_dir = Path(self.values["Path"]) if "Path" in self.values else self.settings.output_dir

        return BuildOptions(
            image_name=self.values.get("Name", ""),
            image_kind=ImageKind.from_name(kind_name),
            main_class=self.values.get("Class", ""),
            main_method=self.values.get("Method", self.settings.default_method),
            number_of_threads=number_of_threads,
            number_of_analysis_threads=number_of_analysis_threads,
            report_exception_stack_traces=self.flags.get("ReportExceptionStackTraces", False),
            exit_after_analysis=self.flags.get("ExitAfterAnalysis", False),
            output_dir=output_dir,
            runtime_option_names=tuple(self.runtime_option_names),
        )
