"""
Runtime data models.

This module contains the data structures describing one build invocation:
the raw and pre-extracted command line and the hosted options parsed from it.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class ImageKind(Enum):
    """Kinds of native image the generator can produce."""

    EXECUTABLE = ("EXECUTABLE", True)
    STATIC_EXECUTABLE = ("STATIC_EXECUTABLE", True)
    SHARED_LIBRARY = ("SHARED_LIBRARY", False)

    def __init__(self, label: str, executable: bool):
        self.label = label
        # Executable kinds need a main entry point class.
        self.executable = executable

    def __str__(self) -> str:
        return self.label

    @classmethod
    def names(cls) -> Tuple[str, ...]:
        return tuple(kind.label for kind in cls)

    @classmethod
    def from_name(cls, name: str) -> "ImageKind":
        return cls[name]


@dataclass(frozen=True)
class BuildOptions:
    """
    Resolved hosted options of one build.
    """

    image_name: str
    image_kind: ImageKind
    # Fully qualified target class, empty when none was given.
    main_class: str
    main_method: str
    # Concurrency limits of the compilation and analysis executors.
    number_of_threads: int
    number_of_analysis_threads: int
    # Print stack traces of classified errors instead of the hint line.
    report_exception_stack_traces: bool = False
    # Stop with an interruption once the analysis phase is complete.
    exit_after_analysis: bool = False
    output_dir: Path = Path(".")
    runtime_option_names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BuildInvocation:
    """
    Everything known about one run of the tool.

    Created once per process. ``options`` is filled in exactly once, when
    hosted option parsing succeeds; the instance is immutable afterwards.
    """

    raw_arguments: Tuple[str, ...]
    classpath: Tuple[str, ...]
    # None when -watchpid was not requested.
    watch_pid: Optional[int]
    # Arguments left after removing -imagecp and -watchpid.
    arguments: Tuple[str, ...]
    options: Optional[BuildOptions] = None

    @property
    def watch_requested(self) -> bool:
        return self.watch_pid is not None

    def with_options(self, options: BuildOptions) -> "BuildInvocation":
        """Return the invocation with its resolved options."""
        if self.options is not None:
            raise ValueError("Build options are already resolved")
        return dataclasses.replace(self, options=options)
