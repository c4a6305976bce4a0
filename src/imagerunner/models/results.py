"""
Result data models.

This module contains the lifecycle states of a build, the classified error
records consumed by the reporter and the final build result.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..validation.exceptions import ErrorKind

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class BuildState(Enum):
    """States of the build lifecycle."""

    IDLE = "idle"
    VALIDATING = "validating"
    CONFIGURING = "configuring"
    RESOLVING_ENTRY_POINT = "resolving_entry_point"
    RUNNING = "running"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (BuildState.COMPLETED, BuildState.INTERRUPTED, BuildState.FAILED)


@dataclass(frozen=True)
class ErrorRecord:
    """
    A failure mapped into the closed taxonomy.

    Constructed where the failure is detected, consumed once by the reporter.
    """

    kind: ErrorKind
    messages: Tuple[str, ...]
    cause: Optional[BaseException] = None
    # Classified sub-failures of an aggregate, in the order they were raised.
    children: Tuple["ErrorRecord", ...] = ()
    # Reason carried by an interruption.
    reason: Optional[str] = None

    @property
    def classified(self) -> bool:
        return self.kind in (ErrorKind.CONFIGURATION, ErrorKind.ANALYSIS)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one build."""

    exit_code: int
    state: BuildState
    interruption_reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == EXIT_SUCCESS
