"""
Pre-extraction of the out-of-band command line arguments.

``-imagecp <classpath>`` and ``-watchpid <pid>`` are consumed before the
hosted options are parsed. Both extractors return a new argument list and
never modify the one they are given.
"""

import logging
import os
import re
from typing import List, Optional, Sequence, Tuple

from ..engine.classpath import CLASSPATH_MARKER
from ..models.runtime import BuildInvocation
from ..validation import ConfigurationError

logger = logging.getLogger(__name__)

WATCH_PID_MARKER = "-watchpid"

_PID_PATTERN = re.compile(r"[0-9]+")


def extract_classpath(arguments: Sequence[str]) -> Tuple[List[str], List[str]]:
    """
    Remove ``-imagecp <classpath>`` from the arguments.

    Args:
        arguments: Raw command line arguments

    Returns:
        The classpath entries, split on the host path separator, and the
        remaining arguments

    Raises:
        ConfigurationError: If the marker is missing, repeated or has no value
    """
    remaining = list(arguments)
    message_tail = f" '{CLASSPATH_MARKER} <image classpath>' argument."

    occurrences = remaining.count(CLASSPATH_MARKER)
    if occurrences == 0:
        raise ConfigurationError("Missing" + message_tail)
    if occurrences > 1:
        raise ConfigurationError(f"Only one{message_tail[:-1]} is allowed.")

    index = remaining.index(CLASSPATH_MARKER)
    if index + 1 >= len(remaining):
        raise ConfigurationError("Missing <image classpath> for" + message_tail)

    classpath = remaining[index + 1]
    del remaining[index:index + 2]
    return classpath.split(os.pathsep), remaining


def extract_watch_pid(arguments: Sequence[str]) -> Tuple[Optional[int], List[str]]:
    """
    Remove ``-watchpid <pid>`` from the arguments.

    Args:
        arguments: Command line arguments

    Returns:
        The process id, or None when the marker is absent, and the remaining
        arguments

    Raises:
        ConfigurationError: If the marker has no value or the value is not a
            non-negative base-10 integer
    """
    remaining = list(arguments)
    if WATCH_PID_MARKER not in remaining:
        return None, remaining

    index = remaining.index(WATCH_PID_MARKER)
    if index + 1 >= len(remaining):
        raise ConfigurationError(f"ProcessID must be provided after the '{WATCH_PID_MARKER}' argument.")

    value = remaining[index + 1]
    if not _PID_PATTERN.fullmatch(value):
        raise ConfigurationError(
            f"Invalid ProcessID '{value}' after the '{WATCH_PID_MARKER}' argument. "
            f"Expected a non-negative integer."
        )
    del remaining[index:index + 2]
    return int(value), remaining


def parse_invocation(arguments: Sequence[str]) -> BuildInvocation:
    """
    Extract the out-of-band arguments and describe the invocation.

    Raises:
        ConfigurationError: If either extraction fails
    """
    classpath, remaining = extract_classpath(arguments)
    watch_pid, remaining = extract_watch_pid(remaining)
    logger.debug(f"Image classpath: {classpath}, watch pid: {watch_pid}")
    return BuildInvocation(
        raw_arguments=tuple(arguments),
        classpath=tuple(classpath),
        watch_pid=watch_pid,
        arguments=tuple(remaining),
    )
