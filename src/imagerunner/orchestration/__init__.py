"""
Build orchestration for the imagerunner package.

This module contains the build lifecycle and the components it relies on:

- ``arguments``: extraction of ``-imagecp`` and ``-watchpid``
- ``entry_point``: resolution of the main entry point
- ``orchestrator``: the build state machine
- ``watchdog``: liveness watchdog of the requesting process
- ``signal_handler``: SIGINT/SIGTERM to interruption requests
"""

from .arguments import extract_classpath, extract_watch_pid, parse_invocation
from .entry_point import EntryPointResolver, inspect_signature
from .orchestrator import BuildOrchestrator
from .shared_state import ActiveHandle, ImageSingletons
from .signal_handler import SignalHandler
from .watchdog import (
    ProcessSupervisor,
    ProcessWatchdog,
    WatchdogUnavailableError,
    start_watchdog,
)

__all__ = [
    "extract_classpath",
    "extract_watch_pid",
    "parse_invocation",
    "EntryPointResolver",
    "inspect_signature",
    "BuildOrchestrator",
    "ActiveHandle",
    "ImageSingletons",
    "SignalHandler",
    "ProcessSupervisor",
    "ProcessWatchdog",
    "WatchdogUnavailableError",
    "start_watchdog",
]
