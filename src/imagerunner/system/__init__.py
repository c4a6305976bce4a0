"""
System interaction utilities.

This module provides the host-level functionality the build relies on:

- Host environment checks (interpreter, architecture, operating system)
- Liveness probing of external processes for the watchdog
"""

# Host environment checks
from .environment import EnvironmentValidator, normalize_architecture

# Process probing
from .processes import ProcessProbe, probe_process, process_probe_supported

__all__ = [
    # Environment
    "EnvironmentValidator",
    "normalize_architecture",
    # Processes
    "ProcessProbe",
    "probe_process",
    "process_probe_supported",
]
