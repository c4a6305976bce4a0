"""
Host environment checks performed before a build allocates anything.

Three preconditions are checked in order: the interpreter version (unless
the version check is explicitly disabled), the CPU architecture and the
operating system. An unsupported interpreter or operating system stops the
build. An unsupported architecture only produces a warning and the build
continues.
"""

import logging
import os
import platform
import sys
from typing import Optional, Tuple

from ..models.config import EnvironmentSettings

logger = logging.getLogger(__name__)

# platform.machine() spellings of the same architecture
_ARCHITECTURE_ALIASES = {
    "x86_64": "amd64",
    "x64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "x86",
    "i686": "x86",
}

_TRUTHY = ("1", "true", "yes", "on")


def normalize_architecture(machine: str) -> str:
    """Map a ``platform.machine()`` value to a canonical architecture name."""
    lowered = machine.lower()
    return _ARCHITECTURE_ALIASES.get(lowered, lowered)


def _system_display_name(system: str) -> str:
    return {"darwin": "Mac OS X"}.get(system.lower(), system)


class EnvironmentValidator:
    """
    Checks the host preconditions of a build.

    The probes default to the running interpreter and host; tests inject
    their own values.

    Args:
        settings: Allow-lists and version requirement from the configuration
        reporter: Sink for user-facing ``Error:``/``Warning:`` lines
        tool_name: Name of the tool used in messages
    """

    def __init__(
        self,
        settings: EnvironmentSettings,
        reporter,
        tool_name: str = "native-image",
        python_version: Optional[Tuple[int, ...]] = None,
        machine: Optional[str] = None,
        system: Optional[str] = None,
    ):
        self.settings = settings
        self.reporter = reporter
        self.tool_name = tool_name
        self.python_version = tuple(python_version or sys.version_info[:3])
        self.machine = machine if machine is not None else platform.machine()
        self.system = system if system is not None else platform.system()

    def version_check_ignored(self) -> bool:
        value = os.environ.get(self.settings.ignore_version_check_env, "")
        return value.strip().lower() in _TRUTHY

    def is_valid_python_version(self) -> bool:
        """Unless the check is disabled, require the configured interpreter version."""
        if self.version_check_ignored():
            return True
        return self.python_version[:2] >= tuple(self.settings.minimum_python)

    def is_valid_architecture(self) -> bool:
        return normalize_architecture(self.machine) in self.settings.supported_architectures

    def is_valid_operating_system(self) -> bool:
        return self.system.lower() in self.settings.supported_systems

    def validate(self) -> bool:
        """
        Run all checks.

        Returns:
            True if the build may proceed
        """
        if not self.is_valid_python_version():
            required = ".".join(str(part) for part in self.settings.minimum_python)
            detected = ".".join(str(part) for part in self.python_version)
            self.reporter.error(
                f"{self.tool_name} supports only Python {required} or later. "
                f"Detected Python version is: {detected}"
            )
            return False

        if not self.is_valid_architecture():
            supported = ", ".join(a.upper() for a in self.settings.supported_architectures)
            logger.warning(f"Unsupported architecture: {self.machine}")
            self.reporter.warning(
                f"{self.tool_name} runs only on architecture {supported}. "
                f"Detected architecture: {self.machine}"
            )

        if not self.is_valid_operating_system():
            self.reporter.error(
                f"{self.tool_name} runs on Linux, Mac OS X and Windows only. "
                f"Detected OS: {_system_display_name(self.system)}"
            )
            return False

        return True
