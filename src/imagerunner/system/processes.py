"""
Process liveness probing.

The watchdog needs exactly one capability from the host: read the name of
an external process by pid. psutil provides it on the platforms listed in
``process_probe_supported``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import psutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessProbe:
    """Result of one liveness read."""

    pid: int
    alive: bool
    name: Optional[str] = None
    error: Optional[str] = None


def process_probe_supported() -> bool:
    """Check whether the host lets psutil read other processes' names."""
    return bool(psutil.LINUX or psutil.MACOS or psutil.WINDOWS or psutil.FREEBSD)


def probe_process(pid: int) -> ProcessProbe:
    """
    Read the liveness indicator of a process.

    A process that no longer exists, is a zombie or cannot be read is
    reported as not alive, with the reason in ``error``.
    """
    try:
        process = psutil.Process(pid)
        if process.status() in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD):
            return ProcessProbe(pid, alive=False, error="process is a zombie")
        return ProcessProbe(pid, alive=True, name=process.name())
    except psutil.NoSuchProcess:
        return ProcessProbe(pid, alive=False, error="no such process")
    except psutil.AccessDenied:
        return ProcessProbe(pid, alive=False, error="access denied")
    except (psutil.Error, OSError) as e:
        logger.debug(f"Failed to probe process {pid}: {e}")
        return ProcessProbe(pid, alive=False, error=str(e))
