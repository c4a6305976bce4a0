"""
Phase timers printed by the image builder.

Each timer line has the form ``[<image>:<pid>] <phase>: <ms> ms, <GB> GB``
where the last field is the resident memory of the builder process.
"""

import os
import time
from typing import Optional, TextIO

import psutil

BYTES_PER_GB = 1024 ** 3


class BuildTimer:
    """
    Wall clock timer of one build phase.

    Usable as a context manager; repeated use accumulates the time.

    Args:
        name: Phase name, e.g. ``classlist`` or ``[total]``
        prefix: Image name shown in front of the process id
    """

    def __init__(self, name: str, prefix: Optional[str] = None):
        self.name = name
        self.prefix = prefix
        self.total_seconds = 0.0
        self._started_at: Optional[float] = None

    @property
    def total_ms(self) -> float:
        return self.total_seconds * 1000.0

    def start(self) -> None:
        self._started_at = time.monotonic()

    def stop(self) -> None:
        if self._started_at is None:
            return
        self.total_seconds += time.monotonic() - self._started_at
        self._started_at = None

    def format(self) -> str:
        pid = os.getpid()
        header = f"[{self.prefix}:{pid}]" if self.prefix else f"[{pid}]"
        return f"{header} {self.name:>12}: {self.total_ms:12,.2f} ms, {_resident_gb():5,.2f} GB"

    def print(self, out: TextIO) -> None:
        print(self.format(), file=out)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()


def _resident_gb() -> float:
    try:
        return psutil.Process().memory_info().rss / BYTES_PER_GB
    except psutil.Error:
        return 0.0
