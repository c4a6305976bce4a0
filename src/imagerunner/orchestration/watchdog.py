"""
Liveness watchdog for the process that requested the build.

With ``-watchpid <pid>`` the builder must not outlive the process that
started it. ``ProcessWatchdog`` polls the target process on a daemon thread
and reports a lost target through a callback; it never terminates anything
itself. ``ProcessSupervisor`` is the single place that decides to end the
builder process.
"""

import logging
import os
import threading
from typing import Callable, Optional

from ..models.config import WatchdogSettings
from ..models.results import EXIT_FAILURE
from ..system import ProcessProbe, probe_process, process_probe_supported
from ..validation import ConfigurationError
from ..validation.error_handler import ErrorReporter
from .arguments import WATCH_PID_MARKER
from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)


class WatchdogUnavailableError(ConfigurationError):
    """The host cannot inspect other processes, so ``-watchpid`` cannot be honoured."""

    def __init__(self):
        super().__init__(f"{WATCH_PID_MARKER} <pid> requires a system with process information support")


class ProcessWatchdog:
    """
    Periodically checks that a process is alive and still the expected program.

    The first probe runs as soon as the watchdog starts. The target counts
    as lost when it no longer exists, cannot be read, is a zombie or its
    process name no longer contains ``identity``. ``on_target_lost`` is then
    called exactly once with a description and the watchdog stops.

    Args:
        pid: Process id to watch
        identity: Substring expected in the process name
        on_target_lost: Callback receiving the reason the target was lost
        interval: Seconds between probes
        probe: Probe function, ``probe_process`` by default
    """

    def __init__(
        self,
        pid: int,
        identity: str,
        on_target_lost: Callable[[str], None],
        interval: float = 1.0,
        probe: Callable[[int], ProcessProbe] = probe_process,
    ):
        self.pid = pid
        self.identity = identity
        self.on_target_lost = on_target_lost
        self.interval = interval
        self.probe = probe
        self.lost_reason: Optional[str] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "ProcessWatchdog":
        if self._thread is not None:
            raise RuntimeError("Watchdog already started")
        self._thread = threading.Thread(
            target=self._run,
            name=f"Watchdog-{self.pid}",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Watching process {self.pid} every {self.interval}s")
        return self

    def cancel(self) -> None:
        """Stop watching. Safe to call repeatedly and from the watchdog thread."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=TimeoutConstants.WATCHDOG_JOIN_TIMEOUT)
        logger.debug(f"Watchdog of process {self.pid} cancelled")

    def check(self) -> Optional[str]:
        """
        Probe the target once.

        Returns:
            The reason the target is considered lost, or None if it is fine
        """
        probe = self.probe(self.pid)
        if not probe.alive:
            return f"Watched process {self.pid} is gone ({probe.error or 'not running'})"
        if self.identity not in (probe.name or ""):
            return f"Watched process {self.pid} is no longer {self.identity} (found '{probe.name}')"
        return None

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                reason = self.check()
            except Exception as e:
                logger.debug(f"Reading process {self.pid} failed", exc_info=True)
                reason = f"Watched process {self.pid} cannot be read ({type(e).__name__}: {e})"
            if reason is not None:
                if self._stop_event.is_set():
                    return
                self.lost_reason = reason
                self._stop_event.set()
                logger.warning(reason)
                self.on_target_lost(reason)
                return
            self._stop_event.wait(self.interval)

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cancel()


class ProcessSupervisor:
    """
    Terminates the builder when the watched process is lost.

    Args:
        reporter: Reporter used for the final message and stream flushing
        exit_func: Immediate process exit, ``os._exit`` by default
    """

    def __init__(self, reporter: ErrorReporter, exit_func: Callable[[int], None] = os._exit):
        self.reporter = reporter
        self.exit_func = exit_func

    def target_lost(self, reason: str) -> None:
        self.reporter.error(reason)
        self.reporter.flush()
        self.exit_func(EXIT_FAILURE)


def start_watchdog(pid: int, settings: WatchdogSettings,
                   on_target_lost: Callable[[str], None]) -> ProcessWatchdog:
    """
    Start watching ``pid`` with the configured interval and identity.

    Raises:
        WatchdogUnavailableError: If process information is not available on this host
    """
    if not process_probe_supported():
        raise WatchdogUnavailableError()
    return ProcessWatchdog(
        pid,
        identity=settings.identity,
        on_target_lost=on_target_lost,
        interval=settings.interval_seconds,
    ).start()
