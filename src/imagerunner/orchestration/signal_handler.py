"""
Signal handling for a running build.

SIGINT and SIGTERM are turned into a cooperative interruption request on
the orchestrator the handler is bound to. A second signal while an
interruption is already pending restores the original handlers and is
re-delivered to them, so a stuck build can still be killed.
"""

import logging
import signal
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .orchestrator import BuildOrchestrator

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalHandler:
    """
    Manages signal registration and cleanup for one BuildOrchestrator.

    Handlers can only be installed from the main thread; elsewhere the
    failure is logged and the build runs without them.
    """

    def __init__(self, orchestrator: "BuildOrchestrator"):
        self.orchestrator = orchestrator
        self.interrupt_requested = False
        self._original_handlers: Dict[int, Any] = {}
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Install the interruption handlers, remembering the original ones."""
        try:
            for signum in HANDLED_SIGNALS:
                self._original_handlers[signum] = signal.signal(signum, self._handle_signal)
            self._signal_handlers_set = True
            logger.debug("Signal handlers set up for build orchestrator")
        except (ValueError, OSError) as e:
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            for signum, handler in self._original_handlers.items():
                if handler is not None:
                    signal.signal(signum, handler)
            logger.debug("Signal handlers restored")
        except (ValueError, OSError) as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False
            self._original_handlers.clear()

    def _handle_signal(self, signum: int, frame: Any) -> None:
        if self.interrupt_requested:
            logger.warning(f"Signal {signum} received again, restoring default handling")
            self.cleanup_signal_handlers()
            signal.raise_signal(signum)
            return

        self.interrupt_requested = True
        logger.warning(f"Signal {signum} received. Requesting interruption of the image build.")
        self.orchestrator.interrupt_build()

    def __enter__(self):
        self.setup_signal_handlers()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup_signal_handlers()
