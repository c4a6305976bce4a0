"""
Unit tests for signal handling during a build.
"""

import signal
import threading
from unittest.mock import Mock, patch

import pytest

from imagerunner.orchestration.signal_handler import SignalHandler


@pytest.mark.unit
class TestSignalHandler:
    """Test cases for SignalHandler."""

    def test_install_and_restore(self):
        """Test that the original handlers are restored on exit."""
        original_sigint = signal.getsignal(signal.SIGINT)
        original_sigterm = signal.getsignal(signal.SIGTERM)

        with SignalHandler(Mock()) as handler:
            assert signal.getsignal(signal.SIGINT) == handler._handle_signal
            assert signal.getsignal(signal.SIGTERM) == handler._handle_signal

        assert signal.getsignal(signal.SIGINT) == original_sigint
        assert signal.getsignal(signal.SIGTERM) == original_sigterm

    def test_signal_requests_interruption(self):
        """Test that a signal is forwarded to the bound orchestrator."""
        orchestrator = Mock()
        handler = SignalHandler(orchestrator)

        handler._handle_signal(signal.SIGTERM, None)

        orchestrator.interrupt_build.assert_called_once_with()
        assert handler.interrupt_requested is True

    def test_second_signal_restores_default_handling(self):
        """Test that a repeated signal is re-raised with the original handlers."""
        orchestrator = Mock()
        handler = SignalHandler(orchestrator)
        handler.setup_signal_handlers()
        try:
            handler._handle_signal(signal.SIGINT, None)
            with patch("imagerunner.orchestration.signal_handler.signal.raise_signal") as raise_signal:
                handler._handle_signal(signal.SIGINT, None)

            raise_signal.assert_called_once_with(signal.SIGINT)
            orchestrator.interrupt_build.assert_called_once_with()
            assert signal.getsignal(signal.SIGINT) != handler._handle_signal
        finally:
            handler.cleanup_signal_handlers()

    def test_setup_outside_main_thread(self):
        """Test that setup from a worker thread is skipped without failing."""
        handler = SignalHandler(Mock())
        worker = threading.Thread(target=handler.setup_signal_handlers)

        worker.start()
        worker.join(timeout=5.0)

        assert handler._signal_handlers_set is False
        handler.cleanup_signal_handlers()
