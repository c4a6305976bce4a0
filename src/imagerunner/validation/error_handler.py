"""
Classification and user-facing reporting of build failures.

Any exception reaching the build boundary is first mapped into an
``ErrorRecord`` by ``classify`` and then rendered by ``ErrorReporter``:

- ``Info: <msg>`` lines go to standard output
- ``Error: <msg>`` and ``Warning: <msg>`` lines go to standard error
- classified errors print a stack trace only when stack trace reporting is
  enabled, otherwise a one-line hint naming the option that enables it
- unclassified errors always print a full trace prefixed ``Fatal error:``
"""

import logging
import sys
import threading
import traceback
from typing import Dict, Optional, TextIO

from ..models.results import EXIT_FAILURE, EXIT_SUCCESS, ErrorRecord
from .exceptions import ErrorKind, kind_of

logger = logging.getLogger(__name__)

STACK_TRACE_OPTION = "ReportExceptionStackTraces"
STACK_TRACE_HINT = f"Use -H:+{STACK_TRACE_OPTION} to print stacktrace of underlying exception"


def classify(error: BaseException) -> ErrorRecord:
    """
    Map any exception into the closed failure taxonomy.

    Dispatches on the ``kind`` tag of the failure. Aggregates are classified
    recursively so the reporter can tell user errors from crashes.
    """
    kind = kind_of(error)
    if kind is ErrorKind.AGGREGATE:
        children = tuple(classify(child) for child in getattr(error, "failures", ()))
        return ErrorRecord(kind, tuple(getattr(error, "messages", ())), cause=error, children=children)
    if kind is ErrorKind.INTERRUPTION:
        return ErrorRecord(kind, (), cause=error, reason=getattr(error, "reason", None))
    if kind is ErrorKind.FATAL_UNEXPECTED:
        return ErrorRecord(kind, (str(error),), cause=error)
    messages = tuple(getattr(error, "messages", ())) or (str(error),)
    return ErrorRecord(kind, messages, cause=error)


class ErrorReporter:
    """
    Renders classified failures and informational messages.

    Streams default to the process' standard output and error at call time,
    so output captured by test harnesses is honoured.
    """

    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        self._out = out
        self._err = err
        self._lock = threading.Lock()
        self.error_counts: Dict[ErrorKind, int] = {}

    @property
    def out(self) -> TextIO:
        return self._out or sys.stdout

    @property
    def err(self) -> TextIO:
        return self._err or sys.stderr

    def info(self, message: str) -> None:
        print(f"Info: {message}", file=self.out)

    def warning(self, message: str) -> None:
        print(f"Warning: {message}", file=self.err)

    def error(self, message: str) -> None:
        print(f"Error: {message}", file=self.err)

    def flush(self) -> None:
        for stream in (self.out, self.err):
            try:
                stream.flush()
            except (OSError, ValueError):
                # Closed or broken stream, nothing left to flush
                pass

    def report(self, record: ErrorRecord, stack_traces: bool = False) -> int:
        """
        Render one classified failure.

        Args:
            record: The classified failure
            stack_traces: Whether classified errors print their stack trace

        Returns:
            Exit status for the failure: 0 for an interruption, 1 otherwise
        """
        self._count(record.kind)

        if record.kind is ErrorKind.INTERRUPTION:
            if record.reason:
                self.info(record.reason)
            return EXIT_SUCCESS

        if record.kind is ErrorKind.AGGREGATE:
            self._report_aggregate(record, stack_traces)
        elif record.classified:
            self._report_user_error(record, stack_traces)
            self._print_hint(stack_traces)
        else:
            self._report_fatal(record)
        return EXIT_FAILURE

    def _report_aggregate(self, record: ErrorRecord, stack_traces: bool) -> None:
        classified = [child for child in record.children if child.classified]
        if classified:
            for child in classified:
                self._report_user_error(child, stack_traces)
            self._print_hint(stack_traces)
            return

        if not record.children:
            self._report_fatal(record)
            return

        if len(record.children) > 1:
            print(f"{len(record.children)} fatal errors detected:", file=self.err)
        for child in record.children:
            self._report_fatal(child)

    def _report_user_error(self, record: ErrorRecord, stack_traces: bool) -> None:
        for message in record.messages:
            self.error(message)
        if stack_traces and record.cause is not None:
            self._print_trace(record.cause)

    def _print_hint(self, stack_traces: bool) -> None:
        if not stack_traces:
            self.error(STACK_TRACE_HINT)

    def _report_fatal(self, record: ErrorRecord) -> None:
        logger.debug(f"Reporting fatal error: {record.messages}")
        print("Fatal error: ", end="", file=self.err)
        if record.cause is not None:
            self._print_trace(record.cause)
        else:
            print("\n".join(record.messages), file=self.err)

    def _print_trace(self, error: BaseException) -> None:
        traceback.print_exception(type(error), error, error.__traceback__, file=self.err)

    def _count(self, kind: ErrorKind) -> None:
        with self._lock:
            self.error_counts[kind] = self.error_counts.get(kind, 0) + 1
