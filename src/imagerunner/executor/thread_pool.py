"""
Bounded worker pools for the concurrent build phases.

The analysis and compilation phases each get their own pool so their
concurrency limits are independent. Pools are owned by one build and
support an immediate shutdown that abandons queued work, used when a build
is interrupted.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set

from ..validation import handle_error, ErrorSeverity

logger = logging.getLogger(__name__)


@dataclass
class ThreadPoolConfig:
    """Configuration of one phase worker pool."""

    max_workers: int = 4
    thread_name_prefix: str = "BuildWorker"


class ManagedThreadPoolExecutor:
    """
    ThreadPoolExecutor with task accounting and immediate shutdown.

    This class provides:
    - Task statistics (submitted, completed, failed, cancelled)
    - Tracking of futures that have not finished yet
    - Graceful ``shutdown`` and immediate ``shutdown_now``
    """

    def __init__(self, config: ThreadPoolConfig):
        """
        Initialize the managed thread pool executor.

        Args:
            config: Thread pool configuration
        """
        self.config = config
        self.executor: Optional[ThreadPoolExecutor] = None
        self.active_futures: Set[Future] = set()
        self.is_shutdown = False
        self._lock = threading.Lock()

        self.stats = {
            "tasks_submitted": 0,
            "tasks_completed": 0,
            "tasks_failed": 0,
            "tasks_cancelled": 0,
        }

    @property
    def max_workers(self) -> int:
        return self.config.max_workers

    def start(self) -> None:
        """
        Start the thread pool executor.

        Raises:
            RuntimeError: If already started or configuration is invalid
        """
        if self.executor is not None:
            raise RuntimeError("Thread pool already started")
        if self.config.max_workers < 1:
            raise RuntimeError(
                f"Thread pool needs at least one worker, got {self.config.max_workers}"
            )

        self.executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix=self.config.thread_name_prefix,
        )
        self.is_shutdown = False
        logger.info(
            f"Started thread pool '{self.config.thread_name_prefix}' with {self.config.max_workers} workers"
        )

    def submit(self, fn: Callable, *args, **kwargs) -> Future:
        """
        Submit a task to the thread pool.

        Args:
            fn: Function to execute
            *args: Positional arguments
            **kwargs: Keyword arguments

        Returns:
            Future representing the task

        Raises:
            RuntimeError: If executor is not started or is shutdown
        """
        if self.executor is None:
            raise RuntimeError("Thread pool not started")
        if self.is_shutdown:
            raise RuntimeError("Thread pool is shutdown")

        with self._lock:
            future = self.executor.submit(fn, *args, **kwargs)
            self.stats["tasks_submitted"] += 1
            self.active_futures.add(future)

        future.add_done_callback(self._task_completed)
        return future

    def shutdown(self, wait: bool = True) -> None:
        """
        Gracefully shut down: queued tasks still run.

        Args:
            wait: Whether to wait for completion
        """
        if self.executor is None or self.is_shutdown:
            return

        try:
            self.is_shutdown = True
            self.executor.shutdown(wait=wait)
            if wait:
                logger.info("Thread pool shutdown completed")
            else:
                logger.info("Thread pool shutdown initiated")
        except Exception as e:
            handle_error(
                error=e,
                context="shutting down thread pool",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )

    def shutdown_now(self) -> int:
        """
        Immediately abandon all queued work.

        New submissions are refused, every future that has not started is
        cancelled and running tasks are not waited for.

        Returns:
            Number of queued tasks that were cancelled
        """
        with self._lock:
            self.is_shutdown = True
            pending = list(self.active_futures)

        cancelled = sum(1 for future in pending if future.cancel())

        if self.executor is not None:
            try:
                self.executor.shutdown(wait=False, cancel_futures=True)
            except Exception as e:
                handle_error(
                    error=e,
                    context="shutting down thread pool immediately",
                    severity=ErrorSeverity.WARNING,
                    reraise=False,
                    logger=logger,
                )

        logger.info(
            f"Thread pool '{self.config.thread_name_prefix}' shut down immediately, "
            f"{cancelled} queued tasks cancelled"
        )
        return cancelled

    def get_stats(self) -> Dict[str, Any]:
        """
        Get current thread pool statistics.

        Returns:
            Dictionary containing usage statistics
        """
        with self._lock:
            stats = self.stats.copy()
            stats["active_futures"] = len(self.active_futures)

        stats["is_shutdown"] = self.is_shutdown
        stats["max_workers"] = self.config.max_workers
        return stats

    def _task_completed(self, future: Future) -> None:
        """
        Callback executed when a task completes.

        Args:
            future: The completed future
        """
        with self._lock:
            self.active_futures.discard(future)

            if future.cancelled():
                self.stats["tasks_cancelled"] += 1
            elif future.exception() is not None:
                self.stats["tasks_failed"] += 1
            else:
                self.stats["tasks_completed"] += 1

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.shutdown(wait=True)


@dataclass
class ExecutorPair:
    """The analysis and compilation pools of one build."""

    analysis: ManagedThreadPoolExecutor
    compilation: ManagedThreadPoolExecutor

    def shutdown_now(self) -> None:
        """Immediately abandon the queued work of both pools."""
        self.analysis.shutdown_now()
        self.compilation.shutdown_now()


def create_phase_executors(analysis_threads: int, compilation_threads: int) -> ExecutorPair:
    """
    Create and start the two phase executors of a build.

    Args:
        analysis_threads: Maximum concurrency of the analysis phase
        compilation_threads: Maximum concurrency of the compilation phase

    Returns:
        Started ExecutorPair
    """
    analysis = ManagedThreadPoolExecutor(
        ThreadPoolConfig(max_workers=analysis_threads, thread_name_prefix="AnalysisWorker")
    )
    compilation = ManagedThreadPoolExecutor(
        ThreadPoolConfig(max_workers=compilation_threads, thread_name_prefix="CompilationWorker")
    )
    analysis.start()
    try:
        compilation.start()
    except Exception:
        analysis.shutdown_now()
        raise
    return ExecutorPair(analysis=analysis, compilation=compilation)
