"""
Phase executors for the image build.

This module provides the bounded worker pools of the analysis and
compilation phases.
"""

from .thread_pool import (
    ExecutorPair,
    ManagedThreadPoolExecutor,
    ThreadPoolConfig,
    create_phase_executors,
)

__all__ = [
    "ExecutorPair",
    "ManagedThreadPoolExecutor",
    "ThreadPoolConfig",
    "create_phase_executors",
]
