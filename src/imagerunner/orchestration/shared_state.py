"""
State shared across threads by the build orchestration.

Only two objects cross thread boundaries: the handle to the active image
generator, written by the driving thread and read by whoever requests an
interruption, and the build-scoped singleton registry.
"""

import threading
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ActiveHandle(Generic[T]):
    """
    Lock-guarded optional reference.

    Single writer (the driving thread), any number of readers.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._value: Optional[T] = None

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value

    def get(self) -> Optional[T]:
        with self._lock:
            return self._value

    def clear(self) -> None:
        with self._lock:
            self._value = None


class ImageSingletons:
    """
    Registry of objects that live for exactly one build.

    Keys are usually the type of the registered object. The orchestrator
    clears the registry on every terminal state.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[Any, Any] = {}

    def add(self, key: Any, value: Any) -> None:
        with self._lock:
            if key in self._entries:
                raise KeyError(f"Image singleton already registered: {key!r}")
            self._entries[key] = value

    def lookup(self, key: Any) -> Any:
        with self._lock:
            return self._entries[key]

    def contains(self, key: Any) -> bool:
        with self._lock:
            return key in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class TimeoutConstants:
    """Timeouts of the orchestration threads, in seconds."""

    WATCHDOG_JOIN_TIMEOUT = 2.0
