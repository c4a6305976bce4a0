"""
Entry point data models.

An entry point is resolved into one of two closed shapes. Shapes are checked
by comparing the statically inspected signature of a method against the
fixed signature descriptors defined here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from ..nativeimage import CCharPointerPointer, JavaMainSupport


class EntryPointShape(Enum):
    """The two accepted entry point shapes."""

    # (int argc, CCharPointerPointer argv) -> int, called directly.
    NATIVE = "native"
    # (list[str] args) -> None, called through JavaMainWrapper.run.
    WRAPPED_JAVA = "wrapped_java"


@dataclass(frozen=True)
class MethodSignature:
    """Parameter and return types of a method, as declared by its annotations."""

    parameter_types: Tuple[Any, ...]
    return_type: Any

    def describe(self, name: str) -> str:
        params = ", ".join(_type_name(t) for t in self.parameter_types)
        return f"{_type_name(self.return_type)} {name}({params})"


def _type_name(tp: Any) -> str:
    if tp is None or tp is type(None):
        return "None"
    return getattr(tp, "__name__", None) or repr(tp)


NATIVE_MAIN_SIGNATURE = MethodSignature((int, CCharPointerPointer), int)
JAVA_MAIN_SIGNATURE = MethodSignature((List[str],), None)


@dataclass(frozen=True)
class CEntryPointData:
    """Data the generator needs to export one entry point symbol."""

    symbol_name: str
    qualified_name: str

    @classmethod
    def create(cls, method: Callable, symbol_name: Optional[str] = None) -> "CEntryPointData":
        return cls(
            symbol_name=symbol_name or method.__name__,
            qualified_name=f"{method.__module__}.{method.__qualname__}",
        )


@dataclass(frozen=True)
class EntryPointDescriptor:
    """
    A resolved main entry point.

    ``entry_method`` is the function the image exports: the target method
    itself for the native shape, ``JavaMainWrapper.run`` for the wrapped
    shape, in which case ``main_support`` captures the original method.
    """

    owning_class: type
    method_name: str
    shape: EntryPointShape
    entry_method: Callable
    main_support: Optional[JavaMainSupport] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.owning_class.__module__}.{self.owning_class.__qualname__}.{self.method_name}"
