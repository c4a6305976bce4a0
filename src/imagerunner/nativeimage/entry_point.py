"""The exported entry point marker."""

from dataclasses import dataclass
from typing import Any, Callable, Optional

C_ENTRY_POINT_ATTRIBUTE = "__c_entry_point__"


@dataclass(frozen=True)
class CEntryPointOptions:
    """Options recorded by ``c_entry_point`` on the decorated function."""

    # Exported symbol name, the Python name of the function when None.
    name: Optional[str] = None


def c_entry_point(func: Optional[Callable] = None, *, name: Optional[str] = None):
    """
    Mark a function as an exported C entry point of the image.

    Usable both bare (``@c_entry_point``) and with options
    (``@c_entry_point(name="main")``). The function itself is returned
    unchanged apart from the marker attribute.
    """
    def mark(target: Callable) -> Callable:
        setattr(target, C_ENTRY_POINT_ATTRIBUTE, CEntryPointOptions(name=name))
        return target

    if func is not None:
        return mark(func)
    return mark


def get_c_entry_point(func: Any) -> Optional[CEntryPointOptions]:
    """Return the entry point marker of ``func`` or None if it is not exported."""
    marker = getattr(func, C_ENTRY_POINT_ATTRIBUTE, None)
    if isinstance(marker, CEntryPointOptions):
        return marker
    return None
