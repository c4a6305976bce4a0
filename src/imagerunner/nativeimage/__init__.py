"""
Native image API used by application code.

Application classes mark their C-level entry points with ``c_entry_point``
and take the raw argument vector as a ``CCharPointerPointer``. Java-style
``main(args)`` methods are invoked through the fixed ``JavaMainWrapper.run``
adapter.
"""

from .c_types import CCharPointerPointer
from .entry_point import CEntryPointOptions, c_entry_point, get_c_entry_point
from .main_wrapper import JavaMainSupport, JavaMainWrapper

__all__ = [
    "CCharPointerPointer",
    "CEntryPointOptions",
    "c_entry_point",
    "get_c_entry_point",
    "JavaMainSupport",
    "JavaMainWrapper",
]
