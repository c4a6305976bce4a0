"""
Adapter that exposes a Java-style ``main(args)`` method as a C entry point.

The image calls ``JavaMainWrapper.run(argc, argv)``; the wrapper decodes the
argument vector and invokes the captured main method with the arguments
following the program name.
"""

from dataclasses import dataclass
from typing import Callable, ClassVar, List, Optional

from .c_types import CCharPointerPointer
from .entry_point import c_entry_point


@dataclass(frozen=True)
class JavaMainSupport:
    """Captured reference to the original ``main(args)`` method."""

    java_main_method: Callable[[List[str]], None]

    def invoke(self, args: List[str]) -> None:
        self.java_main_method(args)


class JavaMainWrapper:
    """Fixed adapter entry point for wrapped Java-style main methods."""

    _support: ClassVar[Optional[JavaMainSupport]] = None

    @classmethod
    def install(cls, support: JavaMainSupport) -> None:
        """Register the main method the image runtime will dispatch to."""
        cls._support = support

    @staticmethod
    @c_entry_point(name="main")
    def run(argc: int, argv: CCharPointerPointer) -> int:
        support = JavaMainWrapper._support
        if support is None:
            raise RuntimeError("No Java main method installed in the image")
        args = argv.to_strings(argc)[1:]
        try:
            support.invoke(args)
        except SystemExit as e:
            code = e.code
            return code if isinstance(code, int) else 1
        return 0
