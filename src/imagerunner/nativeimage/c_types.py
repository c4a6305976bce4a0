"""Word-sized C types visible to entry point signatures."""

from typing import Iterable, List, Tuple


class CCharPointerPointer:
    """
    Raw argument vector (``char **argv``) handed to a native entry point.

    The vector holds NUL-free byte strings; ``argv[0]`` is the program name.
    """

    def __init__(self, values: Iterable[bytes]):
        self._values: Tuple[bytes, ...] = tuple(values)

    @classmethod
    def from_strings(cls, values: Iterable[str], encoding: str = "utf-8") -> "CCharPointerPointer":
        return cls(value.encode(encoding) for value in values)

    def read(self, index: int) -> bytes:
        return self._values[index]

    def to_strings(self, count: int, encoding: str = "utf-8") -> List[str]:
        """Decode the first ``count`` entries of the vector."""
        return [value.decode(encoding) for value in self._values[:count]]

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"CCharPointerPointer({list(self._values)!r})"
