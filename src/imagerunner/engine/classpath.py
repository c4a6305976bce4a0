"""
Image classpath handling.

``verify_classpath`` turns the raw ``-imagecp`` entries into absolute
locators; ``ImageClassLoader`` makes them importable and loads classes by
fully qualified name.
"""

import importlib
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Tuple
from urllib.parse import unquote, urlparse

from ..validation import ConfigurationError

logger = logging.getLogger(__name__)

CLASSPATH_MARKER = "-imagecp"
ARCHIVE_SUFFIXES = (".zip", ".whl", ".egg")


def _invalid_entry(entry: str) -> ConfigurationError:
    return ConfigurationError(
        f"Invalid classpath element '{entry}'. Make sure that all paths provided "
        f"with '{CLASSPATH_MARKER}' are correct."
    )


def to_classpath_entries(entry: str) -> List[Path]:
    """
    Expand one classpath entry.

    ``dir/*`` stands for every archive and sub-directory of ``dir``; any other
    entry is taken as a single path.
    """
    if "\0" in entry:
        raise _invalid_entry(entry)
    path = Path(entry)
    if path.name != "*":
        return [path]
    directory = path.parent
    if not directory.is_dir():
        return []
    return sorted(
        child for child in directory.iterdir()
        if child.is_dir() or child.suffix.lower() in ARCHIVE_SUFFIXES
    )


def verify_classpath(classpath: Iterable[str]) -> Tuple[str, ...]:
    """
    Verify classpath entries and convert them to absolute ``file://`` locators.

    Duplicates are removed, the first occurrence keeps its position.

    Raises:
        ConfigurationError: For the first malformed entry
    """
    locators: List[str] = []
    for entry in dict.fromkeys(classpath):
        for path in to_classpath_entries(entry):
            try:
                locator = path.absolute().as_uri()
            except (ValueError, OSError):
                raise _invalid_entry(entry)
            if locator not in locators:
                locators.append(locator)
    return tuple(locators)


def _locator_path(locator: str) -> str:
    # file:// locators produced by verify_classpath
    parsed = urlparse(locator)
    path = unquote(parsed.path)
    if sys.platform == "win32" and path.startswith("/"):
        path = path[1:]
    return path


class ImageClassLoader:
    """
    Loads application classes from the image classpath.

    ``install`` puts the classpath in front of the import path once per
    process, in classpath order.
    """

    def __init__(self, locators: Tuple[str, ...]):
        self.locators = locators
        self.search_path = [_locator_path(locator) for locator in locators]
        self.installed = False

    def install(self) -> "ImageClassLoader":
        for entry in reversed(self.search_path):
            if entry not in sys.path:
                sys.path.insert(0, entry)
        importlib.invalidate_caches()
        self.installed = True
        logger.debug(f"Installed image classpath: {self.search_path}")
        return self

    def load_class(self, qualified_name: str) -> type:
        """
        Load a class by its fully qualified name (``package.module.Class``).

        Nested classes are supported (``package.module.Outer.Inner``).

        Raises:
            ConfigurationError: If no class of that name can be found
        """
        not_found = ConfigurationError(f"Main entry point class '{qualified_name}' not found.")
        parts = qualified_name.split(".")
        for split in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:split])
            try:
                target = importlib.import_module(module_name)
            except ModuleNotFoundError as e:
                if e.name and (module_name == e.name or module_name.startswith(e.name + ".")):
                    continue
                raise
            for attribute in parts[split:]:
                target = getattr(target, attribute, None)
                if target is None:
                    raise not_found
            if not isinstance(target, type):
                raise not_found
            return target
        raise not_found


def install_image_class_loader(classpath: Iterable[str]) -> ImageClassLoader:
    """Verify the classpath and install a class loader for it."""
    return ImageClassLoader(verify_classpath(classpath)).install()
