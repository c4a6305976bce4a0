"""
Boundary of the analysis and compilation engine.

The build lifecycle makes exactly one synchronous ``run`` call into an image
generator and may forward a cancellation request to it from another thread
through ``interrupt_build``. The generator reports cooperative cancellation
by raising ``InterruptionSignal``.
"""

import importlib
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Sequence

from ..executor import ManagedThreadPoolExecutor
from ..models.entry_points import CEntryPointData
from ..models.runtime import BuildOptions, ImageKind
from ..nativeimage import JavaMainSupport
from ..validation import ConfigurationError


class SubstitutionProcessor:
    """Replaces analysed types and methods; the identity keeps everything."""

    def lookup(self, element: Any) -> Any:
        return element


IDENTITY_SUBSTITUTION = SubstitutionProcessor()


class ImageGenerator(Protocol):
    """Performs the analysis and compilation of one image."""

    def run(
        self,
        entry_points: Mapping[Callable, CEntryPointData],
        main_entry_point: Optional[Callable],
        main_support: Optional[JavaMainSupport],
        image_name: str,
        image_kind: ImageKind,
        substitution: SubstitutionProcessor,
        analysis_executor: ManagedThreadPoolExecutor,
        compilation_executor: ManagedThreadPoolExecutor,
        runtime_option_names: Sequence[str],
    ) -> None:
        ...

    def interrupt_build(self) -> None:
        ...


# Creates the generator of one build from its class loader and options.
GeneratorFactory = Callable[[Any, BuildOptions], ImageGenerator]


def load_generator_factory(path: str) -> GeneratorFactory:
    """
    Import a generator factory from a ``module:attribute`` path.

    Raises:
        ConfigurationError: If the module or attribute cannot be imported
    """
    module_name, _, attribute = path.partition(":")
    try:
        target: Any = importlib.import_module(module_name)
        for part in attribute.split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Image generator '{path}' cannot be loaded: {e}", cause=e)
    if not callable(target):
        raise ConfigurationError(f"Image generator '{path}' is not callable")
    return target


def describe_entry_points(entry_points: Mapping[Callable, CEntryPointData]) -> Dict[str, str]:
    """Map exported symbol names to the qualified names of their methods."""
    return {data.symbol_name: data.qualified_name for data in entry_points.values()}
