"""
Image generator that writes an image manifest.

``ManifestImageGenerator`` drives both build phases through the executors
it is given: the analysis phase inspects every entry point method, the
compilation phase turns each analysed method into a manifest entry. The
result is written as ``<name>.manifest.json`` instead of a native binary.
Failures of individual tasks are collected and raised together as one
``AggregateFailure`` once the phase has finished.
"""

import inspect
import json
import logging
import threading
from concurrent.futures import CancelledError
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..executor import ManagedThreadPoolExecutor
from ..models.entry_points import CEntryPointData
from ..models.runtime import BuildOptions, ImageKind
from ..nativeimage import JavaMainSupport
from ..validation import AggregateFailure, AnalysisError, InterruptionSignal
from .generator import SubstitutionProcessor, describe_entry_points

logger = logging.getLogger(__name__)

INTERRUPTED_REASON = "Image build interrupted"
EXIT_AFTER_ANALYSIS_REASON = "Exiting after analysis as requested by -H:+ExitAfterAnalysis"


class ManifestImageGenerator:
    """
    Generator of one image manifest.

    Args:
        class_loader: Class loader of the image classpath
        options: Resolved options of the build
    """

    def __init__(self, class_loader: Any, options: BuildOptions):
        self.class_loader = class_loader
        self.options = options
        self.manifest_path: Optional[Path] = None
        self._interrupted = threading.Event()

    def interrupt_build(self) -> None:
        """Request cooperative cancellation; observed between and inside phases."""
        logger.info("Interruption of the image build requested")
        self._interrupted.set()

    @property
    def interrupted(self) -> bool:
        return self._interrupted.is_set()

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
        methods: List[Callable] = [substitution.lookup(method) for method in entry_points]
        if main_support is not None:
            methods.append(substitution.lookup(main_support.java_main_method))

        try:
            logger.info(f"Analysing {len(methods)} methods for image '{image_name}'")
            analysed = self._run_phase(analysis_executor, self._analyse, methods)

            if self.options.exit_after_analysis:
                raise InterruptionSignal(EXIT_AFTER_ANALYSIS_REASON)

            logger.info(f"Compiling {len(analysed)} methods for image '{image_name}'")
            compiled = self._run_phase(compilation_executor, self._compile, analysed)
        finally:
            # An interrupted build has its executors shut down by the caller
            if not self.interrupted:
                analysis_executor.shutdown(wait=True)
                compilation_executor.shutdown(wait=True)

        manifest = {
            "name": image_name,
            "kind": str(image_kind),
            "main_entry_point": _qualified_name(main_entry_point) if main_entry_point else None,
            "entry_points": describe_entry_points(entry_points),
            "methods": compiled,
            "runtime_options": list(runtime_option_names),
            "classpath": list(getattr(self.class_loader, "locators", ())),
        }
        self.manifest_path = self._write_manifest(image_name, manifest)

    def _run_phase(self, executor: ManagedThreadPoolExecutor, task: Callable, items: Sequence[Any]) -> List[Any]:
        if self.interrupted:
            raise InterruptionSignal(INTERRUPTED_REASON)

        futures = [executor.submit(task, item) for item in items]
        results: List[Any] = []
        failures: List[BaseException] = []
        for future in futures:
            try:
                results.append(future.result())
            except CancelledError:
                continue
            except Exception as e:
                failures.append(e)

        if self.interrupted:
            raise InterruptionSignal(INTERRUPTED_REASON)
        if failures:
            raise AggregateFailure(failures)
        return results

    def _analyse(self, method: Callable) -> Dict[str, Any]:
        if self.interrupted:
            return {}
        target = inspect.unwrap(method)
        module = inspect.getmodule(target)
        if module is None:
            raise AnalysisError(f"Cannot determine the module of method '{_qualified_name(target)}'")
        try:
            source_file = inspect.getsourcefile(target)
        except TypeError as e:
            raise AnalysisError(f"Method '{_qualified_name(target)}' has no Python source", cause=e)
        return {
            "method": _qualified_name(target),
            "module": module.__name__,
            "source": source_file,
            "callables": sorted(
                name for name, value in vars(module).items()
                if inspect.isfunction(value) or inspect.isclass(value)
            ),
        }

    def _compile(self, analysed: Dict[str, Any]) -> Dict[str, Any]:
        if self.interrupted or not analysed:
            return {}
        return {
            "method": analysed["method"],
            "module": analysed["module"],
            "source": analysed["source"],
            "reachable": len(analysed["callables"]),
        }

    def _write_manifest(self, image_name: str, manifest: Dict[str, Any]) -> Path:
        output_dir = Path(self.options.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / f"{image_name}.manifest.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=2)
        logger.info(f"Image manifest written to {path}")
        return path


def _qualified_name(method: Callable) -> str:
    return f"{getattr(method, '__module__', '?')}.{getattr(method, '__qualname__', repr(method))}"
