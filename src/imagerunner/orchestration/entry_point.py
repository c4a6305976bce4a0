"""
Resolution of the main entry point of an image.

The method named by ``-H:Method`` is looked up on the class named by
``-H:Class`` and its annotated signature is compared against two fixed
shapes:

- the native shape ``(argc: int, argv: CCharPointerPointer) -> int``,
  exported directly and required to carry the ``c_entry_point`` marker
- the Java shape ``(args: list[str]) -> None``, exported through
  ``JavaMainWrapper.run``

Only methods declared on the class itself are considered; inherited
methods are not entry points.
"""

import inspect
import logging
import typing
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..models.entry_points import (
    JAVA_MAIN_SIGNATURE,
    NATIVE_MAIN_SIGNATURE,
    CEntryPointData,
    EntryPointDescriptor,
    EntryPointShape,
    MethodSignature,
)
from ..models.runtime import ImageKind
from ..nativeimage import JavaMainSupport, JavaMainWrapper, get_c_entry_point
from ..validation import ConfigurationError

logger = logging.getLogger(__name__)

PRIVATE_ATTRIBUTE = "__private__"

NATIVE_SIGNATURE_TEXT = "int main(int argc, CCharPointerPointer argv)"

# Stands in for a parameter or return value without annotation.
_UNANNOTATED = object()

EntryPointMap = Dict[Callable, CEntryPointData]


def _normalize_type(tp: Any) -> Any:
    if tp is inspect.Parameter.empty:
        return _UNANNOTATED
    if tp is None or tp is type(None):
        return None
    if typing.get_origin(tp) is list and typing.get_args(tp) == (str,):
        return List[str]
    return tp


def inspect_signature(method: Callable) -> Optional[MethodSignature]:
    """
    Read the annotated signature of a method.

    Returns:
        The signature, or None if the method takes keyword-only or variadic
        parameters and therefore matches no entry point shape

    Raises:
        ConfigurationError: If the annotations cannot be resolved
    """
    target = getattr(method, "__func__", method)
    try:
        hints = typing.get_type_hints(target)
    except Exception as e:
        raise ConfigurationError(
            f"Cannot resolve the annotations of method '{getattr(target, '__qualname__', target)}': {e}",
            cause=e,
        )

    parameters = list(inspect.signature(method).parameters.values())
    if any(p.kind not in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) for p in parameters):
        return None

    return MethodSignature(
        parameter_types=tuple(_normalize_type(hints.get(p.name, p.annotation)) for p in parameters),
        return_type=_normalize_type(hints.get("return", inspect.Parameter.empty)),
    )


def is_public(name: str, method: Callable) -> bool:
    """A method is public unless its name starts with an underscore or it is marked private."""
    target = getattr(method, "__func__", method)
    return not name.startswith("_") and not getattr(target, PRIVATE_ATTRIBUTE, False)


def _declared_method(cls: type, name: str) -> Optional[Callable]:
    member = cls.__dict__.get(name)
    if isinstance(member, (staticmethod, classmethod)) or inspect.isfunction(member):
        # Attribute access unwraps static methods and binds class methods
        return getattr(cls, name)
    return None


def _class_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


class EntryPointResolver:
    """
    Resolves the main entry point of an executable image.

    Resolution is a pure function of the class loader and the names it is
    given: resolving twice yields equal descriptors.

    Args:
        class_loader: Loader providing ``load_class(qualified_name)``
    """

    def __init__(self, class_loader: Any):
        self.class_loader = class_loader

    def resolve(self, class_name: str, method_name: str,
                image_kind: ImageKind = ImageKind.EXECUTABLE) -> Tuple[EntryPointDescriptor, EntryPointMap]:
        """
        Resolve the entry point and the entry point map for the generator.

        Args:
            class_name: Fully qualified name of the main class
            method_name: Name of the main method
            image_kind: Kind of image being built, used in messages

        Returns:
            The resolved descriptor and ``{entry method: CEntryPointData}``

        Raises:
            ConfigurationError: If no valid entry point can be resolved
        """
        cls = self.class_loader.load_class(class_name)
        if not method_name:
            raise ConfigurationError(
                f"Must specify main entry point method when building {image_kind} native image. "
                f"Use '-H:Method=<method-name>'."
            )

        descriptor = self._select_shape(cls, method_name)
        marker = self._verify(descriptor)

        entry_points: EntryPointMap = {
            descriptor.entry_method: CEntryPointData.create(descriptor.entry_method, symbol_name=marker.name),
        }
        logger.debug(f"Resolved entry point {descriptor.qualified_name} as {descriptor.shape.value}")
        return descriptor, entry_points

    def _select_shape(self, cls: type, method_name: str) -> EntryPointDescriptor:
        method = _declared_method(cls, method_name)
        signature = inspect_signature(method) if method is not None else None
        qualified = f"{_class_name(cls)}.{method_name}"

        # Matched on parameters only; _verify rejects a wrong return type
        if signature is not None and signature.parameter_types == NATIVE_MAIN_SIGNATURE.parameter_types:
            if get_c_entry_point(method) is None:
                raise _missing_marker()
            return EntryPointDescriptor(
                owning_class=cls,
                method_name=method_name,
                shape=EntryPointShape.NATIVE,
                entry_method=method,
            )

        if signature is not None and signature.parameter_types == JAVA_MAIN_SIGNATURE.parameter_types:
            if not is_public(method_name, method):
                raise ConfigurationError(
                    f"Method '{qualified}(list[str])' is not accessible. Please make it public."
                )
            if signature.return_type is not None:
                raise ConfigurationError(
                    f"Java main method must have return type None. "
                    f"Change the return type of method '{qualified}(list[str])'."
                )
            return EntryPointDescriptor(
                owning_class=cls,
                method_name=method_name,
                shape=EntryPointShape.WRAPPED_JAVA,
                entry_method=JavaMainWrapper.run,
                main_support=JavaMainSupport(method),
            )

        raise ConfigurationError(
            f"Method '{qualified}' is declared as the main entry point but it can not be found. "
            f"Make sure that class '{_class_name(cls)}' is on the classpath and that method "
            f"'{method_name}(list[str])' exists in that class."
        )

    def _verify(self, descriptor: EntryPointDescriptor):
        marker = get_c_entry_point(descriptor.entry_method)
        if marker is None:
            raise _missing_marker()
        if inspect_signature(descriptor.entry_method) != NATIVE_MAIN_SIGNATURE:
            raise ConfigurationError(f"Main entry point must have signature '{NATIVE_SIGNATURE_TEXT}'.")
        if descriptor.shape is EntryPointShape.WRAPPED_JAVA:
            java_main = descriptor.main_support.java_main_method if descriptor.main_support else None
            if java_main is None or inspect_signature(java_main) != JAVA_MAIN_SIGNATURE:
                raise ConfigurationError(
                    f"Java main method '{descriptor.qualified_name}' must have signature "
                    f"'{JAVA_MAIN_SIGNATURE.describe(descriptor.method_name)}'."
                )
        return marker


def _missing_marker() -> ConfigurationError:
    return ConfigurationError("Entry point must have the '@CEntryPoint' annotation")
