"""
Collaborators of the build lifecycle on the engine side.

- ``generator``: the image generator boundary and factory loading
- ``classpath``: classpath verification and the image class loader
- ``manifest``: the bundled generator that writes an image manifest
"""

from .classpath import (
    ImageClassLoader,
    install_image_class_loader,
    verify_classpath,
)
from .generator import (
    IDENTITY_SUBSTITUTION,
    GeneratorFactory,
    ImageGenerator,
    SubstitutionProcessor,
    load_generator_factory,
)
from .manifest import ManifestImageGenerator

__all__ = [
    "ImageClassLoader",
    "install_image_class_loader",
    "verify_classpath",
    "IDENTITY_SUBSTITUTION",
    "GeneratorFactory",
    "ImageGenerator",
    "SubstitutionProcessor",
    "load_generator_factory",
    "ManifestImageGenerator",
]
