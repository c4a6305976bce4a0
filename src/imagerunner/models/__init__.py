"""
Data models and structures for the image build.

Configuration Models:
- Application-wide tool settings loaded from ``config.toml``

Runtime Models:
- The invocation of one build and its parsed hosted options
- Image kinds

Entry Point Models:
- Method signatures, entry point shapes and resolved descriptors

Result Models:
- Lifecycle states, classified error records and the build result
"""

# Configuration models
from .config import (
    AppConfig,
    BuilderSettings,
    EnvironmentSettings,
    LoggingSettings,
    WatchdogSettings,
)

# Runtime models
from .runtime import BuildInvocation, BuildOptions, ImageKind

# Entry point models
from .entry_points import (
    JAVA_MAIN_SIGNATURE,
    NATIVE_MAIN_SIGNATURE,
    CEntryPointData,
    EntryPointDescriptor,
    EntryPointShape,
    MethodSignature,
)

# Result models
from .results import BuildResult, BuildState, ErrorRecord

__all__ = [
    # Configuration models
    "AppConfig",
    "BuilderSettings",
    "EnvironmentSettings",
    "LoggingSettings",
    "WatchdogSettings",
    # Runtime models
    "BuildInvocation",
    "BuildOptions",
    "ImageKind",
    # Entry point models
    "JAVA_MAIN_SIGNATURE",
    "NATIVE_MAIN_SIGNATURE",
    "CEntryPointData",
    "EntryPointDescriptor",
    "EntryPointShape",
    "MethodSignature",
    # Result models
    "BuildResult",
    "BuildState",
    "ErrorRecord",
]
