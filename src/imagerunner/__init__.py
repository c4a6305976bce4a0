"""
imagerunner: Build orchestrator for ahead-of-time native images.

This package drives one invocation of an image build: it checks the host,
extracts the image classpath, resolves the main entry point, runs the
analysis and compilation phases on bounded executors and turns every
outcome into a deterministic exit status.

The package is organized into specialized modules:
- config: Configuration management and hosted option parsing
- models: Data structures and type definitions
- validation: Failure taxonomy, validation and error reporting
- system: Host environment checks and process probes
- executor: Phase worker pools
- engine: Image generator boundary and class loading
- nativeimage: Entry point markers used by application code
- orchestration: Build lifecycle, watchdog and signal handling
- cli: Command-line interface

Usage:
    From command line:
        imagerunner -imagecp <classpath> -H:Name=<name> -H:Class=<class>

    Programmatically:
        from imagerunner import BuildOrchestrator, get_config
        orchestrator = BuildOrchestrator(get_config())
        result = orchestrator.build(arguments, classpath)
"""

# Main interfaces
from .config import get_config, clear_config_cache, set_config_path
from .orchestration import BuildOrchestrator, EntryPointResolver
from .cli import main_cli

# Model classes for external use
from .models import (
    AppConfig,
    BuildInvocation,
    BuildOptions,
    BuildResult,
    BuildState,
    EntryPointDescriptor,
    EntryPointShape,
    ImageKind,
)

# Failure taxonomy
from .validation import (
    AggregateFailure,
    AnalysisError,
    BuildFailure,
    ConfigurationError,
    ErrorKind,
    InterruptionSignal,
    ValidationError,
)

# Application-facing entry point API
from .nativeimage import CCharPointerPointer, c_entry_point

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "BuildOrchestrator",
    "EntryPointResolver",
    "main_cli",
    # Models
    "AppConfig",
    "BuildInvocation",
    "BuildOptions",
    "BuildResult",
    "BuildState",
    "EntryPointDescriptor",
    "EntryPointShape",
    "ImageKind",
    # Failures
    "AggregateFailure",
    "AnalysisError",
    "BuildFailure",
    "ConfigurationError",
    "ErrorKind",
    "InterruptionSignal",
    "ValidationError",
    # Native image API
    "CCharPointerPointer",
    "c_entry_point",
]
