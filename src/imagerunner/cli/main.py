"""
Command-line interface of the image builder.

The command line is passed through untouched: ``-imagecp <classpath>`` and
the optional ``-watchpid <pid>`` are extracted first, everything else is
handed to the hosted option parser of the build. The process exits with 0
when the build completes or is interrupted cooperatively and with 1
otherwise.

Usage:
    imagerunner -imagecp <classpath> -H:Name=<name> -H:Class=<class> [options]
"""

import logging
import sys
from typing import Optional, Sequence

from ..config import get_config
from ..engine import GeneratorFactory
from ..models.config import AppConfig, LoggingSettings
from ..models.results import EXIT_FAILURE, EXIT_SUCCESS
from ..orchestration import (
    BuildOrchestrator,
    ProcessSupervisor,
    SignalHandler,
    parse_invocation,
    start_watchdog,
)
from ..validation.error_handler import ErrorReporter, classify

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(settings: LoggingSettings) -> None:
    """Configure diagnostic logging on standard error."""
    logging.basicConfig(
        level=getattr(logging, settings.level.upper(), logging.WARNING),
        format=settings.format,
        datefmt=DATE_FORMAT,
        stream=sys.stderr,
    )


def run(
    arguments: Sequence[str],
    config: Optional[AppConfig] = None,
    reporter: Optional[ErrorReporter] = None,
    generator_factory: Optional[GeneratorFactory] = None,
    supervisor: Optional[ProcessSupervisor] = None,
) -> int:
    """
    Run one image build for a command line.

    Args:
        arguments: Command line arguments without the program name
        config: Application configuration, loaded with ``get_config`` when None
        reporter: Sink for user-facing output
        generator_factory: Overrides the configured image generator
        supervisor: Terminator used when the watched process is lost

    Returns:
        The process exit status
    """
    reporter = reporter or ErrorReporter()

    watchdog = None
    try:
        config = config or get_config()
        invocation = parse_invocation(arguments)
        if invocation.watch_requested:
            supervisor = supervisor or ProcessSupervisor(reporter)
            watchdog = start_watchdog(invocation.watch_pid, config.watchdog, supervisor.target_lost)

        orchestrator = BuildOrchestrator(config, reporter=reporter, generator_factory=generator_factory)
        with SignalHandler(orchestrator):
            result = orchestrator.build_invocation(invocation)
    except Exception as e:
        return reporter.report(classify(e))
    finally:
        if watchdog is not None:
            watchdog.cancel()
        reporter.flush()

    logger.info(f"Image build finished in state {result.state.value}")
    return EXIT_SUCCESS if result.succeeded else EXIT_FAILURE


def main_cli(argv: Optional[Sequence[str]] = None) -> None:
    """
    Console entry point of the image builder.

    Loads the application configuration, sets up logging and exits with the
    status of the build.

    Raises:
        SystemExit: Always, with the exit status of the build
    """
    reporter = ErrorReporter()
    try:
        config = get_config()
    except Exception as e:
        sys.exit(reporter.report(classify(e)))

    setup_logging(config.logging)
    arguments = sys.argv[1:] if argv is None else argv
    sys.exit(run(arguments, config=config, reporter=reporter))


if __name__ == "__main__":
    main_cli()
