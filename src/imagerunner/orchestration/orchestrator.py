"""
Build lifecycle of one native image.

``BuildOrchestrator`` drives a build through a fixed sequence of states:

    Idle -> Validating -> Configuring -> [ResolvingEntryPoint] -> Running
         -> Completed | Interrupted | Failed

It delegates the actual analysis and compilation to an image generator and
catches every failure raised along the way at a single boundary, where it
is classified and reported. Whatever the terminal state, the build-scoped
registrations are cleared before ``build`` returns.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config.options import HostedOptionParser
from ..engine import (
    IDENTITY_SUBSTITUTION,
    GeneratorFactory,
    ImageGenerator,
    install_image_class_loader,
    load_generator_factory,
)
from ..executor import ExecutorPair, create_phase_executors
from ..models.config import AppConfig
from ..models.entry_points import CEntryPointData, EntryPointDescriptor
from ..models.results import EXIT_FAILURE, EXIT_SUCCESS, BuildResult, BuildState
from ..models.runtime import BuildInvocation, BuildOptions
from ..system import EnvironmentValidator
from ..timing import BuildTimer
from ..validation import ConfigurationError, ErrorKind
from ..validation.error_handler import ErrorReporter, classify
from .entry_point import EntryPointResolver
from .shared_state import ActiveHandle, ImageSingletons

logger = logging.getLogger(__name__)

ExecutorFactory = Callable[[int, int], ExecutorPair]


class BuildOrchestrator:
    """
    Runs exactly one image build.

    Args:
        config: Application configuration
        reporter: Sink for user-facing output, standard streams by default
        generator_factory: Creates the image generator from the class loader
            and options; loaded from ``builder.generator`` when None
        executor_factory: Creates the two phase executors
        environment_validator: Host precondition checks, built from the
            configuration when None
        cpu_count: Host CPU count for the default thread limits, detected
            when None
    """

    def __init__(
        self,
        config: AppConfig,
        reporter: Optional[ErrorReporter] = None,
        generator_factory: Optional[GeneratorFactory] = None,
        executor_factory: ExecutorFactory = create_phase_executors,
        environment_validator: Optional[EnvironmentValidator] = None,
        cpu_count: Optional[int] = None,
    ):
        self.config = config
        self.reporter = reporter or ErrorReporter()
        self.generator_factory = generator_factory
        self.executor_factory = executor_factory
        self.environment_validator = environment_validator or EnvironmentValidator(
            config.environment, self.reporter, tool_name=config.builder.tool_name
        )
        self.cpu_count = cpu_count

        self.state = BuildState.IDLE
        self.state_history: List[BuildState] = [BuildState.IDLE]
        self.invocation: Optional[BuildInvocation] = None
        self.entry_point: Optional[EntryPointDescriptor] = None
        self.executors: Optional[ExecutorPair] = None
        self.singletons = ImageSingletons()
        self._generator: ActiveHandle[ImageGenerator] = ActiveHandle()

    @property
    def options(self) -> Optional[BuildOptions]:
        return self.invocation.options if self.invocation else None

    def build(self, arguments: Sequence[str], classpath: Sequence[str],
              class_loader: Any = None) -> BuildResult:
        """
        Build an image from already extracted arguments.

        Args:
            arguments: Hosted and runtime options
            classpath: Image classpath entries
            class_loader: Loader of the image classes; installed from
                ``classpath`` when None

        Returns:
            The terminal state and exit code of the build
        """
        invocation = BuildInvocation(
            raw_arguments=tuple(arguments),
            classpath=tuple(classpath),
            watch_pid=None,
            arguments=tuple(arguments),
        )
        return self.build_invocation(invocation, class_loader)

    def build_invocation(self, invocation: BuildInvocation, class_loader: Any = None) -> BuildResult:
        """
        Build the image described by an invocation.

        Raises:
            RuntimeError: If this orchestrator has already run a build
        """
        if self.state is not BuildState.IDLE:
            raise RuntimeError("A BuildOrchestrator runs exactly one build")
        self.invocation = invocation

        try:
            return self._run_lifecycle(class_loader)
        finally:
            self._cleanup()

    def interrupt_build(self) -> None:
        """
        Forward a cancellation request to the active generator.

        Safe to call from any thread at any time; a no-op while no generator
        is running. The state only changes once the generator reacts.
        """
        generator = self._generator.get()
        if generator is None:
            logger.debug("Interruption requested without an active image build")
            return
        generator.interrupt_build()

    def _run_lifecycle(self, class_loader: Any) -> BuildResult:
        self._transition(BuildState.VALIDATING)
        if not self.environment_validator.validate():
            return self._finish(BuildState.FAILED, EXIT_FAILURE)

        total_timer = BuildTimer("[total]")
        classlist_timer = BuildTimer("classlist")
        try:
            with total_timer:
                self._transition(BuildState.CONFIGURING)
                with classlist_timer:
                    if class_loader is None:
                        class_loader = install_image_class_loader(self.invocation.classpath)
                options = self._configure()
                total_timer.prefix = classlist_timer.prefix = options.image_name
                classlist_timer.print(self.reporter.out)

                entry_points: Dict[Callable, CEntryPointData] = {}
                if options.main_class:
                    self._transition(BuildState.RESOLVING_ENTRY_POINT)
                    resolver = EntryPointResolver(class_loader)
                    self.entry_point, entry_points = resolver.resolve(
                        options.main_class, options.main_method, options.image_kind
                    )

                self._transition(BuildState.RUNNING)
                self._run_generator(class_loader, options, entry_points)
        except KeyboardInterrupt:
            # Second SIGINT after the handlers were restored; the user forces exit
            raise
        except BaseException as e:
            return self._handle_failure(e)

        total_timer.print(self.reporter.out)
        return self._finish(BuildState.COMPLETED, EXIT_SUCCESS)

    def _configure(self) -> BuildOptions:
        parser = HostedOptionParser(self.config.builder, cpu_count=self.cpu_count)
        options, remaining = parser.parse(self.invocation.arguments)

        if remaining:
            raise ConfigurationError(f"Unknown options: [{', '.join(remaining)}]")
        if not options.image_name:
            raise ConfigurationError("No output file name specified. Use '-H:Name=<output-file>'.")
        if options.image_kind.executable and not options.main_class:
            raise ConfigurationError(
                f"Must specify main entry point class when building {options.image_kind} native image. "
                f"Use '-H:Class=<fully-qualified-class-name>'."
            )

        self.invocation = self.invocation.with_options(options)
        logger.info(f"Building {options.image_kind} image '{options.image_name}'")
        return options

    def _run_generator(self, class_loader: Any, options: BuildOptions,
                       entry_points: Dict[Callable, CEntryPointData]) -> None:
        factory = self.generator_factory or load_generator_factory(self.config.builder.generator)

        self.executors = self.executor_factory(options.number_of_analysis_threads, options.number_of_threads)
        self.singletons.add(BuildOptions, options)
        self.singletons.add(ExecutorPair, self.executors)

        generator = factory(class_loader, options)
        self._generator.set(generator)

        descriptor = self.entry_point
        generator.run(
            entry_points,
            descriptor.entry_method if descriptor else None,
            descriptor.main_support if descriptor else None,
            options.image_name,
            options.image_kind,
            IDENTITY_SUBSTITUTION,
            self.executors.analysis,
            self.executors.compilation,
            options.runtime_option_names,
        )

    def _handle_failure(self, error: BaseException) -> BuildResult:
        record = classify(error)

        if record.kind is ErrorKind.INTERRUPTION:
            if self.executors is not None:
                self.executors.shutdown_now()
            self.reporter.report(record)
            return self._finish(BuildState.INTERRUPTED, EXIT_SUCCESS, record.reason)

        logger.debug(f"Build failed in state {self.state.value}: {record.kind.value}")
        stack_traces = bool(self.options and self.options.report_exception_stack_traces)
        self.reporter.report(record, stack_traces=stack_traces)
        return self._finish(BuildState.FAILED, EXIT_FAILURE)

    def _transition(self, state: BuildState) -> None:
        logger.debug(f"Build state: {self.state.value} -> {state.value}")
        self.state = state
        self.state_history.append(state)

    def _finish(self, state: BuildState, exit_code: int, reason: Optional[str] = None) -> BuildResult:
        self._transition(state)
        return BuildResult(exit_code=exit_code, state=state, interruption_reason=reason)

    def _cleanup(self) -> None:
        self._generator.clear()
        self.singletons.clear()
