"""
Tests for the build lifecycle state machine.

The image generator is replaced by fakes so that each terminal state can be
reached deterministically; the phase executors are real thread pools.
"""

import threading
from unittest.mock import Mock

import pytest

from imagerunner.engine import IDENTITY_SUBSTITUTION
from imagerunner.executor import ExecutorPair, create_phase_executors
from imagerunner.models import BuildOptions, BuildState, ImageKind
from imagerunner.nativeimage import CCharPointerPointer, JavaMainWrapper, c_entry_point
from imagerunner.orchestration import BuildOrchestrator
from imagerunner.system import EnvironmentValidator
from imagerunner.validation import (
    AggregateFailure,
    AnalysisError,
    ConfigurationError,
    InterruptionSignal,
)
from imagerunner.validation.error_handler import STACK_TRACE_HINT


class HelloNative:
    @staticmethod
    @c_entry_point
    def main(argc: int, argv: CCharPointerPointer) -> int:
        return 0


class HelloJava:
    @staticmethod
    def main(args: list[str]) -> None:
        pass


class FakeClassLoader:
    """Class loader over a fixed set of classes."""

    classes = {"app.HelloNative": HelloNative, "app.HelloJava": HelloJava}

    def load_class(self, qualified_name):
        if qualified_name not in self.classes:
            raise ConfigurationError(f"Main entry point class '{qualified_name}' not found.")
        return self.classes[qualified_name]


class FakeGenerator:
    """Generator that records its call and then raises ``outcome`` if given."""

    def __init__(self, outcome=None, on_run=None):
        self.outcome = outcome
        self.on_run = on_run
        self.calls = []
        self.interrupt_requests = 0

    def run(self, *args):
        self.calls.append(args)
        if self.on_run is not None:
            self.on_run(*args)
        if self.outcome is not None:
            raise self.outcome

    def interrupt_build(self):
        self.interrupt_requests += 1


class RecordingExecutorFactory:
    """Creates real executor pairs and shuts all of them down afterwards."""

    def __init__(self):
        self.pairs = []
        self.calls = []

    def __call__(self, analysis_threads, compilation_threads):
        self.calls.append((analysis_threads, compilation_threads))
        pair = create_phase_executors(analysis_threads, compilation_threads)
        self.pairs.append(pair)
        return pair

    def close(self):
        for pair in self.pairs:
            pair.analysis.shutdown(wait=True)
            pair.compilation.shutdown(wait=True)


@pytest.fixture
def executor_factory():
    factory = RecordingExecutorFactory()
    yield factory
    factory.close()


@pytest.fixture
def make_orchestrator(app_config, reporter, supported_host, executor_factory):
    def make(generator=None, environment_validator=None):
        generator = generator or FakeGenerator()
        factory = Mock(side_effect=lambda class_loader, options: generator)
        orchestrator = BuildOrchestrator(
            app_config,
            reporter=reporter,
            generator_factory=factory,
            executor_factory=executor_factory,
            environment_validator=environment_validator or supported_host,
            cpu_count=2,
        )
        orchestrator.generator = generator
        orchestrator.factory = factory
        return orchestrator

    return make


def build(orchestrator, *arguments):
    return orchestrator.build(list(arguments), ["lib"], FakeClassLoader())


NATIVE_BUILD = ("-H:Name=hello", "-H:Class=app.HelloNative")


@pytest.mark.unit
class TestCompletedBuild:
    """Builds whose generator returns normally."""

    def test_completed(self, make_orchestrator):
        """Test that a normal return completes the build with exit code 0."""
        orchestrator = make_orchestrator()

        result = build(orchestrator, *NATIVE_BUILD)

        assert result.exit_code == 0
        assert result.state is BuildState.COMPLETED
        assert result.succeeded is True
        assert orchestrator.state is BuildState.COMPLETED
        assert orchestrator.state_history == [
            BuildState.IDLE,
            BuildState.VALIDATING,
            BuildState.CONFIGURING,
            BuildState.RESOLVING_ENTRY_POINT,
            BuildState.RUNNING,
            BuildState.COMPLETED,
        ]

    def test_generator_arguments(self, make_orchestrator, executor_factory):
        """Test the single delegated call to the generator."""
        orchestrator = make_orchestrator()

        build(orchestrator, *NATIVE_BUILD, "-R:MaxHeapSize=1g", "-H:NumberOfAnalysisThreads=1")

        assert len(orchestrator.generator.calls) == 1
        (entry_points, main_entry_point, main_support, image_name, image_kind,
         substitution, analysis, compilation, runtime_options) = orchestrator.generator.calls[0]
        assert list(entry_points) == [HelloNative.main]
        assert main_entry_point is HelloNative.main
        assert main_support is None
        assert image_name == "hello"
        assert image_kind is ImageKind.EXECUTABLE
        assert substitution is IDENTITY_SUBSTITUTION
        assert analysis is executor_factory.pairs[0].analysis
        assert compilation is executor_factory.pairs[0].compilation
        assert runtime_options == ("MaxHeapSize",)
        assert executor_factory.calls == [(1, 2)]

    def test_generator_factory_receives_loader_and_options(self, make_orchestrator):
        """Test that the generator is created from the class loader and options."""
        orchestrator = make_orchestrator()
        class_loader = FakeClassLoader()

        orchestrator.build(list(NATIVE_BUILD), ["lib"], class_loader)

        orchestrator.factory.assert_called_once()
        loader_arg, options_arg = orchestrator.factory.call_args[0]
        assert loader_arg is class_loader
        assert isinstance(options_arg, BuildOptions)
        assert options_arg is orchestrator.options

    def test_wrapped_java_entry_point(self, make_orchestrator):
        """Test that a Java-style main is passed through its adapter."""
        orchestrator = make_orchestrator()

        build(orchestrator, "-H:Name=hello", "-H:Class=app.HelloJava")

        entry_points, main_entry_point, main_support = orchestrator.generator.calls[0][:3]
        assert main_entry_point is JavaMainWrapper.run
        assert list(entry_points) == [JavaMainWrapper.run]
        assert main_support.java_main_method is HelloJava.main

    def test_shared_library_skips_resolution(self, make_orchestrator):
        """Test that a non-executable kind without class goes straight to running."""
        orchestrator = make_orchestrator()

        result = build(orchestrator, "-H:Name=libhello", "-H:Kind=SHARED_LIBRARY")

        assert result.state is BuildState.COMPLETED
        assert BuildState.RESOLVING_ENTRY_POINT not in orchestrator.state_history
        entry_points, main_entry_point, main_support = orchestrator.generator.calls[0][:3]
        assert entry_points == {}
        assert main_entry_point is None
        assert main_support is None

    def test_timers_printed(self, make_orchestrator, reporter):
        """Test that the classlist and total timers are printed with the image name."""
        build(make_orchestrator(), *NATIVE_BUILD)

        lines = reporter.out.getvalue().splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("[hello:")
        assert "classlist:" in lines[0]
        assert "[total]:" in lines[1]
        assert reporter.err.getvalue() == ""

    def test_build_runs_once(self, make_orchestrator):
        """Test that an orchestrator cannot be reused."""
        orchestrator = make_orchestrator()
        build(orchestrator, *NATIVE_BUILD)

        with pytest.raises(RuntimeError):
            build(orchestrator, *NATIVE_BUILD)

    def test_invocation_records_options(self, make_orchestrator):
        """Test that the resolved options are kept on the invocation."""
        orchestrator = make_orchestrator()

        build(orchestrator, *NATIVE_BUILD)

        assert orchestrator.invocation.options.image_name == "hello"
        assert orchestrator.invocation.classpath == ("lib",)
        assert orchestrator.entry_point.owning_class is HelloNative


@pytest.mark.unit
class TestInterruptedBuild:
    """Builds stopped by a cooperative interruption."""

    def test_interruption_with_reason(self, make_orchestrator, reporter, executor_factory):
        """Test exit code, message and immediate executor shutdown."""
        orchestrator = make_orchestrator(FakeGenerator(InterruptionSignal("user requested stop")))

        result = build(orchestrator, *NATIVE_BUILD)

        assert result.exit_code == 0
        assert result.state is BuildState.INTERRUPTED
        assert result.interruption_reason == "user requested stop"
        assert "Info: user requested stop\n" in reporter.out.getvalue()
        assert reporter.err.getvalue() == ""
        pair = executor_factory.pairs[0]
        assert pair.analysis.is_shutdown is True
        assert pair.compilation.is_shutdown is True

    def test_interruption_abandons_queued_work(self, make_orchestrator):
        """Test that queued phase tasks are cancelled on interruption."""
        release = threading.Event()
        started = threading.Event()
        queued = []

        def submit_work(*args):
            analysis = args[6]

            def block():
                started.set()
                release.wait(timeout=5.0)

            queued.append(analysis.submit(block))
            assert started.wait(timeout=5.0)
            queued.extend(analysis.submit(lambda: None) for _ in range(3))

        orchestrator = make_orchestrator(FakeGenerator(InterruptionSignal(), on_run=submit_work))
        try:
            result = build(orchestrator, *NATIVE_BUILD, "-H:NumberOfAnalysisThreads=1")
        finally:
            release.set()

        assert result.state is BuildState.INTERRUPTED
        assert all(future.cancelled() for future in queued[1:])

    def test_interruption_without_reason(self, make_orchestrator, reporter):
        """Test that an interruption without reason prints no info line."""
        orchestrator = make_orchestrator(FakeGenerator(InterruptionSignal()))

        result = build(orchestrator, *NATIVE_BUILD)

        assert result.exit_code == 0
        assert "Info:" not in reporter.out.getvalue()

    def test_interrupt_from_another_thread(self, make_orchestrator):
        """Test that interrupt_build reaches the running generator."""
        running = threading.Event()
        interrupted = threading.Event()

        class BlockingGenerator(FakeGenerator):
            def run(self, *args):
                running.set()
                if not interrupted.wait(timeout=5.0):
                    raise AssertionError("interruption never arrived")
                raise InterruptionSignal("interrupted by signal")

            def interrupt_build(self):
                super().interrupt_build()
                interrupted.set()

        orchestrator = make_orchestrator(BlockingGenerator())
        results = []
        driver = threading.Thread(target=lambda: results.append(build(orchestrator, *NATIVE_BUILD)))
        driver.start()
        assert running.wait(timeout=5.0)

        orchestrator.interrupt_build()
        driver.join(timeout=5.0)

        assert results[0].state is BuildState.INTERRUPTED
        assert orchestrator.generator.interrupt_requests == 1


@pytest.mark.unit
class TestFailedBuild:
    """Builds ending in the failed state."""

    def test_aggregate_of_configuration_errors(self, make_orchestrator, reporter):
        """Test that classified sub-failures are printed without a dump."""
        failure = AggregateFailure([ConfigurationError("first problem"), ConfigurationError("second problem")])
        orchestrator = make_orchestrator(FakeGenerator(failure))

        result = build(orchestrator, *NATIVE_BUILD)

        err = reporter.err.getvalue()
        assert result.exit_code == 1
        assert result.state is BuildState.FAILED
        assert "Error: first problem\n" in err
        assert "Error: second problem\n" in err
        assert "Traceback" not in err
        assert "Fatal error" not in err
        assert err.count(STACK_TRACE_HINT) == 1

    def test_aggregate_of_unclassified_errors(self, make_orchestrator, reporter):
        """Test the count header and one full dump per failure."""
        failure = AggregateFailure([RuntimeError("first crash"), ValueError("second crash")])
        orchestrator = make_orchestrator(FakeGenerator(failure))

        result = build(orchestrator, *NATIVE_BUILD)

        err = reporter.err.getvalue()
        assert result.exit_code == 1
        assert "2 fatal errors detected:" in err
        assert err.count("Fatal error: ") == 2
        assert "RuntimeError: first crash" in err
        assert "ValueError: second crash" in err

    def test_analysis_error(self, make_orchestrator, reporter):
        """Test that analysis errors are reported like user errors."""
        orchestrator = make_orchestrator(FakeGenerator(AnalysisError("inconsistent call graph")))

        result = build(orchestrator, *NATIVE_BUILD)

        assert result.exit_code == 1
        assert reporter.err.getvalue().startswith("Error: inconsistent call graph\n")

    def test_unclassified_error(self, make_orchestrator, reporter):
        """Test that anything unclassified is dumped as a fatal error."""
        orchestrator = make_orchestrator(FakeGenerator(KeyError("missing")))

        result = build(orchestrator, *NATIVE_BUILD)

        err = reporter.err.getvalue()
        assert result.exit_code == 1
        assert result.state is BuildState.FAILED
        assert err.startswith("Fatal error: ")
        assert "Traceback (most recent call last)" in err
        assert "KeyError" in err

    def test_system_exit_from_generator(self, make_orchestrator, reporter):
        """Test that a SystemExit raised by the generator fails the build with exit code 1."""
        orchestrator = make_orchestrator(FakeGenerator(SystemExit(3)))

        result = build(orchestrator, *NATIVE_BUILD)

        err = reporter.err.getvalue()
        assert result.exit_code == 1
        assert result.state is BuildState.FAILED
        assert orchestrator.state_history[-2:] == [BuildState.RUNNING, BuildState.FAILED]
        assert err.startswith("Fatal error: ")
        assert "SystemExit: 3" in err
        assert len(orchestrator.singletons) == 0

    def test_keyboard_interrupt_propagates(self, make_orchestrator):
        """Test that a forced keyboard interrupt still leaves the build cleaned up."""
        orchestrator = make_orchestrator(FakeGenerator(KeyboardInterrupt()))

        with pytest.raises(KeyboardInterrupt):
            build(orchestrator, *NATIVE_BUILD)

        assert len(orchestrator.singletons) == 0
        orchestrator.interrupt_build()
        assert orchestrator.generator.interrupt_requests == 0

    def test_empty_aggregate(self, make_orchestrator, reporter):
        """Test that an aggregate without sub-failures still prints a failure."""
        orchestrator = make_orchestrator(FakeGenerator(AggregateFailure([])))

        result = build(orchestrator, *NATIVE_BUILD)

        assert result.exit_code == 1
        assert result.state is BuildState.FAILED
        assert reporter.err.getvalue().startswith("Fatal error: ")

    def test_executors_not_shut_down_on_failure(self, make_orchestrator, executor_factory):
        """Test that ordinary failures leave executor shutdown to the engine."""
        orchestrator = make_orchestrator(FakeGenerator(AnalysisError("broken")))

        build(orchestrator, *NATIVE_BUILD)

        assert executor_factory.pairs[0].analysis.is_shutdown is False

    def test_stack_traces_requested(self, make_orchestrator, reporter):
        """Test that the stack trace replaces the hint when requested."""
        orchestrator = make_orchestrator(FakeGenerator(ConfigurationError("bad input")))

        build(orchestrator, *NATIVE_BUILD, "-H:+ReportExceptionStackTraces")

        err = reporter.err.getvalue()
        assert err.startswith("Error: bad input\n")
        assert "Traceback (most recent call last)" in err
        assert STACK_TRACE_HINT not in err

    def test_environment_failure(self, make_orchestrator, app_config, reporter):
        """Test that a failed precondition stops the build before configuration."""
        validator = EnvironmentValidator(
            app_config.environment, reporter, python_version=(3, 12, 0), machine="x86_64", system="SunOS"
        )
        orchestrator = make_orchestrator(environment_validator=validator)

        result = build(orchestrator, *NATIVE_BUILD)

        assert result.exit_code == 1
        assert orchestrator.state_history == [BuildState.IDLE, BuildState.VALIDATING, BuildState.FAILED]
        assert "Detected OS: SunOS" in reporter.err.getvalue()
        orchestrator.factory.assert_not_called()

    def test_unsupported_architecture_continues(self, make_orchestrator, app_config, reporter):
        """Test that an unsupported architecture only warns."""
        validator = EnvironmentValidator(
            app_config.environment, reporter, python_version=(3, 12, 0), machine="aarch64", system="Linux"
        )
        orchestrator = make_orchestrator(environment_validator=validator)

        result = build(orchestrator, *NATIVE_BUILD)

        assert result.state is BuildState.COMPLETED
        assert reporter.err.getvalue().startswith("Warning: ")

    @pytest.mark.parametrize("arguments,message", [
        (("-H:Name=hello", "-H:Class=app.HelloNative", "-foo", "bar"), "Error: Unknown options: [-foo, bar]"),
        (("-H:Class=app.HelloNative",), "Error: No output file name specified. Use '-H:Name=<output-file>'."),
        (("-H:Name=hello",),
         "Error: Must specify main entry point class when building EXECUTABLE native image. "
         "Use '-H:Class=<fully-qualified-class-name>'."),
        (("-H:Name=hello", "-H:Kind=STATIC_EXECUTABLE"),
         "Error: Must specify main entry point class when building STATIC_EXECUTABLE native image. "
         "Use '-H:Class=<fully-qualified-class-name>'."),
        (("-H:Name=hello", "-H:Class=app.HelloNative", "-H:NumberOfThreads=0"),
         "Error: NumberOfThreads must be >= 1, got 0"),
    ])
    def test_configuration_errors(self, make_orchestrator, reporter, executor_factory, arguments, message):
        """Test the configuration failures detected before resolution."""
        orchestrator = make_orchestrator()

        result = build(orchestrator, *arguments)

        assert result.exit_code == 1
        assert orchestrator.state_history[-2:] == [BuildState.CONFIGURING, BuildState.FAILED]
        assert reporter.err.getvalue().splitlines()[0] == message
        assert executor_factory.calls == []

    @pytest.mark.parametrize("arguments,message", [
        (("-H:Name=hello", "-H:Class=app.Missing"), "Error: Main entry point class 'app.Missing' not found."),
        (("-H:Name=hello", "-H:Class=app.HelloNative", "-H:Method=start"), "is declared as the main entry point"),
    ])
    def test_resolution_errors(self, make_orchestrator, reporter, executor_factory, arguments, message):
        """Test that resolution failures happen before executors exist."""
        orchestrator = make_orchestrator()

        result = build(orchestrator, *arguments)

        assert result.exit_code == 1
        assert orchestrator.state_history[-2:] == [BuildState.RESOLVING_ENTRY_POINT, BuildState.FAILED]
        assert message in reporter.err.getvalue()
        assert executor_factory.calls == []
        orchestrator.factory.assert_not_called()

    def test_classpath_installed_when_no_loader_given(self, make_orchestrator, reporter):
        """Test that invalid classpath entries fail while configuring."""
        orchestrator = make_orchestrator()

        result = orchestrator.build(list(NATIVE_BUILD), ["bad\0entry"])

        assert result.exit_code == 1
        assert orchestrator.state_history[-2:] == [BuildState.CONFIGURING, BuildState.FAILED]
        assert reporter.err.getvalue().startswith("Error: Invalid classpath element")


@pytest.mark.unit
class TestInterruptAndCleanup:
    """Interruption requests outside a build and guaranteed cleanup."""

    def test_interrupt_before_build_is_noop(self, make_orchestrator):
        """Test that interrupting an idle orchestrator changes nothing."""
        orchestrator = make_orchestrator()

        orchestrator.interrupt_build()

        assert orchestrator.state is BuildState.IDLE
        assert orchestrator.state_history == [BuildState.IDLE]
        assert orchestrator.generator.interrupt_requests == 0

    def test_interrupt_after_build_is_noop(self, make_orchestrator):
        """Test that the generator handle is released when the build ends."""
        orchestrator = make_orchestrator()
        build(orchestrator, *NATIVE_BUILD)

        orchestrator.interrupt_build()

        assert orchestrator.generator.interrupt_requests == 0
        assert orchestrator.state is BuildState.COMPLETED

    def test_singletons_registered_while_running(self, make_orchestrator):
        """Test that build-scoped registrations exist only during the run."""
        seen = {}

        def inspect_singletons(*args):
            seen["options"] = orchestrator.singletons.lookup(BuildOptions)
            seen["executors"] = orchestrator.singletons.lookup(ExecutorPair)

        orchestrator = make_orchestrator(FakeGenerator(on_run=inspect_singletons))
        build(orchestrator, *NATIVE_BUILD)

        assert seen["options"].image_name == "hello"
        assert isinstance(seen["executors"], ExecutorPair)
        assert len(orchestrator.singletons) == 0

    @pytest.mark.parametrize("outcome", [
        None,
        InterruptionSignal("stop"),
        ConfigurationError("bad"),
        AggregateFailure([RuntimeError("x"), RuntimeError("y")]),
        RuntimeError("crash"),
    ])
    def test_cleanup_on_every_terminal_state(self, make_orchestrator, outcome):
        """Test that every terminal state clears registrations and the handle."""
        orchestrator = make_orchestrator(FakeGenerator(outcome))

        result = build(orchestrator, *NATIVE_BUILD)

        assert result.state.terminal is True
        assert len(orchestrator.singletons) == 0
        orchestrator.interrupt_build()
        assert orchestrator.generator.interrupt_requests == 0
