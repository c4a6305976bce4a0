"""
Pytest configuration and shared fixtures for the imagerunner test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the imagerunner project.
"""

import io
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config_data(temp_dir) -> Dict[str, Any]:
    """Sample configuration data for testing."""
    return {
        "builder": {
            "tool_name": "native-image",
            "default_image_kind": "EXECUTABLE",
            "default_method": "main",
            "max_threads": 2,
            "generator": "imagerunner.engine.manifest:ManifestImageGenerator",
            "output_dir": str(temp_dir / "out"),
        },
        "environment": {
            "minimum_python": "3.11",
            "ignore_version_check_env": "IMAGERUNNER_IGNORE_VERSION_CHECK",
            "supported_architectures": ["amd64"],
            "supported_systems": ["linux", "darwin", "windows"],
        },
        "watchdog": {
            "interval_seconds": 0.05,
            "identity": "native-image",
        },
        "logging": {
            "level": "DEBUG",
        },
    }


@pytest.fixture
def app_config(sample_config_data):
    """Validated AppConfig built from the sample configuration data."""
    from imagerunner.config.validators import validate_app_config

    return validate_app_config(sample_config_data)


@pytest.fixture
def reporter():
    """ErrorReporter writing to in-memory streams."""
    from imagerunner.validation.error_handler import ErrorReporter

    return ErrorReporter(out=io.StringIO(), err=io.StringIO())


@pytest.fixture
def supported_host(app_config, reporter):
    """EnvironmentValidator that sees a supported host."""
    from imagerunner.system import EnvironmentValidator

    return EnvironmentValidator(
        app_config.environment,
        reporter,
        python_version=(3, 12, 1),
        machine="x86_64",
        system="Linux",
    )


@pytest.fixture
def config_files(temp_dir, sample_config_data):
    """Write a config.toml built from the sample configuration data."""
    builder = sample_config_data["builder"]
    content = f"""
[builder]
tool_name = "{builder['tool_name']}"
default_image_kind = "SHARED_LIBRARY"
default_method = "start"
max_threads = 3
generator = "{builder['generator']}"
output_dir = "out"

[watchdog]
interval_seconds = 0.5
identity = "java"

[logging]
level = "info"
"""
    config_path = temp_dir / "config.toml"
    config_path.write_text(content)
    return {"config": config_path}


@pytest.fixture
def restore_import_state():
    """Restore sys.path and drop modules imported from temporary classpaths."""
    saved_path = list(sys.path)
    saved_modules = set(sys.modules)
    yield
    added_paths = [entry for entry in sys.path if entry not in saved_path]
    sys.path[:] = saved_path
    for name in set(sys.modules) - saved_modules:
        module_file = str(getattr(sys.modules.get(name), "__file__", None) or "")
        if any(module_file.startswith(entry) for entry in added_paths):
            sys.modules.pop(name, None)


class TestUtils:
    """Utility class for common test operations."""

    @staticmethod
    def write_module(directory: Path, name: str, source: str) -> Path:
        """Write a Python module into a classpath directory."""
        path = directory / f"{name}.py"
        path.write_text(source)
        return path

    @staticmethod
    def lines(stream: io.StringIO) -> List[str]:
        """Return the non-empty lines written to an in-memory stream."""
        return [line for line in stream.getvalue().splitlines() if line]


@pytest.fixture
def test_utils():
    """Provide test utilities."""
    return TestUtils


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "src" / "imagerunner" / "conf" / "config.toml"

    yield  # Run the test

    from imagerunner.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(original_config_path)
