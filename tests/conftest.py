"""
Global pytest configuration and fixtures for all tests.
"""

import os

import pytest

# Set testing environment variable as early as possible
os.environ["TESTING"] = "true"

from trunkbot.config.settings import get_settings  # noqa: E402
from tests.utils import MockFactory, RuleFactory  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Automatically set up test environment for all tests."""
    os.environ["TESTING"] = "true"

    yield

    if "TESTING" in os.environ:
        del os.environ["TESTING"]


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached process-wide; start every test from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_settings():
    return MockFactory.create_mock_settings()


@pytest.fixture
def dispatch_config():
    return RuleFactory.create_dispatch_config()


@pytest.fixture
def sample_audio() -> bytes:
    """Bytes large enough to pass upload size checks."""
    return b"RIFF" + b"\x00" * 256
