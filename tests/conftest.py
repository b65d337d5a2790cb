"""Pytest configuration and shared fixtures for lenses-cli tests."""

import sys
from pathlib import Path
from unittest.mock import Mock

import httpx
import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

TEST_HOST = "http://lenses.test"
TEST_TOKEN = "test-token-1234"

LENSES_ENV_VARS = [
    "LENSES_HOST",
    "LENSES_TOKEN",
    "LENSES_USER",
    "LENSES_PASSWORD",
    "LENSES_TIMEOUT",
    "LENSES_INSECURE",
    "LENSES_DEBUG",
    "LENSES_CONTEXT",
    "LENSES_CONFIG_FILE",
]


# ============================================================================
# Streaming Fixtures
# ============================================================================


class CountingStream(httpx.SyncByteStream):
    """Byte stream that records how many times it was closed."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.close_count = 0

    def __iter__(self):
        yield from self.chunks

    def close(self):
        self.close_count += 1


def streaming_response(status_code=200, chunks=(), headers=None):
    """A response that is not pre-read, like a real network response.

    Returns:
        Tuple of (response, stream) so tests can inspect close counts.
    """
    stream = CountingStream(chunks)
    return httpx.Response(status_code, headers=headers or {}, stream=stream), stream


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
def make_client():
    """Factory for a LensesClient whose requests go to a mock transport handler."""
    from lenses_cli.api.connection import ClientConfig
    from lenses_cli.api.resources import LensesClient

    created = []

    def factory(handler, *, token=TEST_TOKEN, debug=False, logger=None):
        config = ClientConfig(host=TEST_HOST, token=token, debug=debug)
        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        client = LensesClient(config, http_client, logger=logger)
        created.append(client)
        return client

    yield factory

    for client in created:
        client.close()


@pytest.fixture
def recorded_requests():
    """List shared with a handler to capture requests."""
    return []


@pytest.fixture
def mock_logger():
    """Mock structlog logger for asserting debug traces."""
    logger = Mock()
    logger.debug = Mock()
    logger.info = Mock()
    return logger


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Create a temporary home directory for testing."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home_dir)
    return home_dir


@pytest.fixture
def clean_env(monkeypatch):
    """Remove LENSES_* variables so tests do not see the developer's setup."""
    for name in LENSES_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def work_dir(tmp_path, monkeypatch):
    """Empty working directory used as the cwd."""
    directory = tmp_path / "work"
    directory.mkdir()
    monkeypatch.chdir(directory)
    return directory


@pytest.fixture
def stream_factory():
    """Factory for not-yet-read responses; returns ``(response, stream)``."""
    return streaming_response


@pytest.fixture
def isolated_logging():
    """Restore root logging and structlog after a test that configures them."""
    import logging

    import structlog

    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    client_logger = logging.getLogger("lenses_cli.api.client")
    client_level = client_logger.level

    yield root

    client_logger.setLevel(client_level)

    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
