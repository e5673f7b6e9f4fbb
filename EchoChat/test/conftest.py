"""
Test configuration and fixtures for EchoChat tests.

Provides:
- Test configuration
- Connection registries and fake connections
- A live server listening on a free local port
"""

from dataclasses import dataclass

import pytest
import pytest_asyncio

from EchoChat.core.server import ConnectionRegistry, EchoServer
from EchoChat.test.utils import FakeConnector, Recorder


@dataclass
class TestConfig:
    """Configuration for server tests."""
    __test__ = False

    host: str = "127.0.0.1"
    timeout: float = 2.0


@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    """Provide test configuration."""
    return TestConfig()


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def recorder() -> Recorder:
    """Display callback collecting the lines shown to the user."""
    return Recorder()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def echo_server(recorder: Recorder) -> EchoServer:
    """A server that is not listening; feed it fake connections."""
    return EchoServer(port=5555, host="127.0.0.1", display=recorder)


@pytest_asyncio.fixture
async def live_server(test_config: TestConfig, recorder: Recorder):
    """A server listening on a free local port."""
    server = EchoServer(port=0, host=test_config.host, display=recorder)
    await server.listen()

    yield server

    if not server.shutdown_requested:
        await server.quit()


@pytest.fixture
def server_uri(live_server: EchoServer, test_config: TestConfig) -> str:
    return f"ws://{test_config.host}:{live_server.port}"


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
