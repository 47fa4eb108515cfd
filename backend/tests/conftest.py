"""
CallScreen - Test Configuration and Fixtures

Shared fixtures for all test modules.
"""

import os
import socket
import sys
from typing import Generator, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from fastapi.testclient import TestClient

# Ensure backend package is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from callscreen.config import Settings
from callscreen.core.decision import DecisionEngine
from callscreen.core.pipeline import ScreeningPipeline
from callscreen.core.types import LookupResult, Outcome
from callscreen.services.notifications import NotificationDispatcher


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests using local stub HTTP servers")


# =============================================================================
# Test Doubles
# =============================================================================

class FakeReputationClient:
    """Reputation client returning a fixed result and recording lookups."""

    def __init__(self, result: Optional[LookupResult] = None, error: Optional[Exception] = None):
        self.result = result or LookupResult.failed()
        self.error = error
        self.lookups: List[str] = []

    @property
    def client_id(self) -> str:
        return "fake-reputation"

    async def lookup(self, normalized: str) -> LookupResult:
        self.lookups.append(normalized)
        if self.error:
            raise self.error
        return self.result


class RecordingChannel:
    """Notification channel that records deliveries into a shared event log."""

    def __init__(self, events: list, name: str = "recording", error: Optional[Exception] = None):
        self._events = events
        self._name = name
        self.error = error
        self.sent: List[Outcome] = []

    @property
    def name(self) -> str:
        return self._name

    async def send(self, outcome: Outcome, timestamp: str) -> None:
        self._events.append(("notify", self._name, outcome.state.value))
        if self.error:
            raise self.error
        self.sent.append(outcome)


class RecordingHost:
    """CallHost that records log lines and termination into a shared event log."""

    def __init__(self, events: list):
        self._events = events
        self.info: List[str] = []
        self.errors: List[str] = []
        self.terminated = 0

    def log_info(self, message: str) -> None:
        self.info.append(message)

    def log_error(self, message: str) -> None:
        self.errors.append(message)

    def terminate(self) -> None:
        self._events.append(("terminate",))
        self.terminated += 1


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """
    Create test settings with safe defaults.

    No webhooks configured; the API base points nowhere useful.
    """
    return Settings(
        app_env="testing",
        app_debug=True,
        app_log_level="WARNING",  # Reduce noise in tests
        phoneblock_api_base="http://127.0.0.1:9/phoneblock/api",
        phoneblock_bearer_token="test-token",
        phoneblock_min_votes=4,
        discord_webhook_url="",
        generic_webhook_url="",
        http_timeout_seconds=1.0,
    )


# =============================================================================
# Pipeline Fixtures
# =============================================================================

@pytest.fixture
def events() -> list:
    """Ordered log of notifications and terminations across test doubles."""
    return []


@pytest.fixture
def host(events) -> RecordingHost:
    return RecordingHost(events)


@pytest.fixture
def channel(events) -> RecordingChannel:
    return RecordingChannel(events)


@pytest.fixture
def make_pipeline(channel):
    """
    Factory for a pipeline backed by a fake reputation client.

    Usage:
        pipeline, reputation = make_pipeline(LookupResult(succeeded=True, votes=5, rating="G_FRAUD"))
    """
    def _make(result: Optional[LookupResult] = None, error: Optional[Exception] = None, channels=None):
        reputation = FakeReputationClient(result=result, error=error)
        pipeline = ScreeningPipeline(
            reputation=reputation,
            engine=DecisionEngine(min_votes=4),
            dispatcher=NotificationDispatcher([channel] if channels is None else channels),
        )
        return pipeline, reputation

    return _make


# =============================================================================
# HTTP Stub Fixtures
# =============================================================================

@pytest.fixture
def unused_port() -> int:
    """A local TCP port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest_asyncio.fixture
async def stub_server():
    """
    Start throw-away aiohttp servers on 127.0.0.1.

    Usage:
        base_url = await stub_server([("GET", "/num/{number}", handler)])
    """
    runners = []

    async def _start(routes) -> str:
        app = web.Application()
        for method, path, handler in routes:
            app.router.add_route(method, path, handler)

        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", 0)
        await site.start()
        runners.append(runner)

        port = site._server.sockets[0].getsockname()[1]
        return f"http://127.0.0.1:{port}"

    yield _start

    for runner in runners:
        await runner.cleanup()


# =============================================================================
# FastAPI App Fixture
# =============================================================================

@pytest.fixture
def app():
    """Create a FastAPI app instance."""
    # Import here to avoid configuring logging at collection time
    from main import create_app
    return create_app()


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app) as c:
        yield c
