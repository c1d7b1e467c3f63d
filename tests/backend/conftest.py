import os

# Settings are read at import time; tests run against the in-memory account store
TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["ACCOUNT_STORE"] = "memory"

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from starlette.websockets import WebSocketState
from tortoise import Tortoise

from presence_gateway.core import db as db_module
from presence_gateway.core.gateway import PresenceGateway
from presence_gateway.core.registry import SessionRegistry
from presence_gateway.main import app
from presence_gateway.services.account_store import MemoryAccountStore

db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

TIMEOUT = 30.0
INTERVAL = 10.0


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockWebSocket:
    """Mock WebSocket recording every text frame sent to it."""

    def __init__(self):
        self.sent_texts = []
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED

    async def send_text(self, text: str):
        """Mock send_text method."""
        self.sent_texts.append(text)

    def close_client(self):
        """Simulate the peer going away."""
        self.client_state = WebSocketState.DISCONNECTED


@pytest.fixture
def make_ws():
    """Factory fixture for MockWebSocket instances."""
    return MockWebSocket


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return SessionRegistry(clock=clock)


@pytest.fixture
def store():
    return MemoryAccountStore()


@pytest.fixture
def gateway(store, registry):
    """Gateway over a fake clock and an in-memory account store."""
    return PresenceGateway(store, timeout=TIMEOUT, interval=INTERVAL, registry=registry)


@pytest.fixture
def ws_client():
    """
    TestClient with startup/shutdown run, so WebSocket sessions and HTTP calls
    share one event loop and one gateway.
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def client(gateway):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh gateway.
    """
    app.state.gateway = gateway
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    del app.state.gateway


@pytest_asyncio.fixture
async def db():
    """
    Initialize a clean in-memory SQLite database with the users table.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()
