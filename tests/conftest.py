"""Shared fixtures for navigator_identity tests."""
import pytest
import pytest_asyncio

from navigator_identity.conf import (
    IdentityConfig,
    PrimitivesConfig,
    SessionsConfig,
    session_table,
)
from navigator_identity.credentials import CredentialManager
from navigator_identity.primitives import SecretPrimitives
from navigator_identity.sessions import SessionStore
from navigator_identity.storage import MemoryStore


class FakeClock:
    """Manually advanced monotonic clock."""
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return IdentityConfig(
        primitives=PrimitivesConfig(salt=b'0123456789abcdef', iterations=1000),
        sessions=SessionsConfig(table=session_table(ttl=60)),
    )


@pytest.fixture
def primitives(config):
    return SecretPrimitives(config.primitives)


@pytest_asyncio.fixture
async def store(config, clock):
    memory = MemoryStore(clock=clock)
    await memory.ensure_tables(config.tables)
    return memory


@pytest.fixture
def credentials(store, primitives, config):
    return CredentialManager(store, primitives, config.credentials)


@pytest.fixture
def sessions(store, config):
    return SessionStore(store, config.sessions)
