"""Pytest fixtures for all tests."""

import pytest
from httpx import AsyncClient, ASGITransport

from config import Config, LoggingConfig, TsidConfig
from identifiers.entropy import SeededRandomSource, SequenceRandomSource
from ui.app import create_app
from utils.timestamp import FixedClock

# 2024-01-01T00:00:00Z
T0_MILLIS = 1704067200000


@pytest.fixture
def clock():
    """Settable clock starting at a known millisecond."""
    return FixedClock(T0_MILLIS)


@pytest.fixture
def seeded():
    """Reproducible random source."""
    return SeededRandomSource(42)


@pytest.fixture
def zeros():
    """Random source that always draws zero."""
    return SequenceRandomSource([0])


@pytest.fixture
def app_config():
    """Service config with a fixed node and quiet logging."""
    return Config(tsid=TsidConfig(node=7, node_bits=10), logging=LoggingConfig(level="ERROR"))


@pytest.fixture
async def app(app_config):
    """Create test FastAPI app."""
    return create_app(app_config)


@pytest.fixture
async def client(app):
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
