"""Common fixtures for Tuya fan/light tests."""
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from custom_components.tuya_fan_light.constants import SessionSettings
from custom_components.tuya_fan_light.session import TuyaFanLightSession


FULL_REPLY = {"dps": {"20": True, "22": 505, "51": True, "53": 4}}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProtocolClient:
    """In-memory stand-in for a Tuya protocol client."""

    def __init__(self):
        self.handlers = {}
        self.connect = AsyncMock(return_value=True)
        self.get = AsyncMock(return_value=FULL_REPLY)
        self.set = AsyncMock(return_value=True)

    def on(self, event, callback):
        self.handlers.setdefault(event, []).append(callback)

    def off(self, event, callback):
        if callback in self.handlers.get(event, []):
            self.handlers[event].remove(callback)

    def emit(self, event, *args):
        for callback in list(self.handlers.get(event, [])):
            callback(*args)


@pytest.fixture
def clock():
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def mock_client():
    """Create a fake protocol client."""
    return FakeProtocolClient()


@pytest.fixture
def device_config():
    """Device entry as found in user configuration."""
    return {
        "id": "bf1234567890abcdefgh",
        "key": "0123456789abcdef",
        "ip": "192.168.1.40",
        "version": 3.3,
        "name": "Bedroom Fan",
    }


@pytest.fixture
def settings():
    """Default settings with a short operation timeout to keep tests quick."""
    return SessionSettings(OPERATION_TIMEOUT=0.05)


@pytest_asyncio.fixture
async def session(mock_client, device_config, settings, clock):
    """Create a session bound to the fake client."""
    session = TuyaFanLightSession(mock_client, device_config, settings=settings, clock=clock)
    yield session
    session.destroy()
