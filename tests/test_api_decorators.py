"""Tests for API decorators."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.tuya_fan_light.api_decorators import dps_read, dps_write
from custom_components.tuya_fan_light.connection import ConnectionStateMachine
from custom_components.tuya_fan_light.constants import DPCode, SessionSettings
from custom_components.tuya_fan_light.infrastructure.errors import (
    TuyaCommandError,
    TuyaConnectionError,
)
from custom_components.tuya_fan_light.infrastructure.guard import OperationGuard
from custom_components.tuya_fan_light.state_cache import StateCache


class MockSession:
    """Minimal session exposing what the decorators rely on."""

    def __init__(self, clock):
        settings = SessionSettings(OPERATION_TIMEOUT=0.05)
        self.name = "test fan"
        self.is_destroyed = False
        self._cache = StateCache(clock=clock)
        self._connection = ConnectionStateMachine(self._cache, AsyncMock(), MagicMock(), settings)
        self._guard = OperationGuard(self._cache, self._connection, settings)
        self._client = MagicMock()
        self._client.set = AsyncMock(return_value=True)
        self._async_pull_state = AsyncMock(side_effect=self._pull)

    async def _pull(self):
        self._cache.update(fan_speed=80.0, last_update=self._cache.now())
        return self._cache.state

    @property
    def is_online(self):
        return self._cache.state.is_online


@pytest.fixture
def api(clock):
    api = MockSession(clock)
    yield api
    api._connection.shutdown()


@pytest.mark.asyncio
async def test_dps_read_pulls_stale_state(api):
    """Test dps_read decorator refreshes before answering."""

    @dps_read("fan_speed")
    async def test_method(self, value):
        return value

    result = await test_method(api)

    assert result == 80.0
    api._async_pull_state.assert_awaited_once()


@pytest.mark.asyncio
async def test_dps_read_serves_fresh_cache(api):
    """Test dps_read decorator skips the device while the cache is fresh."""

    @dps_read("light_on")
    async def test_method(self, value):
        return value

    api._cache.update(light_on=True)
    api._cache.touch()

    assert await test_method(api) is True
    api._async_pull_state.assert_not_awaited()


@pytest.mark.asyncio
async def test_dps_read_offline_uses_cache(api):
    """Test dps_read decorator never contacts an offline device."""

    @dps_read("fan_speed")
    async def test_method(self, value):
        return value

    api._cache.update(is_online=False, fan_speed=20.0)

    assert await test_method(api) == 20.0
    api._async_pull_state.assert_not_awaited()


@pytest.mark.asyncio
async def test_dps_read_with_transform(api):
    """Test dps_read decorator passes the value through the wrapped function."""

    @dps_read("fan_speed")
    async def test_method(self, value):
        return round(value / 10)

    assert await test_method(api) == 8


@pytest.mark.asyncio
async def test_dps_read_failure_returns_cached_value(api):
    """Test dps_read decorator swallows device failures."""

    @dps_read("fan_speed")
    async def test_method(self, value):
        return value

    api._async_pull_state = AsyncMock(side_effect=ConnectionRefusedError(111, "Connection refused"))

    assert await test_method(api) == 0.0
    assert api._cache.state.consecutive_timeouts == 1


@pytest.mark.asyncio
async def test_dps_write_sends_native_value(api, clock):
    """Test dps_write decorator builds the set payload."""

    @dps_write(DPCode.LIGHT_BRIGHTNESS, "light_brightness", normalize=float)
    async def test_method(self, percentage):
        return 505

    result = await test_method(api, 50)

    assert result == 505
    api._client.set.assert_awaited_once_with({"dps": 22, "set": 505})
    assert api._cache.state.light_brightness == 50.0
    assert api._cache.state.last_update == clock.now


@pytest.mark.asyncio
async def test_dps_write_without_normalize(api):
    """Test dps_write decorator caches the raw value without a normalizer."""

    @dps_write(DPCode.FAN_ACTIVE, "fan_active")
    async def test_method(self, active):
        return active

    await test_method(api, True)

    assert api._cache.state.fan_active is True
    api._client.set.assert_awaited_once_with({"dps": 51, "set": True})


@pytest.mark.asyncio
async def test_dps_write_failure(api):
    """Test dps_write decorator re-raises delivery failures."""

    @dps_write(DPCode.LIGHT_ON, "light_on")
    async def test_method(self, on):
        return on

    api._client.set = AsyncMock(side_effect=OSError(113, "No route to host"))

    with pytest.raises(TuyaCommandError) as exc_info:
        await test_method(api, True)

    assert isinstance(exc_info.value.__cause__, OSError)
    assert api._cache.state.light_on is True
    assert api._cache.state.consecutive_timeouts == 1


@pytest.mark.asyncio
async def test_dps_write_short_circuit(api):
    """Test dps_write decorator rejects writes to an offline device."""

    @dps_write(DPCode.FAN_SPEED, "fan_speed", normalize=float)
    async def test_method(self, percentage):
        return 6

    api._cache.update(is_online=False)

    with pytest.raises(TuyaCommandError) as exc_info:
        await test_method(api, 100)

    assert isinstance(exc_info.value.__cause__, TuyaConnectionError)
    api._client.set.assert_not_awaited()
    assert api._cache.state.fan_speed == 100.0


@pytest.mark.asyncio
async def test_dps_read_destroyed_uses_cache(api):
    """Test dps_read decorator stays off the network once destroyed."""

    @dps_read("fan_speed")
    async def test_method(self, value):
        return value

    api.is_destroyed = True

    assert await test_method(api) == 0.0
    api._async_pull_state.assert_not_awaited()


@pytest.mark.asyncio
async def test_dps_write_destroyed(api):
    """Test dps_write decorator rejects writes once destroyed."""

    @dps_write(DPCode.LIGHT_ON, "light_on")
    async def test_method(self, on):
        return on

    api.is_destroyed = True

    with pytest.raises(TuyaCommandError):
        await test_method(api, True)

    api._client.set.assert_not_awaited()
    assert api._cache.state.light_on is False


@pytest.mark.asyncio
async def test_dps_write_invalid_value(api):
    """Test dps_write decorator turns unusable input into TuyaCommandError."""

    @dps_write(DPCode.LIGHT_BRIGHTNESS, "light_brightness", normalize=float)
    async def test_method(self, percentage):
        return int(float(percentage) * 10)

    with pytest.raises(TuyaCommandError) as exc_info:
        await test_method(api, "bright")

    assert isinstance(exc_info.value.__cause__, ValueError)
    api._client.set.assert_not_awaited()
    assert api._cache.state.light_brightness == 0.0


def test_decorators_preserve_metadata():
    """Test that decorators keep the wrapped function's name and docstring."""

    @dps_read("light_on")
    async def async_get_light_on(self, value):
        """Light state."""
        return value

    @dps_write(DPCode.LIGHT_ON, "light_on")
    async def async_set_light_on(self, on):
        """Switch the light."""
        return on

    assert async_get_light_on.__name__ == "async_get_light_on"
    assert async_get_light_on.__doc__ == "Light state."
    assert async_set_light_on.__name__ == "async_set_light_on"
    assert async_set_light_on.__doc__ == "Switch the light."
