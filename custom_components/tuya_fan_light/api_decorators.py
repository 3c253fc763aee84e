# api_decorators.py
"""Decorators for unified device getter/setter patterns.

These decorators provide a clean, consistent way to define the session's
upstream API by handling the common patterns of every data point: cache
lookup, bounded device round trips, optimistic updates and error handling.

Read path:
    A getter serves the cached value while it is fresh or while the device
    is offline. Otherwise it pulls the state through the operation guard,
    which never raises, and serves whatever the cache holds afterwards.

Write path:
    A setter applies the requested value to the cache first, so upstream
    state always follows the user's last action, then delivers the command.
    Delivery failures are classified once and re-raised as TuyaCommandError.

Usage:
    @dps_read("fan_speed")
    async def async_get_fan_speed_percent(self, value):
        return value

    @dps_write(DPCode.FAN_SPEED, "fan_speed", normalize=normalize_percent)
    async def async_set_fan_speed_percent(self, percentage):
        return percent_to_fan_speed(percentage)
"""

import functools
import logging
from collections.abc import Callable
from typing import Any

from .constants import DPCode
from .infrastructure.errors import TuyaCommandError, TuyaConnectionError

_LOGGER = logging.getLogger(__name__)


def dps_read(field: str):
    """Decorator for state getters.

    The decorated coroutine receives the current value of the DeviceState
    field and returns it in the shape the caller expects.

    Args:
        field: DeviceState attribute backing the getter.

    Example:
        @dps_read("light_on")
        async def async_get_light_on(self, value):
            return bool(value)
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            # Fresh, unreachable or destroyed: answer from cache
            if not (self._cache.is_fresh() or not self.is_online or self.is_destroyed):
                await self._guard.run(self._async_pull_state)

            value = getattr(self._cache.state, field)
            return await func(self, value, *args, **kwargs)

        return wrapper

    return decorator


def dps_write(code: DPCode, field: str, *, normalize: Callable[[Any], Any] | None = None):
    """Decorator for state setters.

    The decorated coroutine receives the upstream value and returns the
    native value to send for the data point.

    Handles:
    - Rejection of unusable input and of destroyed sessions
    - Optimistic cache update (normalize(value), or value itself)
    - Offline / short-circuit rejection without network traffic
    - Timeout racing of the write
    - Failure classification and TuyaCommandError propagation

    Args:
        code: Data point written by the setter.
        field: DeviceState attribute updated optimistically.
        normalize: Converts the upstream value to the cached representation.

    Example:
        @dps_write(DPCode.LIGHT_ON, "light_on", normalize=bool)
        async def async_set_light_on(self, on):
            return bool(on)
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, value, *args, **kwargs):
            if self.is_destroyed:
                raise TuyaCommandError(
                    f"Cannot set {code.name.lower()} on {self.name}: session destroyed"
                )

            try:
                native = await func(self, value, *args, **kwargs)
                cached = normalize(value) if normalize is not None else value
            except (TypeError, ValueError) as err:
                raise TuyaCommandError(
                    f"Invalid value for {code.name.lower()} on {self.name}: {value!r}"
                ) from err

            # Reflect the requested value even if the device never receives it
            self._cache.update(**{field: cached})

            if self._guard.should_short_circuit():
                cause = TuyaConnectionError(f"Device {self.name} is unreachable")
                raise TuyaCommandError(
                    f"Cannot set {code.name.lower()} on {self.name}: device offline"
                ) from cause

            payload = {"dps": int(code.value), "set": native}
            try:
                await self._guard.call_with_timeout(lambda: self._client.set(payload))
            except Exception as err:
                self._connection.record_failure(err)
                raise TuyaCommandError(
                    f"Failed to set {code.name.lower()} on {self.name}: {err}"
                ) from err

            self._connection.reset_timeouts()
            self._cache.touch()
            _LOGGER.debug("Set %s %s -> %r (native %r)", self.name, field, cached, native)
            return native

        return wrapper

    return decorator
