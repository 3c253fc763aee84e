"""Session manager for one Tuya ceiling fan with light.

The session keeps a best-effort view of the device state and exposes
getters that never block longer than the operation timeout and never raise,
and setters that update the cached state optimistically and report delivery
failures to the caller.

Usage:
    session = TuyaFanLightSession(client, {"id": ..., "key": ..., "ip": ...})
    unsubscribe = session.async_add_online_listener(on_status)
    await session.async_start()
    speed = await session.async_get_fan_speed_percent()
    await session.async_set_light_on(True)
    session.destroy()
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from .api_decorators import dps_read, dps_write
from .client import ClientEvent, ProtocolClient
from .connection import ConnectionStateMachine
from .constants import GET_OPTIONS, SESSION_DEFAULTS, DPCode, SessionSettings
from .dps_parser import ResponseStatus, classify_response, decode_state
from .infrastructure.errors import TuyaProtocolError, TuyaValidationError
from .infrastructure.guard import OperationGuard
from .models import (
    DeviceConfig,
    DeviceState,
    clamp,
    percent_to_brightness,
    percent_to_fan_speed,
)
from .state_cache import StateCache

_LOGGER = logging.getLogger(__name__)


def _normalize_percent(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError(f"Expected a percentage, got {value!r}")
    return float(clamp(float(value), 0.0, 100.0))


def _normalize_switch(value: Any) -> bool:
    # Booleans and 0/1 only; strings such as "off" are rejected
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValueError(f"Expected an on/off value, got {value!r}")


class TuyaFanLightSession:
    """Resilient, cached access to one fan/light device."""

    def __init__(
        self,
        client: ProtocolClient,
        device: DeviceConfig | Mapping[str, Any] | None = None,
        settings: SessionSettings = SESSION_DEFAULTS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the session and subscribe to client events.

        Args:
            client: Protocol client connected to the device
            device: Device identity, as DeviceConfig or raw config dict
            settings: Timing and threshold configuration
            clock: Monotonic time source in seconds

        Raises:
            TuyaValidationError: If a raw device config dict is unusable.
        """
        if isinstance(device, Mapping):
            parsed = DeviceConfig.from_dict(device)
            if parsed is None:
                raise TuyaValidationError(f"Invalid device configuration: {device.get('id')!r}")
            device = parsed

        self.device = device
        self.name = device.name if device is not None else "device"
        self.settings = settings

        self._client = client
        self._cache = StateCache(settings.CACHE_TTL, clock=clock)
        self._connection = ConnectionStateMachine(
            self._cache,
            retry_callback=self._async_retry_attempt,
            status_callback=self._notify_online_status,
            settings=settings,
            name=self.name,
        )
        self._guard = OperationGuard(self._cache, self._connection, settings)

        self._listeners: list[Callable[[DeviceState], None]] = []
        self._online_listeners: list[Callable[[bool], None]] = []
        self._refresh_task: asyncio.Task | None = None
        self._destroyed = False

        # Single dispatch table for everything the client emits
        self._event_handlers: dict[ClientEvent, Callable[..., None]] = {
            ClientEvent.CONNECTED: self._handle_connected,
            ClientEvent.DISCONNECTED: self._handle_disconnected,
            ClientEvent.ERROR: self._handle_error,
            ClientEvent.DATA: self._handle_data,
        }
        for event, handler in self._event_handlers.items():
            client.on(event.value, handler)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> DeviceState:
        """Snapshot of the current device state."""
        return self._cache.state

    @property
    def is_online(self) -> bool:
        return self._cache.state.is_online

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def async_start(self, connect: bool = True) -> None:
        """Start the periodic refresh and optionally connect to the device."""
        if self._destroyed:
            raise RuntimeError(f"Session for {self.name} has been destroyed")
        if self._refresh_task is None:
            self._refresh_task = asyncio.get_running_loop().create_task(
                self._async_refresh_loop(), name=f"tuya_fan_light refresh {self.name}"
            )
        if connect:
            await self._guard.run(self._client.connect)

    def destroy(self) -> None:
        """Release all timers and detach from the protocol client."""
        if self._destroyed:
            return
        self._destroyed = True

        if self._refresh_task is not None:
            self._refresh_task.cancel()
            self._refresh_task = None
        self._connection.shutdown()

        for event, handler in self._event_handlers.items():
            self._client.off(event.value, handler)
        self._listeners.clear()
        self._online_listeners.clear()
        _LOGGER.debug("Session for %s destroyed", self.name)

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def async_add_listener(self, update_callback: Callable[[DeviceState], None]) -> Callable[[], None]:
        """Register a callback for decoded state updates.

        Returns:
            Function removing the callback again.
        """
        self._listeners.append(update_callback)

        def remove_listener() -> None:
            if update_callback in self._listeners:
                self._listeners.remove(update_callback)

        return remove_listener

    def async_add_online_listener(self, status_callback: Callable[[bool], None]) -> Callable[[], None]:
        """Register a callback for online/offline transitions.

        Returns:
            Function removing the callback again.
        """
        self._online_listeners.append(status_callback)

        def remove_listener() -> None:
            if status_callback in self._online_listeners:
                self._online_listeners.remove(status_callback)

        return remove_listener

    def _notify_online_status(self, online: bool) -> None:
        for status_callback in list(self._online_listeners):
            try:
                status_callback(online)
            except Exception:
                _LOGGER.exception("Error in online status listener for %s", self.name)

    def _notify_listeners(self) -> None:
        state = self._cache.state
        for update_callback in list(self._listeners):
            try:
                update_callback(state)
            except Exception:
                _LOGGER.exception("Error in state listener for %s", self.name)

    # -------------------------------------------------------------------------
    # Client events
    # -------------------------------------------------------------------------

    def _handle_connected(self, *args) -> None:
        if self._destroyed:
            return
        self._connection.mark_online()

    def _handle_disconnected(self, *args) -> None:
        if self._destroyed:
            return
        self._connection.mark_offline()

    def _handle_error(self, err: BaseException, *args) -> None:
        if self._destroyed:
            return
        self._connection.record_failure(err)

    def _handle_data(self, reply: Any, *args) -> None:
        if self._destroyed:
            return
        try:
            self._apply_reply(reply)
        except TuyaProtocolError as err:
            self._connection.record_failure(err)

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    async def _async_refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.REFRESH_INTERVAL)
            await self.async_refresh()

    async def async_refresh(self) -> None:
        """Pull the device state unless the cache or connection make it pointless."""
        if self._destroyed:
            return

        if self._connection.retries_exhausted:
            _LOGGER.debug("Skipping refresh of %s, waiting for scheduled retry", self.name)
            return

        if self._cache.is_fresh():
            return

        await self._async_refresh_now()

    async def _async_refresh_now(self) -> None:
        try:
            await self._guard.call_with_timeout(self._async_pull_state)
        except Exception as err:
            self._connection.record_failure(err)

    async def _async_retry_attempt(self) -> None:
        if self._destroyed:
            return
        self._connection.begin_retry_attempt()
        await self._async_refresh_now()

        if not self._destroyed and not self.is_online:
            self._connection.schedule_retry()

    async def _async_pull_state(self) -> DeviceState:
        reply = await self._client.get(dict(GET_OPTIONS))
        self._apply_reply(reply)
        return self._cache.state

    def _apply_reply(self, reply: Any) -> None:
        """Validate a reply and fold it into the cached state.

        Raises:
            TuyaProtocolError: If the reply is malformed.
        """
        status = classify_response(reply, reconnecting=self._connection.is_reconnecting)

        if status is ResponseStatus.INVALID:
            _LOGGER.debug("Invalid device response from %s: %r", self.name, reply)
            raise TuyaProtocolError("Invalid device response format")

        if status is ResponseStatus.PENDING:
            # Alive but no real state yet; wait for the next poll
            _LOGGER.debug("Device %s answered without state data: %r", self.name, reply)
            self._connection.reset_timeouts()
            return

        values = decode_state(reply["dps"], self._cache.state)
        self._cache.update(**values, last_update=self._cache.now(), last_error=None)
        self._connection.mark_online()
        _LOGGER.debug("State of %s refreshed: %s", self.name, self._cache.state)
        self._notify_listeners()

    # -------------------------------------------------------------------------
    # Getters
    # -------------------------------------------------------------------------

    @dps_read("fan_active")
    async def async_get_fan_active(self, value: bool) -> bool:
        return value

    @dps_read("fan_speed")
    async def async_get_fan_speed_percent(self, value: float) -> float:
        return value

    @dps_read("light_on")
    async def async_get_light_on(self, value: bool) -> bool:
        return value

    @dps_read("light_brightness")
    async def async_get_light_brightness_percent(self, value: float) -> float:
        return value

    # -------------------------------------------------------------------------
    # Setters
    # -------------------------------------------------------------------------

    @dps_write(DPCode.FAN_ACTIVE, "fan_active", normalize=_normalize_switch)
    async def async_set_fan_active(self, active: bool) -> bool:
        return _normalize_switch(active)

    @dps_write(DPCode.FAN_SPEED, "fan_speed", normalize=_normalize_percent)
    async def async_set_fan_speed_percent(self, percentage: float) -> int:
        return percent_to_fan_speed(_normalize_percent(percentage))

    @dps_write(DPCode.LIGHT_ON, "light_on", normalize=_normalize_switch)
    async def async_set_light_on(self, on: bool) -> bool:
        return _normalize_switch(on)

    @dps_write(DPCode.LIGHT_BRIGHTNESS, "light_brightness", normalize=_normalize_percent)
    async def async_set_light_brightness_percent(self, percentage: float) -> int:
        return percent_to_brightness(_normalize_percent(percentage))
