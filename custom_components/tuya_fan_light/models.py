"""Data models for the Tuya fan/light integration.

This module provides Pydantic models for the session state and the device
identity, plus the conversion functions between the device's native value
ranges and the 0-100 percentages used at the upstream boundary.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import (
    BRIGHTNESS_MAX,
    BRIGHTNESS_MIN,
    DEFAULT_DEVICE_NAME,
    DEFAULT_PROTOCOL_VERSION,
    FAN_SPEED_MAX,
    FAN_SPEED_MIN,
)
from .validators import (
    validate_device_id,
    validate_host,
    validate_local_key,
    validate_protocol_version,
)


# Base model for all data models of the integration
class TuyaFanLightModel(BaseModel):
    """Base model for all Tuya fan/light data structures."""

    model_config = {"validate_assignment": True, "populate_by_name": True}


# Utility functions for value range conversion
def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for positive values.

    Python's round() uses banker's rounding, which would map 0.5 to 0. The
    device expects the conventional rounding.

    Example:
        >>> round_half_up(0.5)
        1
        >>> round_half_up(2.5)
        3
    """
    return math.floor(value + 0.5)


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def fan_speed_to_percent(native: int) -> float:
    """Convert a native fan speed step (1-6) to a percentage.

    Example:
        >>> fan_speed_to_percent(4)
        60.0
    """
    native = clamp(native, FAN_SPEED_MIN, FAN_SPEED_MAX)
    return (native - FAN_SPEED_MIN) / (FAN_SPEED_MAX - FAN_SPEED_MIN) * 100


def percent_to_fan_speed(percentage: float) -> int:
    """Convert a percentage to a native fan speed step (1-6).

    Example:
        >>> percent_to_fan_speed(60.0)
        4
        >>> percent_to_fan_speed(0)
        1
    """
    percentage = clamp(percentage, 0, 100)
    step = round_half_up(percentage / 100 * (FAN_SPEED_MAX - FAN_SPEED_MIN))
    return int(clamp(step + FAN_SPEED_MIN, FAN_SPEED_MIN, FAN_SPEED_MAX))


def brightness_to_percent(native: int) -> float:
    """Convert a native brightness (10-1000) to a percentage.

    Example:
        >>> brightness_to_percent(505)
        50.0
    """
    native = clamp(native, BRIGHTNESS_MIN, BRIGHTNESS_MAX)
    return (native - BRIGHTNESS_MIN) / (BRIGHTNESS_MAX - BRIGHTNESS_MIN) * 100


def percent_to_brightness(percentage: float) -> int:
    """Convert a percentage to a native brightness (10-1000).

    Example:
        >>> percent_to_brightness(50)
        505
    """
    percentage = clamp(percentage, 0, 100)
    native = round_half_up(percentage / 100 * (BRIGHTNESS_MAX - BRIGHTNESS_MIN))
    return int(clamp(native + BRIGHTNESS_MIN, BRIGHTNESS_MIN, BRIGHTNESS_MAX))


class DeviceState(TuyaFanLightModel):
    """Last known state of a fan/light device plus connection bookkeeping.

    Immutable; the session replaces the whole instance on every change so a
    reader never observes a half-applied update. Timestamps are monotonic
    seconds. last_update is None until the first successful decode or write.

    Attributes:
        fan_active: Fan motor on/off.
        fan_speed: Fan speed as percentage (0-100).
        light_on: Light on/off.
        light_brightness: Light brightness as percentage (0-100).
        last_update: Time of the last successful decode or write, or None.
        is_online: Whether the device is considered reachable.
        retry_count: Reconnection attempts in the current backoff cycle.
        consecutive_timeouts: Connection errors since the last success.
        last_connection_attempt: Time of the last failed connection attempt.
        last_error: Message of the most recent failure.

    Example:
        >>> state = DeviceState()
        >>> state.is_online
        True
    """

    model_config = {"frozen": True}

    fan_active: bool = Field(default=False, description="Fan motor on/off")
    fan_speed: float = Field(default=0.0, ge=0.0, le=100.0, description="Fan speed in percent")
    light_on: bool = Field(default=False, description="Light on/off")
    light_brightness: float = Field(
        default=0.0, ge=0.0, le=100.0, description="Light brightness in percent"
    )
    last_update: float | None = Field(default=None, ge=0.0, description="Last successful decode")
    is_online: bool = Field(default=True, description="Device considered reachable")
    retry_count: int = Field(default=0, ge=0, description="Retries in current backoff cycle")
    consecutive_timeouts: int = Field(
        default=0, ge=0, description="Connection errors since last success"
    )
    last_connection_attempt: float = Field(
        default=0.0, ge=0.0, description="Last failed connection attempt"
    )
    last_error: str | None = Field(default=None, description="Most recent failure message")

    @property
    def native_fan_speed(self) -> int:
        """Fan speed in the device's native 1-6 range."""
        return percent_to_fan_speed(self.fan_speed)

    @property
    def native_brightness(self) -> int:
        """Brightness in the device's native 10-1000 range."""
        return percent_to_brightness(self.light_brightness)


class DeviceConfig(TuyaFanLightModel):
    """Identity of a device on the local network.

    Immutable Pydantic model built from the user's device configuration.
    Credentials are only held in memory for the session's lifetime.

    Attributes:
        device_id: Tuya device id.
        local_key: 16-character local encryption key.
        host: IP address or hostname of the device.
        protocol_version: Tuya LAN protocol version.
        name: Human-readable device name used in logs.

    Example:
        >>> config = DeviceConfig(
        ...     device_id="bf1234567890abcdefgh",
        ...     local_key="0123456789abcdef",
        ...     host="192.168.1.40",
        ... )
        >>> config.protocol_version
        3.3
    """

    model_config = {"frozen": True}

    device_id: str = Field(..., description="Tuya device id")
    local_key: str = Field(..., repr=False, description="Local encryption key")
    host: str = Field(..., description="IP address or hostname")
    protocol_version: float = Field(
        default=DEFAULT_PROTOCOL_VERSION, description="Tuya LAN protocol version"
    )
    name: str = Field(default=DEFAULT_DEVICE_NAME, min_length=1, description="Display name")

    @field_validator("device_id")
    @classmethod
    def _check_device_id(cls, value: str) -> str:
        valid, error = validate_device_id(value)
        if not valid:
            raise ValueError(error)
        return value

    @field_validator("local_key")
    @classmethod
    def _check_local_key(cls, value: str) -> str:
        valid, error = validate_local_key(value)
        if not valid:
            raise ValueError(error)
        return value

    @field_validator("host")
    @classmethod
    def _check_host(cls, value: str) -> str:
        value = value.strip()
        valid, error = validate_host(value)
        if not valid:
            raise ValueError(error)
        return value

    @field_validator("protocol_version")
    @classmethod
    def _check_protocol_version(cls, value: float) -> float:
        valid, error = validate_protocol_version(value)
        if not valid:
            raise ValueError(error)
        return value

    @classmethod
    def from_dict(cls, device_dict: dict[str, Any]) -> DeviceConfig | None:
        """Parse a device entry from user configuration.

        Accepts the keys used by the device configuration file
        (``id``, ``key``, ``ip``, ``version``, ``name``).

        Returns:
            DeviceConfig instance, or None if the entry is unusable.
        """
        try:
            return cls(
                device_id=str(device_dict.get("id", "")),
                local_key=str(device_dict.get("key", "")),
                host=str(device_dict.get("ip", "")),
                protocol_version=float(device_dict.get("version", DEFAULT_PROTOCOL_VERSION)),
                name=device_dict.get("name") or DEFAULT_DEVICE_NAME,
            )
        except (ValidationError, ValueError, TypeError):
            return None
