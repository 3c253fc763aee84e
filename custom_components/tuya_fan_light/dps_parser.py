"""Validation and decoding of device replies.

A reply from the protocol client is a mapping with a ``dps`` mapping of
data-point code to value. This module decides whether a reply is usable and
turns it into DeviceState field updates:

- INVALID: not a reply at all, or no meaningful code with the right type
- PENDING: the device is alive but has not reported real state yet
  (reconnection in progress, or only power-up housekeeping codes)
- DATA: at least one meaningful code is present and can be decoded
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from .constants import (
    BRIGHTNESS_MAX,
    BRIGHTNESS_MIN,
    FAN_SPEED_MAX,
    FAN_SPEED_MIN,
    INIT_DPS_CODES,
    DPCode,
)
from .models import (
    DeviceState,
    brightness_to_percent,
    clamp,
    fan_speed_to_percent,
)


class ResponseStatus(Enum):
    """Classification of a device reply."""

    INVALID = "invalid"
    PENDING = "pending"
    DATA = "data"


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid speed or brightness
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _has_expected_type(code: DPCode, value: Any) -> bool:
    if code.is_switch:
        return isinstance(value, bool)
    return _is_number(value)


def get_dps(reply: Any) -> Mapping[str, Any] | None:
    """Return the dps mapping of a reply, or None if there is none."""
    if not isinstance(reply, Mapping):
        return None
    dps = reply.get("dps")
    if not isinstance(dps, Mapping):
        return None
    return dps


def classify_response(reply: Any, reconnecting: bool = False) -> ResponseStatus:
    """Classify a raw reply from the protocol client.

    Args:
        reply: Raw reply object.
        reconnecting: True while the session is recovering from connection
            errors. Replies received then are acknowledged but not applied.

    Returns:
        The ResponseStatus of the reply.

    Example:
        >>> classify_response({"dps": {"51": True, "53": 4}})
        <ResponseStatus.DATA: 'data'>
        >>> classify_response({"dps": {"33": 0, "35": 1}})
        <ResponseStatus.PENDING: 'pending'>
        >>> classify_response({"dps": {"53": "fast"}})
        <ResponseStatus.INVALID: 'invalid'>
    """
    dps = get_dps(reply)
    if dps is None:
        return ResponseStatus.INVALID

    keys = [str(key) for key in dps]
    if reconnecting or all(key in INIT_DPS_CODES for key in keys):
        return ResponseStatus.PENDING

    for code in DPCode:
        if code.value in dps and _has_expected_type(code, dps[code.value]):
            return ResponseStatus.DATA
    return ResponseStatus.INVALID


def is_valid_response(reply: Any, reconnecting: bool = False) -> bool:
    """Return True if reply is well-formed (with or without actionable data)."""
    return classify_response(reply, reconnecting) is not ResponseStatus.INVALID


def parse_dps_value(dps: Mapping[str, Any], code: DPCode | str, fallback: Any) -> Any:
    """Extract one data-point value with type coercion and clamping.

    Args:
        dps: The dps mapping of a reply.
        code: Data-point code to extract.
        fallback: Value returned when the code is absent or unknown.

    Returns:
        bool for on/off codes, a native int/float clamped to the code's
        range for speed and brightness, otherwise fallback.

    Example:
        >>> parse_dps_value({"53": 9}, DPCode.FAN_SPEED, 1)
        6
        >>> parse_dps_value({"22": "dim"}, DPCode.LIGHT_BRIGHTNESS, 500)
        10
        >>> parse_dps_value({}, DPCode.LIGHT_ON, True)
        True
    """
    key = code.value if isinstance(code, DPCode) else str(code)
    if key not in dps:
        return fallback

    try:
        code = DPCode(key)
    except ValueError:
        return fallback

    value = dps[key]
    if code.is_switch:
        return value is True
    if code is DPCode.FAN_SPEED:
        return clamp(value, FAN_SPEED_MIN, FAN_SPEED_MAX) if _is_number(value) else FAN_SPEED_MIN
    # DPCode.LIGHT_BRIGHTNESS
    return clamp(value, BRIGHTNESS_MIN, BRIGHTNESS_MAX) if _is_number(value) else BRIGHTNESS_MIN


def decode_state(dps: Mapping[str, Any], current: DeviceState) -> dict[str, Any]:
    """Decode a DATA reply into DeviceState field updates.

    Codes missing from the reply keep the current values.

    Example:
        >>> decode_state({"51": True, "53": 4}, DeviceState())["fan_speed"]
        60.0
    """
    fan_speed = parse_dps_value(dps, DPCode.FAN_SPEED, current.native_fan_speed)
    brightness = parse_dps_value(dps, DPCode.LIGHT_BRIGHTNESS, current.native_brightness)

    return {
        "fan_active": parse_dps_value(dps, DPCode.FAN_ACTIVE, current.fan_active),
        "fan_speed": fan_speed_to_percent(fan_speed),
        "light_on": parse_dps_value(dps, DPCode.LIGHT_ON, current.light_on),
        "light_brightness": brightness_to_percent(brightness),
    }
