"""Constants and Enums for the Tuya fan/light integration."""

from __future__ import annotations

import errno
from enum import Enum

from pydantic import BaseModel, Field

# Integration Domain
DOMAIN = "tuya_fan_light"


class DPCode(str, Enum):
    """Data-point codes understood by the fan/light controller.

    The device reports and accepts state keyed by these numeric strings:
    - LIGHT_ON: Light on/off (bool)
    - LIGHT_BRIGHTNESS: Light brightness (10-1000)
    - FAN_ACTIVE: Fan on/off (bool)
    - FAN_SPEED: Fan speed step (1-6)
    """

    LIGHT_ON = "20"
    LIGHT_BRIGHTNESS = "22"
    FAN_ACTIVE = "51"
    FAN_SPEED = "53"

    @property
    def is_switch(self) -> bool:
        """Whether this code carries a boolean on/off value."""
        return self in (DPCode.LIGHT_ON, DPCode.FAN_ACTIVE)


# Codes the controller emits while powering up. They carry no user-visible
# state and show up alone in the first replies after a reboot.
INIT_DPS_CODES: frozenset[str] = frozenset({"33", "35"})

# Native (device-side) value ranges
FAN_SPEED_MIN = 1
FAN_SPEED_MAX = 6
BRIGHTNESS_MIN = 10
BRIGHTNESS_MAX = 1000

# Options passed to the protocol client on every state pull
GET_OPTIONS = {"schema": True}

# Substrings identifying network-level failures in error messages
CONNECTION_ERROR_SIGNATURES: tuple[str, ...] = (
    "ehostunreach",
    "etimedout",
    "econnrefused",
    "host unreachable",
    "no route to host",
    "timed out",
    "connection refused",
)

CONNECTION_ERRNOS: frozenset[int] = frozenset(
    {
        errno.ECONNREFUSED,
        errno.EHOSTUNREACH,
        errno.ETIMEDOUT,
        errno.ENETUNREACH,
    }
)

SUPPORTED_PROTOCOL_VERSIONS: tuple[float, ...] = (3.1, 3.3, 3.4, 3.5)
DEFAULT_PROTOCOL_VERSION = 3.3
DEFAULT_DEVICE_NAME = "Tuya Fan"


class SessionSettings(BaseModel):
    """Timing and threshold configuration for a device session.

    Immutable configuration values for caching, timeouts and reconnection.
    All durations are in seconds. Pass a customised instance to
    TuyaFanLightSession to override the defaults.
    """

    model_config = {"frozen": True}

    CACHE_TTL: float = Field(
        default=0.5,
        ge=0.0,
        description="How long a decoded state is served without asking the device",
    )
    OPERATION_TIMEOUT: float = Field(
        default=1.0, gt=0.0, description="Upper bound for a single device operation"
    )
    REFRESH_INTERVAL: float = Field(
        default=10.0, gt=0.0, description="Period of the background state refresh"
    )
    BASE_RETRY_DELAY: float = Field(
        default=5.0, gt=0.0, description="First reconnection delay after going offline"
    )
    MAX_RETRY_DELAY: float = Field(
        default=300.0,
        gt=0.0,
        description="Ceiling for reconnection delays, also the heartbeat period once a backoff cycle is exhausted",
    )
    MAX_RETRIES: int = Field(
        default=3, ge=1, description="Escalating retries in one backoff cycle"
    )
    TIMEOUT_THRESHOLD: int = Field(
        default=3,
        ge=1,
        description="Consecutive connection errors before the device is considered offline",
    )
    SHORT_CIRCUIT_WINDOW: float = Field(
        default=5.0,
        ge=0.0,
        description="Window after a failed attempt in which operations are skipped once the threshold is hit",
    )


# Create a default instance for easy access
SESSION_DEFAULTS = SessionSettings()
