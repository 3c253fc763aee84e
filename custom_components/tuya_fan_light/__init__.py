"""Resilient local control of Tuya ceiling fans with light.

The integration keeps an always-available view of a fan/light controller
behind an unreliable LAN connection. See session.TuyaFanLightSession for the
upstream get/set interface.
"""

from .client import ClientEvent, ProtocolClient
from .constants import DOMAIN, SESSION_DEFAULTS, DPCode, SessionSettings
from .infrastructure import (
    TuyaCommandError,
    TuyaConnectionError,
    TuyaFanLightError,
    TuyaOperationTimeout,
    TuyaProtocolError,
    TuyaValidationError,
)
from .models import DeviceConfig, DeviceState
from .session import TuyaFanLightSession

__all__ = [
    "DOMAIN",
    "SESSION_DEFAULTS",
    "ClientEvent",
    "DPCode",
    "DeviceConfig",
    "DeviceState",
    "ProtocolClient",
    "SessionSettings",
    "TuyaCommandError",
    "TuyaConnectionError",
    "TuyaFanLightError",
    "TuyaFanLightSession",
    "TuyaOperationTimeout",
    "TuyaProtocolError",
    "TuyaValidationError",
]
