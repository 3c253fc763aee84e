"""Infrastructure layer for the Tuya fan/light integration.

This package contains core infrastructure components:
- Operation guard (timeouts, short-circuiting, failure hand-off)
- Error definitions and failure classification
"""

from .errors import (
    TuyaCommandError,
    TuyaConnectionError,
    TuyaFanLightError,
    TuyaOperationTimeout,
    TuyaProtocolError,
    TuyaValidationError,
    is_connection_error,
)
from .guard import OperationGuard

__all__ = [
    # Guard
    "OperationGuard",
    # Errors
    "TuyaFanLightError",
    "TuyaConnectionError",
    "TuyaOperationTimeout",
    "TuyaProtocolError",
    "TuyaCommandError",
    "TuyaValidationError",
    "is_connection_error",
]
