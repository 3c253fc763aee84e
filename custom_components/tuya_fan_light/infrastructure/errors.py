"""Custom exceptions for the Tuya fan/light integration."""

from ..constants import CONNECTION_ERRNOS, CONNECTION_ERROR_SIGNATURES


class TuyaFanLightError(Exception):
    """Base exception for the Tuya fan/light integration."""


class TuyaConnectionError(TuyaFanLightError):
    """Raised when the device cannot be reached."""


class TuyaOperationTimeout(TuyaFanLightError):
    """Raised when a device operation exceeds its local time budget."""


class TuyaProtocolError(TuyaFanLightError):
    """Raised when the device replies with an unexpected payload."""


class TuyaCommandError(TuyaFanLightError):
    """Raised when a state change could not be delivered to the device."""


class TuyaValidationError(TuyaFanLightError):
    """Raised when device configuration fails validation."""


def is_connection_error(err: BaseException) -> bool:
    """Return True if err is a network-level failure.

    Connection errors drive the offline transition and the reconnection
    backoff. Everything else is treated as a protocol or unknown error.

    Args:
        err: Exception raised by a device operation.

    Returns:
        True for unreachable hosts, refused connections and timeouts.

    Example:
        >>> is_connection_error(ConnectionRefusedError(111, "Connection refused"))
        True
        >>> is_connection_error(Exception("connect ECONNREFUSED 192.168.1.20:6668"))
        True
        >>> is_connection_error(TuyaProtocolError("Invalid device response format"))
        False
    """
    if isinstance(err, TuyaProtocolError):
        return False
    if isinstance(err, (TuyaConnectionError, TuyaOperationTimeout, ConnectionError, TimeoutError)):
        return True
    if isinstance(err, OSError) and err.errno in CONNECTION_ERRNOS:
        return True

    message = str(err).lower()
    return any(signature in message for signature in CONNECTION_ERROR_SIGNATURES)
