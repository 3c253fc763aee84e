"""Input validation functions for the Tuya fan/light integration.

Checks for the device identity handed to a session: the LAN address, the
Tuya device id, the local key and the protocol version. Each validator
returns an (is_valid, error_message) tuple and backs a DeviceConfig field.
"""

from __future__ import annotations

import ipaddress
import re

from .constants import SUPPORTED_PROTOCOL_VERSIONS

_HOSTNAME_LABEL = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")


def validate_host(host: str) -> tuple[bool, str | None]:
    """Validate the address the device listens on.

    Tuya controllers are reached on TCP port 6668 of their LAN address.
    Any IP address is accepted, as is a plain DNS name; ports, paths and
    URLs are not.

    Example:
        >>> validate_host("192.168.1.40")
        (True, None)
        >>> validate_host("ceiling-fan.lan")
        (True, None)
        >>> validate_host("192.168.1.40:6668")
        (False, 'Host must be an IP address or hostname')
    """
    host = host.strip()
    if not host:
        return False, "Host cannot be empty"

    try:
        ipaddress.ip_address(host)
    except ValueError:
        pass
    else:
        return True, None

    labels = host.removesuffix(".").split(".")
    if len(host) > 253 or not all(_HOSTNAME_LABEL.match(label) for label in labels):
        return False, "Host must be an IP address or hostname"

    return True, None


def validate_device_id(device_id: str) -> tuple[bool, str | None]:
    """Validate a Tuya device id.

    Device ids are alphanumeric strings, typically 20 or 22 characters long.

    Example:
        >>> validate_device_id("bf1234567890abcdefgh")
        (True, None)
        >>> validate_device_id("bf12/34")
        (False, "Device id must be alphanumeric")
    """
    if not device_id:
        return False, "Device id cannot be empty"

    if not device_id.isalnum():
        return False, "Device id must be alphanumeric"

    if not 10 <= len(device_id) <= 32:
        return False, "Device id must be 10-32 characters"

    return True, None


def validate_local_key(local_key: str) -> tuple[bool, str | None]:
    """Validate a local key.

    The local key is the 16-character AES key the device encrypts its LAN
    traffic with.

    Example:
        >>> validate_local_key("0123456789abcdef")
        (True, None)
        >>> validate_local_key("short")
        (False, "Local key must be 16 characters")
    """
    if not local_key:
        return False, "Local key cannot be empty"

    if len(local_key) != 16:
        return False, "Local key must be 16 characters"

    if not local_key.isprintable() or " " in local_key:
        return False, "Local key contains invalid characters"

    return True, None


def validate_protocol_version(version: float) -> tuple[bool, str | None]:
    """Validate the Tuya LAN protocol version.

    Example:
        >>> validate_protocol_version(3.3)
        (True, None)
        >>> validate_protocol_version(2.0)
        (False, "Unsupported protocol version: 2.0")
    """
    if version not in SUPPORTED_PROTOCOL_VERSIONS:
        return False, f"Unsupported protocol version: {version}"

    return True, None
