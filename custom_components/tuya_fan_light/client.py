"""Contract of the protocol client a session drives.

The session does not speak the Tuya LAN protocol itself. It talks to a
long-lived client handle for one device that offers coroutine-based
connect/get/set calls and an event emitter interface.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class ClientEvent(str, Enum):
    """Events emitted by the protocol client."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    DATA = "data"


@runtime_checkable
class ProtocolClient(Protocol):
    """Handle to one device on the local network.

    Implementations emit CONNECTED and DISCONNECTED without arguments,
    ERROR with the exception and DATA with a raw reply mapping. Callbacks
    are invoked on the event loop thread.
    """

    async def connect(self) -> Any:
        """Open the connection to the device."""

    async def get(self, options: dict[str, Any]) -> Any:
        """Request the device state; returns a raw reply with a ``dps`` mapping."""

    async def set(self, options: dict[str, Any]) -> Any:
        """Write a data point, e.g. ``{"dps": 20, "set": True}``."""

    def on(self, event: str, callback: Callable[..., None]) -> Any:
        """Register callback for event."""

    def off(self, event: str, callback: Callable[..., None]) -> Any:
        """Remove a callback registered with on()."""
