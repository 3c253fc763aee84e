"""Bounded-latency wrapper around device operations.

Every call into the protocol client goes through the OperationGuard:
- Operations are raced against a fixed timeout
- Offline devices are not contacted at all
- Right after repeated connection errors, operations are skipped for a
  short window instead of piling up
- Failures are handed to the connection state machine exactly once
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from ..constants import SESSION_DEFAULTS, SessionSettings
from .errors import TuyaOperationTimeout

if TYPE_CHECKING:
    from ..connection import ConnectionStateMachine
    from ..state_cache import StateCache

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class OperationGuard:
    """Runs device operations with a timeout and a safe fallback.

    Attributes:
        operation_timeout: Seconds an operation may take before it is abandoned
    """

    def __init__(
        self,
        cache: StateCache,
        connection: ConnectionStateMachine,
        settings: SessionSettings = SESSION_DEFAULTS,
    ):
        self._cache = cache
        self._connection = connection
        self._settings = settings
        self.operation_timeout = settings.OPERATION_TIMEOUT

    def should_short_circuit(self) -> bool:
        """Check whether operations must not reach the device right now.

        Returns:
            True when offline, or when the timeout threshold is reached and
            the last failed attempt is younger than SHORT_CIRCUIT_WINDOW.
        """
        state = self._cache.state
        if not state.is_online:
            return True
        return (
            state.consecutive_timeouts >= self._settings.TIMEOUT_THRESHOLD
            and self._cache.now() - state.last_connection_attempt
            < self._settings.SHORT_CIRCUIT_WINDOW
        )

    async def call_with_timeout(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Race operation against the operation timeout.

        Raises:
            TuyaOperationTimeout: If the operation did not finish in time.
            Exception: Whatever the operation raised.
        """
        try:
            return await asyncio.wait_for(operation(), timeout=self.operation_timeout)
        except TimeoutError as err:
            raise TuyaOperationTimeout("Operation timed out") from err

    async def run(self, operation: Callable[[], Awaitable[T]], default: Any = None) -> T | Any:
        """Run operation, returning default instead of raising.

        Args:
            operation: Coroutine function performing the device call.
            default: Value returned when the call is skipped or fails.

        Returns:
            The operation's result, or default.
        """
        if self.should_short_circuit():
            _LOGGER.debug("Skipping device operation, returning default %r", default)
            return default

        try:
            result = await self.call_with_timeout(operation)
        except Exception as err:
            self._connection.record_failure(err)
            return default

        self._connection.reset_timeouts()
        return result
