"""Online/offline tracking and reconnection scheduling.

The ConnectionStateMachine has two states, online and offline, and starts
online. It classifies every failure reported to it exactly once:

- Connection errors (unreachable host, refused connection, timeouts) count
  towards the offline threshold.
- Any other error is logged and recorded but never takes the device offline.

While offline a single retry timer is kept armed. Delays grow
exponentially from BASE_RETRY_DELAY; once MAX_RETRIES attempts in a cycle
have failed the machine falls back to a steady heartbeat at
MAX_RETRY_DELAY until the device answers again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .constants import SESSION_DEFAULTS, SessionSettings
from .infrastructure.errors import is_connection_error
from .state_cache import StateCache

_LOGGER = logging.getLogger(__name__)


def compute_retry_delay(retry_count: int, settings: SessionSettings = SESSION_DEFAULTS) -> float:
    """Exponential backoff delay for the given retry count.

    Example:
        >>> [compute_retry_delay(n) for n in range(3)]
        [5.0, 10.0, 20.0]
        >>> compute_retry_delay(10)
        300.0
    """
    return min(settings.BASE_RETRY_DELAY * 2**retry_count, settings.MAX_RETRY_DELAY)


class ConnectionStateMachine:
    """Tracks reachability of one device and drives reconnection.

    Counters live in the shared StateCache so the whole DeviceState stays
    a single consistent snapshot.
    """

    def __init__(
        self,
        cache: StateCache,
        retry_callback: Callable[[], Awaitable[None]],
        status_callback: Callable[[bool], None],
        settings: SessionSettings = SESSION_DEFAULTS,
        name: str = "device",
    ):
        """Initialize the state machine.

        Args:
            cache: State cache owning the connection counters
            retry_callback: Coroutine function run when the retry timer fires
            status_callback: Called with the new online status on transitions
            settings: Timing and threshold configuration
            name: Device name for log messages
        """
        self._cache = cache
        self._retry_callback = retry_callback
        self._status_callback = status_callback
        self._settings = settings
        self._name = name

        self._retry_handle: asyncio.TimerHandle | None = None
        self._retry_task: asyncio.Task | None = None
        self._heartbeat = False
        self._closed = False
        self.next_retry_delay: float | None = None

    # -------------------------------------------------------------------------
    # State queries
    # -------------------------------------------------------------------------

    @property
    def is_online(self) -> bool:
        return self._cache.state.is_online

    @property
    def is_reconnecting(self) -> bool:
        """True while recovering from connection errors."""
        return self._cache.state.consecutive_timeouts > 0

    @property
    def in_heartbeat(self) -> bool:
        """True once a backoff cycle was exhausted without recovery."""
        return self._heartbeat

    @property
    def retries_exhausted(self) -> bool:
        """Offline and no escalating retries left in the current cycle."""
        state = self._cache.state
        return not state.is_online and (
            self._heartbeat or state.retry_count >= self._settings.MAX_RETRIES
        )

    @property
    def has_pending_retry(self) -> bool:
        return self._retry_handle is not None

    # -------------------------------------------------------------------------
    # Failure classification
    # -------------------------------------------------------------------------

    def record_failure(self, err: BaseException) -> None:
        """Classify and handle a failed device operation.

        Args:
            err: The exception raised by the operation.
        """
        message = str(err) or type(err).__name__
        self._cache.update(last_error=message)

        if not is_connection_error(err):
            _LOGGER.error("Device %s error: %s", self._name, message)
            return

        timeouts = self._cache.state.consecutive_timeouts + 1
        self._cache.update(
            consecutive_timeouts=timeouts,
            last_connection_attempt=self._cache.now(),
        )

        # Only the first error of a streak is worth a warning
        if timeouts == 1:
            _LOGGER.warning("Device %s connection error: %s", self._name, message)
        else:
            _LOGGER.debug(
                "Device %s connection error (%d in a row): %s", self._name, timeouts, message
            )

        if timeouts >= self._settings.TIMEOUT_THRESHOLD:
            self.mark_offline()

    def reset_timeouts(self) -> None:
        """Clear the consecutive timeout counter after a successful operation."""
        if self._cache.state.consecutive_timeouts:
            self._cache.update(consecutive_timeouts=0)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def mark_offline(self) -> None:
        """Transition to offline and arm the retry timer. Idempotent."""
        if self._closed or not self.is_online:
            return

        _LOGGER.warning("Device %s is offline", self._name)
        self._cache.update(is_online=False)
        self._status_callback(False)
        self.schedule_retry()

    def mark_online(self) -> None:
        """Reset failure bookkeeping and transition to online if needed."""
        was_online = self.is_online
        self._cache.update(
            is_online=True,
            retry_count=0,
            consecutive_timeouts=0,
            last_connection_attempt=0.0,
        )
        self._heartbeat = False
        self.cancel_retry()

        if not was_online:
            _LOGGER.info("Device %s is back online", self._name)
            self._status_callback(True)

    # -------------------------------------------------------------------------
    # Retry scheduling
    # -------------------------------------------------------------------------

    def schedule_retry(self) -> float | None:
        """Arm the retry timer, replacing any pending one.

        Returns:
            The delay in seconds until the next attempt, or None once the
            machine has been shut down.
        """
        if self._closed:
            return None

        state = self._cache.state
        if self._heartbeat or state.retry_count >= self._settings.MAX_RETRIES:
            if not self._heartbeat:
                _LOGGER.warning(
                    "Device %s offline - will retry every %d seconds",
                    self._name,
                    self._settings.MAX_RETRY_DELAY,
                )
            self._heartbeat = True
            self._cache.update(retry_count=0)
            delay = self._settings.MAX_RETRY_DELAY
        else:
            delay = compute_retry_delay(state.retry_count, self._settings)

        self._cancel_retry_handle()
        loop = asyncio.get_running_loop()
        self._retry_handle = loop.call_later(delay, self._fire_retry)
        self.next_retry_delay = delay
        _LOGGER.debug("Device %s retry scheduled in %.1fs", self._name, delay)
        return delay

    def begin_retry_attempt(self) -> int:
        """Count a retry attempt in the current backoff cycle.

        Returns:
            The attempt number (0 while in heartbeat mode).
        """
        if self._heartbeat:
            _LOGGER.debug("Device %s heartbeat reconnection attempt", self._name)
            return 0

        attempt = self._cache.state.retry_count + 1
        self._cache.update(retry_count=attempt)
        _LOGGER.debug("Attempting to reconnect to %s (attempt %d)", self._name, attempt)
        return attempt

    def _fire_retry(self) -> None:
        self._retry_handle = None
        if self._closed:
            return
        self._retry_task = asyncio.get_running_loop().create_task(self._retry_callback())

    def _cancel_retry_handle(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    def cancel_retry(self) -> None:
        """Cancel the pending retry timer, if any."""
        self._cancel_retry_handle()
        self.next_retry_delay = None

    def shutdown(self) -> None:
        """Cancel the retry timer and any retry attempt still running.

        No timer is armed afterwards, even by operations still in flight.
        """
        self._closed = True
        self.cancel_retry()
        task, self._retry_task = self._retry_task, None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # A retry attempt may tear down its own session
        if task is not current:
            task.cancel()
