# state_cache.py
"""TTL-based cache holding the last known device state.

This module provides the StateCache class that handles:
- Ownership of the current DeviceState
- Copy-on-write updates (every change replaces the whole state)
- Freshness checks against a short TTL
"""

import logging
import time
from collections.abc import Callable

from .constants import SESSION_DEFAULTS
from .models import DeviceState

_LOGGER = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = SESSION_DEFAULTS.CACHE_TTL


class StateCache:
    """Holds the last decoded device state plus its freshness.

    Getters consult the cache before touching the network. While the state
    is fresh (younger than cache_ttl) it is served as-is.

    Attributes:
        cache_ttl: Cache time-to-live in seconds (0 = disabled)
    """

    def __init__(
        self,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
        initial: DeviceState | None = None,
    ):
        """Initialize the StateCache.

        Args:
            cache_ttl: Cache time-to-live in seconds (0 = disabled)
            clock: Monotonic time source in seconds
            initial: Starting state; defaults to an optimistic, online state
        """
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._state = initial if initial is not None else DeviceState()

    @property
    def state(self) -> DeviceState:
        """The current state. Never mutated in place."""
        return self._state

    def now(self) -> float:
        """Get current monotonic time."""
        return self._clock()

    def age(self) -> float | None:
        """Seconds since the last successful update, or None if never updated."""
        if self._state.last_update is None:
            return None
        return self.now() - self._state.last_update

    def is_fresh(self) -> bool:
        """Check if the cached state may be served without a device round trip."""
        if self.cache_ttl == 0:
            return False  # Cache disabled
        age = self.age()
        return age is not None and age < self.cache_ttl

    def update(self, **changes) -> DeviceState:
        """Replace the state with a copy carrying the given field changes.

        The new state is validated, so out-of-range percentages or negative
        counters raise instead of being stored.

        Returns:
            The new state.
        """
        self._state = DeviceState(**{**self._state.model_dump(), **changes})
        return self._state

    def touch(self) -> DeviceState:
        """Mark the current values as freshly confirmed."""
        return self.update(last_update=self.now())

    def invalidate(self) -> None:
        """Force the next read to go to the device."""
        self.update(last_update=None)
        _LOGGER.debug("State cache invalidated")
