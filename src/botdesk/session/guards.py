"""In-flight guards.

Each guard is a two-state machine (IDLE, IN_FLIGHT) protecting one logical
operation from being started twice. Guards are cooperative: they only
prevent duplicates among callers that check them.

Every successful acquire, and every reset, starts a new generation. A
holder that passes the generation it acquired to ``release`` can only
release its own acquisition, never one made after a reset.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class GuardState(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"


class InFlightGuard:
    """Tracks whether an operation is running and, optionally, for which key."""

    def __init__(self, name: str):
        self.name = name
        self._state = GuardState.IDLE
        self._key: str | None = None
        self._generation = 0

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state == GuardState.IN_FLIGHT

    @property
    def key(self) -> str | None:
        """Key passed to the acquire that is currently in flight."""
        return self._key

    @property
    def generation(self) -> int:
        """Generation of the latest acquire or reset."""
        return self._generation

    def acquire(self, key: str | None = None) -> bool:
        """IDLE -> IN_FLIGHT. Returns False, changing nothing, when already in flight."""
        if self.busy:
            logger.debug("Guard %s busy (key=%s); refused key=%s", self.name, self._key, key)
            return False
        self._generation += 1
        self._state = GuardState.IN_FLIGHT
        self._key = key
        logger.debug(
            "Guard %s: idle -> in_flight (key=%s, generation=%d)",
            self.name, key, self._generation
        )
        return True

    def release(self, generation: int | None = None) -> bool:
        """IN_FLIGHT -> IDLE.

        Args:
            generation: Generation read right after the holder's acquire.
                When it is no longer current the guard has been reset or
                taken by someone else, and nothing changes.

        Returns:
            True if the guard was released

        Raises:
            RuntimeError: If the guard is idle and no stale generation was given
        """
        if generation is not None and generation != self._generation:
            logger.debug(
                "Guard %s: stale release ignored (generation=%d, current=%d)",
                self.name, generation, self._generation
            )
            return False
        if not self.busy:
            raise RuntimeError(f"Guard {self.name} released while idle")
        logger.debug("Guard %s: in_flight -> idle (key=%s)", self.name, self._key)
        self._state = GuardState.IDLE
        self._key = None
        return True

    def reset(self) -> None:
        """Force the guard back to IDLE whatever its state."""
        self._generation += 1
        self._state = GuardState.IDLE
        self._key = None

    def __repr__(self) -> str:
        return (
            f"InFlightGuard({self.name!r}, state={self._state.value}, "
            f"key={self._key!r}, generation={self._generation})"
        )
