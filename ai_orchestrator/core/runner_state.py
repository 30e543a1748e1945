"""
Runner lock state machine.

Tracks whether the bulk labeling loop is running in this process. The lock
moves IDLE -> RUNNING on acquire and back to IDLE on release; a RUNNING lock
whose age exceeds the staleness threshold reads as STALE and may be taken
over. Every acquisition gets a new generation number so a superseded loop
cannot release or refresh the lock held by its replacement.

Dependencies: logging, time
System role: In-process single-loop guard for the batch job runner
"""

import enum
import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class RunnerPhase(str, enum.Enum):
    """
    Observable runner lock phases.

    IDLE: No loop holds the lock
    RUNNING: A loop holds the lock and refreshed it recently
    STALE: A loop holds the lock but has not refreshed it within the threshold
    """

    IDLE = "idle"
    RUNNING = "running"
    STALE = "stale"


class RunnerStateMachine:
    """Generation-tokened running flag with a staleness timeout."""

    def __init__(
        self,
        stale_after_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize an idle state machine.

        Args:
            stale_after_seconds: Lock age after which RUNNING reads as STALE
            clock: Monotonic clock in seconds (injectable for tests)
        """
        self._stale_after = stale_after_seconds
        self._clock = clock
        self._generation = 0
        self._holder: int | None = None
        self._since: float | None = None

    @property
    def phase(self) -> RunnerPhase:
        """Current phase, derived from the holder and the lock age."""
        if self._holder is None:
            return RunnerPhase.IDLE
        if self.held_for() >= self._stale_after:
            return RunnerPhase.STALE
        return RunnerPhase.RUNNING

    @property
    def generation(self) -> int | None:
        """Generation currently holding the lock, or None when idle."""
        return self._holder

    def held_for(self) -> float:
        """Seconds since the lock was acquired or last refreshed (0 when idle)."""
        if self._since is None:
            return 0.0
        return self._clock() - self._since

    def try_acquire(self) -> int | None:
        """
        Take the lock if it is idle or stale.

        Returns:
            int | None: New generation token, or None if a live loop holds the lock
        """
        phase = self.phase
        if phase is RunnerPhase.RUNNING:
            return None

        if phase is RunnerPhase.STALE:
            logger.warning(
                f"{__name__}:try_acquire - Runner lock is stale "
                f"(held for {round(self.held_for())}s), forcing restart",
                extra={"stale_generation": self._holder},
            )

        self._generation += 1
        self._holder = self._generation
        self._since = self._clock()
        return self._generation

    def heartbeat(self, generation: int) -> bool:
        """
        Refresh the lock age for the holding generation.

        Args:
            generation: Token returned by try_acquire

        Returns:
            bool: False if the generation no longer holds the lock
        """
        if self._holder != generation:
            return False
        self._since = self._clock()
        return True

    def release(self, generation: int) -> bool:
        """
        Release the lock if the given generation still holds it.

        Args:
            generation: Token returned by try_acquire

        Returns:
            bool: True if the lock was released
        """
        if self._holder != generation:
            return False
        self._holder = None
        self._since = None
        return True

    def is_current(self, generation: int) -> bool:
        """True if the given generation holds the lock."""
        return self._holder == generation
