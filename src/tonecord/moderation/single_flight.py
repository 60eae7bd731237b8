"""At-most-one moderation run per conversation."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Hashable, Iterator

from tonecord.util.logger import get_logger

logger = get_logger("single_flight")


class SingleFlightGuard:
    """
    Per-key busy flags.

    ``claim`` is synchronous, so checking and setting the flag cannot be
    interleaved with another coroutine on the same event loop.
    """

    def __init__(self) -> None:
        self._active: set[Hashable] = set()

    def is_active(self, key: Hashable) -> bool:
        return key in self._active

    def try_acquire(self, key: Hashable) -> bool:
        """Set the flag for ``key``; return False if it was already set."""
        if key in self._active:
            return False
        self._active.add(key)
        return True

    def release(self, key: Hashable) -> None:
        self._active.discard(key)

    @contextmanager
    def claim(self, key: Hashable) -> Iterator[bool]:
        """Hold the flag for the duration of the block.

        Yields True when the caller owns the run, False when another run is
        already active. The flag is only cleared by its owner.
        """
        acquired = self.try_acquire(key)
        if not acquired:
            logger.debug("Run already active for %s", key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)

    def __len__(self) -> int:
        return len(self._active)
