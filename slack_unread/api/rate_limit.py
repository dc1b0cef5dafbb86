"""Advisory gate for HTTP 429 ``Retry-After`` hints.

After a rate-limited response the watcher records the hint here and skips
network work until it has passed. Nothing is ever scheduled sooner than the
normal poll cadence; the gate only makes cycles that fire early do nothing.
Resets on restart.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RateLimitGate:
    """Remembers the earliest time the API may be called again."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._blocked_until = 0.0

    def record(self, retry_after: float) -> None:
        """Note a 429 telling us to wait ``retry_after`` seconds."""
        until = self._clock() + max(retry_after, 0.0)
        self._blocked_until = max(self._blocked_until, until)
        logger.info("Rate limited; skipping API calls for %.0fs", retry_after)

    def check(self) -> tuple[bool, int]:
        """Check whether a cycle may call the API now.

        Returns:
            Tuple of (allowed, seconds_remaining). If allowed is True,
            seconds_remaining is 0; otherwise it is at least 1.
        """
        remaining = self._blocked_until - self._clock()
        if remaining <= 0:
            return True, 0
        return False, max(int(remaining) + 1, 1)
