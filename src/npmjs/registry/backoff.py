"""Randomized exponential backoff applied after every mirror has failed."""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

from npmjs.common.logging_utils import extra_context
from npmjs.constants import Constants

logger = logging.getLogger(__name__)


class Backoff:
    """Per-request backoff state.

    Each call to ``next_delay`` counts one attempt. The delay for attempt *n*
    is drawn uniformly from ``[mindelay, min(maxdelay, mindelay * factor ** n)]``,
    so it always lies within ``[mindelay, maxdelay]``. Once the attempt counter
    passes ``retries`` the terminal signal (``None``) is returned instead.
    """

    def __init__(
        self,
        retries: int = Constants.BACKOFF_RETRIES,
        mindelay: float = Constants.BACKOFF_MINDELAY_MS,
        maxdelay: float = Constants.BACKOFF_MAXDELAY_MS,
        factor: float = Constants.BACKOFF_FACTOR,
        rng: Optional[random.Random] = None,
    ):
        if retries < 0:
            raise ValueError("retries must be >= 0")
        if mindelay <= 0 or mindelay > maxdelay:
            raise ValueError("mindelay must be positive and not exceed maxdelay")
        if factor < 1:
            raise ValueError("factor must be >= 1")
        self.retries = retries
        self.mindelay = mindelay
        self.maxdelay = maxdelay
        self.factor = factor
        self.attempt = 0
        self._rng = rng or random.Random()

    @property
    def exhausted(self) -> bool:
        return self.attempt > self.retries

    def next_delay(self) -> Optional[float]:
        """Advance the attempt counter and return the delay in milliseconds.

        Returns:
            Delay in milliseconds, or None when the retry ceiling is exceeded.
        """
        if self.exhausted:
            return None
        self.attempt += 1
        if self.exhausted:
            return None

        try:
            ceiling = self.mindelay * (self.factor ** self.attempt)
        except OverflowError:
            ceiling = self.maxdelay
        upper = min(self.maxdelay, ceiling)
        delay = self._rng.uniform(self.mindelay, upper)
        return min(self.maxdelay, max(self.mindelay, delay))

    async def wait(self) -> bool:
        """Sleep for the next delay.

        Returns:
            True after sleeping, False when no attempts are left.
        """
        delay = self.next_delay()
        if delay is None:
            return False
        logger.info(
            "All mirrors failed; backing off for %.0f ms (attempt %d/%d)",
            delay,
            self.attempt,
            self.retries,
            extra=extra_context(
                event="backoff",
                component="backoff",
                action="sleep",
                attempt=self.attempt,
                delay_ms=delay,
            ),
        )
        await asyncio.sleep(delay / 1000)
        return True
