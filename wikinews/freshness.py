"""Decision between the bundled fallback feed and a live load."""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Callable, Protocol

from .models import Feed, Header, Post

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_WINDOW = timedelta(days=7)

FALLBACK_FEED = Feed(
    [
        Header("Topics in the News"),
        Post(
            "Ongoing international summit discusses climate change and global trade policies."
        ),
        Post(
            "Technological advancements in AI lead to new breakthroughs in medical diagnostics."
        ),
        Header("Ongoing"),
        Post(
            "The 'Festival of Lights' continues in several cities, attracting large crowds."
        ),
        Post(
            "Major sports championship enters its final week, with several key matches scheduled."
        ),
        Header("Recent Deaths"),
        Post("Renowned artist and philanthropist passes away at age 85."),
        Header("Today's Highlights"),
        Post("Stock markets show mixed results in morning trading."),
        Post("Expected heatwave prompts public health warnings in several regions."),
    ]
)


def now_millis() -> int:
    return int(time.time() * 1000)


def should_use_fallback(now: int, expiration: int) -> bool:
    """True while ``now`` is inside a set freshness window ending at ``expiration``."""
    return expiration > 0 and now < expiration


class ExpirationStore(Protocol):
    def get_expiration(self) -> int:
        ...

    def initialize_expiration(self, now: int, window_ms: int) -> int:
        ...


class FreshnessGate:
    """Reads the persisted expiration and applies ``should_use_fallback``."""

    def __init__(
        self,
        store: ExpirationStore,
        clock: Callable[[], int] = now_millis,
        window: timedelta = DEFAULT_FALLBACK_WINDOW,
    ):
        self.store = store
        self.clock = clock
        self.window = window

    def use_fallback(self) -> bool:
        now = self.clock()
        expiration = self.store.get_expiration()
        decision = should_use_fallback(now, expiration)
        if decision:
            logger.debug(
                "Using fallback feed as current time (%d) is before expiration (%d)",
                now,
                expiration,
            )
        elif expiration > 0:
            logger.debug(
                "Fallback feed expired. Current time: %d, expiration: %d",
                now,
                expiration,
            )
        else:
            logger.debug("Fallback feed not enabled or no expiration set")
        return decision

    def ensure_expiration(self) -> int:
        """First-run initialisation: set ``now + window`` if nothing is stored."""
        window_ms = int(self.window.total_seconds() * 1000)
        return self.store.initialize_expiration(self.clock(), window_ms)
