"""Orchestration of a feed load and the content state exposed to consumers.

State machine (one instance per screen):
    (none)  -> Loading                on start_load()/retry()
    Loading -> Content(feed)          fallback window active, or live load parsed
    Loading -> Error(message)         transport or extraction failure
    Content/Error -> Loading          on the next start_load()/retry()

Transport and extraction run on a worker executor. Every published state
and every subscriber callback runs through ``dispatch``, which by default
is a dedicated single thread standing in for the UI context.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from . import db
from .errors import (
    ExtractError,
    HttpStatusError,
    TransportError,
    TransportTimeout,
)
from .extractor import SectionExtractor
from .freshness import FALLBACK_FEED, FreshnessGate
from .models import Content, ContentState, Error, Feed, Loading
from .transport import PORTAL_URL, Transport

logger = logging.getLogger(__name__)

Callback = Callable[[ContentState], None]
Dispatch = Callable[[Callable[[], None]], object]

CONNECTION_ERROR_MESSAGE = "Failed to load data. Please check your connection."
TIMEOUT_ERROR_MESSAGE = "Request timed out. Please try again."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred while processing data."


def describe_error(exc: BaseException) -> str:
    """Human-readable message for a failed load."""
    if isinstance(exc, HttpStatusError):
        return f"Server error: {exc.status_code}"
    if isinstance(exc, TransportTimeout):
        return TIMEOUT_ERROR_MESSAGE
    if isinstance(exc, TransportError):
        return CONNECTION_ERROR_MESSAGE
    if isinstance(exc, ExtractError):
        return f"Failed to parse data: {exc.message}"
    return UNEXPECTED_ERROR_MESSAGE


class FeedController:
    """Owns the ``ContentState`` of the current events feed."""

    def __init__(
        self,
        transport: Transport,
        extractor: Optional[SectionExtractor] = None,
        gate: Optional[FreshnessGate] = None,
        url: str = PORTAL_URL,
        fallback_feed: Feed = FALLBACK_FEED,
        session_factory=None,
        executor: Optional[concurrent.futures.Executor] = None,
        dispatch: Optional[Dispatch] = None,
        workers: int = 2,
    ):
        self.transport = transport
        self.extractor = extractor or SectionExtractor()
        self.gate = gate
        self.url = url
        self.fallback_feed = fallback_feed
        self.session_factory = session_factory

        self._owned_executors: List[concurrent.futures.Executor] = []
        if executor is None:
            executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=workers, thread_name_prefix="wikinews-load"
            )
            self._owned_executors.append(executor)
        self._executor = executor

        if dispatch is None:
            dispatcher = concurrent.futures.ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="wikinews-dispatch"
            )
            self._owned_executors.append(dispatcher)
            dispatch = dispatcher.submit
        self._dispatch = dispatch

        self._lock = threading.Lock()
        self._attempt = 0
        self._state: Optional[ContentState] = None
        self._subscribers: List[Callback] = []

    def __enter__(self) -> "FeedController":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def state(self) -> Optional[ContentState]:
        with self._lock:
            return self._state

    @property
    def attempt(self) -> int:
        with self._lock:
            return self._attempt

    def subscribe(self, callback: Callback) -> Callable[[], None]:
        """Register ``callback`` for every published state; returns an unsubscriber."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def start_load(self) -> concurrent.futures.Future:
        """Begin a new load attempt.

        The returned future resolves to the terminal state of this attempt,
        whether or not a newer attempt superseded it.
        """
        with self._lock:
            self._attempt += 1
            attempt = self._attempt

        logger.info("Starting load attempt %d", attempt)
        result: concurrent.futures.Future = concurrent.futures.Future()
        self._dispatch(lambda: self._publish(attempt, Loading()))
        self._executor.submit(self._run, attempt, result)
        return result

    def retry(self) -> concurrent.futures.Future:
        logger.info("Retry requested")
        return self.start_load()

    def close(self) -> None:
        for executor in self._owned_executors:
            executor.shutdown(wait=True)
        self._owned_executors = []

    def _run(self, attempt: int, result: concurrent.futures.Future) -> None:
        state = self._load(attempt)
        self._dispatch(lambda: self._finish(attempt, state, result))

    def _load(self, attempt: int) -> ContentState:
        try:
            if self.gate is not None and self.gate.use_fallback():
                logger.info("Attempt %d served from the fallback feed", attempt)
                return Content(self.fallback_feed)

            document = self.transport.fetch(self.url)
            feed = self.extractor.extract(document)
        except (TransportError, ExtractError) as exc:
            logger.error("Load attempt %d failed: %s", attempt, exc)
            return Error(describe_error(exc), exc)
        except Exception as exc:  # noqa: BLE001 - surfaced to the consumer as Error
            logger.exception("Unexpected error during load attempt %d", attempt)
            return Error(describe_error(exc), exc)

        self._cache(attempt, feed)
        logger.info("Attempt %d loaded %d entries", attempt, len(feed))
        return Content(feed)

    def _cache(self, attempt: int, feed: Feed) -> None:
        if self.session_factory is None:
            return
        if attempt != self.attempt:
            logger.debug("Not caching stale attempt %d", attempt)
            return
        try:
            with self.session_factory() as session:
                db.save_feed(session, feed)
        except Exception:  # noqa: BLE001 - the feed is still shown
            logger.exception("Failed to cache feed from attempt %d", attempt)

    def _finish(
        self,
        attempt: int,
        state: ContentState,
        result: concurrent.futures.Future,
    ) -> None:
        try:
            self._publish(attempt, state)
        finally:
            result.set_result(state)

    def _publish(self, attempt: int, state: ContentState) -> bool:
        with self._lock:
            if attempt != self._attempt:
                logger.debug(
                    "Discarding %s from stale attempt %d (current %d)",
                    type(state).__name__,
                    attempt,
                    self._attempt,
                )
                return False
            self._state = state
            subscribers = list(self._subscribers)

        # Callbacks run outside the lock so they may call back into the controller.
        for callback in subscribers:
            try:
                callback(state)
            except Exception:  # noqa: BLE001
                logger.exception("Content state subscriber failed")
        return True


def load_cached_feed(session_factory) -> Feed:
    """Feed stored by the last successful live load."""
    with session_factory() as session:
        feed = db.load_feed(session)
        logger.info("Feed cache holds %d posts", db.count_posts(session))
    return feed


def prune_cache(session_factory, max_age: timedelta) -> int:
    """Drop cached entries saved more than ``max_age`` ago."""
    with session_factory() as session:
        removed = db.delete_expired(session, datetime.now(timezone.utc) - max_age)
    if removed:
        logger.info("Pruned %d cached entries older than %s", removed, max_age)
    return removed
