"""HTTP retrieval of the current events portal page."""

from __future__ import annotations

import logging
from typing import Protocol

import requests

from .errors import (
    ConnectFailed,
    HttpStatusError,
    TransportFailure,
    TransportTimeout,
)
from .models import RawDocument

logger = logging.getLogger(__name__)

PORTAL_URL = "https://en.m.wikipedia.org/wiki/Portal:Current_events"
DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "wikinews/0.1 (+https://en.m.wikipedia.org/wiki/Portal:Current_events)"


class Transport(Protocol):
    """Anything able to fetch a single document."""

    def fetch(self, url: str) -> RawDocument:
        """Return the document at ``url`` or raise ``TransportError``."""


class HttpTransport:
    """``requests`` implementation of the transport.

    The session is supplied by the caller so cookies and connection pools
    live with whoever owns the transport.
    """

    def __init__(
        self,
        session: requests.Session,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.session = session
        self.timeout = timeout
        self.user_agent = user_agent

    def fetch(self, url: str = PORTAL_URL) -> RawDocument:
        logger.info("Fetching %s", url)
        try:
            response = self.session.get(
                url,
                timeout=(self.timeout, self.timeout),
                headers={"User-Agent": self.user_agent},
            )
        except requests.Timeout as exc:
            logger.warning("Request to %s timed out after %ss", url, self.timeout)
            raise TransportTimeout(
                f"Timed out after {self.timeout}s", url=url, original_error=exc
            ) from exc
        except requests.ConnectionError as exc:
            logger.warning("Could not connect to %s: %s", url, exc)
            raise ConnectFailed(
                "Failed to connect", url=url, original_error=exc
            ) from exc
        except requests.RequestException as exc:
            logger.warning("Request to %s failed: %s", url, exc)
            raise TransportFailure(str(exc), url=url, original_error=exc) from exc

        if not 200 <= response.status_code < 300:
            logger.warning("Request to %s returned HTTP %d", url, response.status_code)
            raise HttpStatusError(response.status_code, url=url)

        text = response.text
        logger.debug("Received %d characters from %s", len(text), url)
        return RawDocument(url=url, text=text, status_code=response.status_code)
