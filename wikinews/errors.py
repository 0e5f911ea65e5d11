"""Exception hierarchy for the fetch and extraction pipeline."""

from __future__ import annotations

from typing import Any, Dict, Optional


class WikiNewsError(Exception):
    """Base exception for all wikinews errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class TransportError(WikiNewsError):
    """The portal page could not be retrieved."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        context = dict(context or {})
        if url:
            context["url"] = url
        if original_error is not None:
            context["original_error"] = str(original_error)
        super().__init__(message, context=context)
        self.url = url


class ConnectFailed(TransportError):
    """Connection to the host could not be established."""


class TransportTimeout(TransportError):
    """The request exceeded the configured timeout."""


class HttpStatusError(TransportError):
    """The server answered with a non-success status code."""

    def __init__(self, status_code: int, url: Optional[str] = None):
        super().__init__(
            f"Server responded with HTTP {status_code}",
            url=url,
            context={"status_code": status_code},
        )
        self.status_code = status_code


class TransportFailure(TransportError):
    """Any other request failure."""


class ExtractError(WikiNewsError):
    """The document could not be turned into a feed."""


class NoContentError(ExtractError):
    """No section of the document yielded any item."""

    def __init__(self, message: str = "No sections found."):
        super().__init__(message)
