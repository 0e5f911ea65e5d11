from types import SimpleNamespace

import pytest
import requests

from wikinews.errors import (
    ConnectFailed,
    HttpStatusError,
    TransportError,
    TransportFailure,
    TransportTimeout,
)
from wikinews.transport import PORTAL_URL, HttpTransport


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None, headers=None):
        self.calls.append({"url": url, "timeout": timeout, "headers": headers})
        if self.error is not None:
            raise self.error
        return self.response


def _response(status_code=200, text="<html></html>"):
    return SimpleNamespace(status_code=status_code, text=text)


def test_fetch_returns_raw_document():
    session = FakeSession(response=_response(text="<p>doc</p>"))
    transport = HttpTransport(session=session, timeout=12.5, user_agent="tests")

    document = transport.fetch()

    assert document.text == "<p>doc</p>"
    assert document.url == PORTAL_URL
    assert document.status_code == 200
    assert session.calls == [
        {"url": PORTAL_URL, "timeout": (12.5, 12.5), "headers": {"User-Agent": "tests"}}
    ]


@pytest.mark.parametrize("status_code", [101, 301, 304, 404, 503])
def test_fetch_maps_non_2xx_status(status_code):
    transport = HttpTransport(session=FakeSession(response=_response(status_code=status_code)))

    with pytest.raises(HttpStatusError) as excinfo:
        transport.fetch("https://example.org/portal")

    assert excinfo.value.status_code == status_code
    assert excinfo.value.context["status_code"] == status_code
    assert excinfo.value.url == "https://example.org/portal"


def test_fetch_rejects_not_modified_response():
    response = requests.Response()
    response.status_code = 304
    response._content = b""
    transport = HttpTransport(session=FakeSession(response=response))

    with pytest.raises(HttpStatusError) as excinfo:
        transport.fetch()

    assert excinfo.value.status_code == 304


@pytest.mark.parametrize("status_code", [200, 203])
def test_fetch_accepts_2xx_status(status_code):
    transport = HttpTransport(session=FakeSession(response=_response(status_code=status_code)))

    assert transport.fetch().status_code == status_code


@pytest.mark.parametrize(
    "error, expected",
    [
        (requests.ConnectTimeout("slow connect"), TransportTimeout),
        (requests.ReadTimeout("slow read"), TransportTimeout),
        (requests.ConnectionError("refused"), ConnectFailed),
        (requests.TooManyRedirects("loop"), TransportFailure),
    ],
)
def test_fetch_maps_request_exceptions(error, expected):
    transport = HttpTransport(session=FakeSession(error=error))

    with pytest.raises(expected) as excinfo:
        transport.fetch()

    assert isinstance(excinfo.value, TransportError)
    assert excinfo.value.__cause__ is error
    assert excinfo.value.to_dict()["error_type"] == expected.__name__


def test_fetch_does_not_retry():
    session = FakeSession(error=requests.ConnectionError("refused"))

    with pytest.raises(ConnectFailed):
        HttpTransport(session=session).fetch()

    assert len(session.calls) == 1
