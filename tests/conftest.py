"""Shared fixtures: a fake ``requests`` session and clients using it."""

from __future__ import annotations

from typing import Any, Optional

import pytest
from requests.structures import CaseInsensitiveDict

from sparql_client import ClientConfig, SparqlClient


class FakeResponse:
    """Stand-in for :class:`requests.Response`."""

    def __init__(self, status_code: int = 200, content: bytes = b"", content_type: Optional[str] = None):
        self.status_code = status_code
        self.content = content
        self.headers = CaseInsensitiveDict()
        if content_type is not None:
            self.headers["Content-Type"] = content_type


class FakeSession:
    """Records requests and answers them with queued responses."""

    def __init__(self) -> None:
        self.responses: list[Any] = []
        self.calls: list[dict[str, Any]] = []
        self.max_redirects: Optional[int] = None
        self.closed = False

    def respond(self, content: bytes = b"", content_type: Optional[str] = None, status_code: int = 200) -> None:
        self.responses.append(FakeResponse(status_code, content, content_type))

    def fail(self, error: Exception) -> None:
        self.responses.append(error)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0) if self.responses else FakeResponse(204)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True

    @property
    def last_call(self) -> dict[str, Any]:
        return self.calls[-1]


@pytest.fixture
def session():
    """A fake session without queued responses (answers 204)."""
    return FakeSession()


@pytest.fixture
def client(session):
    """Client sending all requests through the fake session."""
    return SparqlClient(ClientConfig(), session=session)


@pytest.fixture
def raw_client(session):
    """Client running in raw mode by default."""
    return SparqlClient(ClientConfig(raw_mode=True), session=session)
