"""
Shared fakes for the HTTP adapter tests.
"""

import json
from typing import Any, List, Optional

import pytest
import requests


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, body: Any = None, content: Optional[bytes] = None, status_code: int = 200):
        self.status_code = status_code
        self._body = body
        if content is None and body is not None:
            content = json.dumps(body).encode("utf-8")
        self.content = content or b""

    def json(self) -> Any:
        return json.loads(self.content.decode("utf-8"))

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Returns queued responses and records each request's params."""

    def __init__(self, *responses: FakeResponse, error: Optional[Exception] = None):
        self._responses: List[FakeResponse] = list(responses)
        self._error = error
        self.requests: List[dict] = []

    def get(self, url: str, params: Optional[dict] = None, **kwargs) -> FakeResponse:
        self.requests.append({"url": url, "params": dict(params or {}), **kwargs})
        if self._error is not None:
            raise self._error
        return self._responses.pop(0)


@pytest.fixture
def fake_session():
    """Factory building a FakeSession from canned responses."""
    return FakeSession


@pytest.fixture
def fake_response():
    """Factory building a FakeResponse from a JSON body or raw bytes."""
    return FakeResponse
