"""
Pytest configuration and fixtures for httpagent tests.
"""

from contextlib import contextmanager
from typing import Callable, Generator, Optional

import httpx
import pytest

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """Mock transport keeping every request it was asked to send."""

    def __init__(self, handler: Optional[Handler] = None) -> None:
        self.requests: list[httpx.Request] = []
        self.closed = False
        self.respond: Handler = handler or (lambda request: httpx.Response(200))
        super().__init__(self._record)

    def _record(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    def close(self) -> None:
        self.closed = True

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]


class RecordingProcessor:
    """Request processor logging when it is entered and left."""

    def __init__(self, name: str = "processor", events: Optional[list[str]] = None):
        self.name = name
        self.events = events if events is not None else []

    @contextmanager
    def process(self, request: httpx.Request) -> Generator[httpx.Request, None, None]:
        self.events.append(f"{self.name}:enter")
        request.headers["X-Processed-By"] = self.name
        try:
            yield request
        finally:
            self.events.append(f"{self.name}:exit")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep agent defaults independent from the developer environment."""
    for name in (
        "HTTPAGENT_DEBUG",
        "HTTPAGENT_TIMEOUT",
        "HTTPAGENT_FOLLOW_REDIRECTS",
        "HTTPAGENT_USER_AGENT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def transport() -> RecordingTransport:
    """Transport answering 200 with an empty body."""
    return RecordingTransport()


@pytest.fixture
def echo_transport() -> RecordingTransport:
    """Transport answering 200 with the request body and content type."""

    def echo(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=request.content,
            headers={"Content-Type": request.headers.get("Content-Type", "")},
        )

    return RecordingTransport(echo)
