"""Shared fakes for unit tests: an in-memory websocket and aiohttp session."""

from __future__ import annotations

import asyncio
import base64
import json
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from nacl.signing import SigningKey

from backpack.sdk.auth import Credentials


class FakeWebSocket:
    """Stands in for a websockets client connection."""

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.incoming: asyncio.Queue[Any] = asyncio.Queue()
        self.closed = False
        self.close_code: int | None = None
        self.send_error: BaseException | None = None

    async def recv(self) -> str:
        item = await self.incoming.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def send(self, frame: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(frame)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed = True
        self.close_code = code

    def feed(self, message: dict[str, Any] | str) -> None:
        self.incoming.put_nowait(message if isinstance(message, str) else json.dumps(message))

    def fail(self, error: BaseException) -> None:
        self.incoming.put_nowait(error)

    @property
    def sent_frames(self) -> list[dict[str, Any]]:
        return [json.loads(frame) for frame in self.sent]


class FakeResponse:
    def __init__(self, status: int = 200, body: Any = None, headers: dict | None = None) -> None:
        self.status = status
        self._body = body if isinstance(body, str) else ("" if body is None else json.dumps(body))
        self.headers = headers or {}

    async def text(self) -> str:
        return self._body

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None


class FakeHTTPSession:
    """Records requests and answers with queued ``FakeResponse`` objects."""

    def __init__(self, *responses: FakeResponse) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_ws() -> FakeWebSocket:
    return FakeWebSocket()


@pytest.fixture
def mock_connect(fake_ws):
    """Patch ``websockets.connect`` to hand out ``fake_ws``."""
    with patch("websockets.connect", new=AsyncMock(return_value=fake_ws)) as connect:
        yield connect


@pytest.fixture
def signing_key() -> SigningKey:
    return SigningKey.generate()


@pytest.fixture
def credentials(signing_key) -> Credentials:
    secret = base64.b64encode(signing_key.encode()).decode()
    return Credentials(api_key="test-api-key", secret_key=secret)


@pytest.fixture
def wait_for():
    """Poll ``predicate`` until true or fail after ``timeout`` seconds."""

    async def _wait(predicate, timeout: float = 1.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(0.005)

    return _wait


@pytest.fixture
def make_response():
    """Factory for canned HTTP responses."""
    return FakeResponse


@pytest.fixture
def make_http():
    """Factory for a recording aiohttp session stand-in."""
    return FakeHTTPSession
