"""Streaming frame codec.

Outbound control frames are plain dicts built here so every caller produces
the same wire shape. Inbound frames are classified by ``parse_frame`` which
returns a value instead of raising: a ``DataFrame``, a ``ControlFrame`` or a
``FrameError`` carrying the ``ProtocolError``. The dispatcher branches on the
returned type, so a malformed frame can never escape the receive loop.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ...core.exceptions import ProtocolError

PING_FRAME: dict[str, Any] = {"method": "PING"}


def subscribe_frame(stream_ids: Iterable[str], request_id: int | None = None) -> dict[str, Any]:
    frame: dict[str, Any] = {"method": "SUBSCRIBE", "params": list(stream_ids)}
    if request_id is not None:
        frame["id"] = request_id
    return frame


def unsubscribe_frame(stream_ids: Iterable[str], request_id: int | None = None) -> dict[str, Any]:
    frame: dict[str, Any] = {"method": "UNSUBSCRIBE", "params": list(stream_ids)}
    if request_id is not None:
        frame["id"] = request_id
    return frame


def auth_frame(
    api_key: str,
    signature: str,
    timestamp: int | str,
    window: int | str,
    request_id: int,
) -> dict[str, Any]:
    """Signed authentication request for the current connection."""
    return {
        "method": "AUTH",
        "params": [api_key, signature, str(timestamp), str(window)],
        "id": request_id,
    }


def encode_frame(frame: str | dict[str, Any]) -> str:
    """Serialize a frame to compact JSON text (strings pass through)."""
    if isinstance(frame, str):
        return frame
    return json.dumps(frame, separators=(",", ":"))


class ControlKind(str, Enum):
    """Kinds of non-data frames."""

    ACK = "ack"
    ERROR = "error"
    PONG = "pong"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DataFrame:
    """``{"stream": ..., "data": ...}`` event."""

    stream: str
    data: Any


@dataclass(frozen=True)
class ControlFrame:
    """Acknowledgement, server error notice or keep-alive reply."""

    kind: ControlKind
    request_id: int | None = None
    result: Any = None
    error: Any = None

    @property
    def succeeded(self) -> bool:
        """False for error notices and explicit ``"result": false`` acks."""
        return self.kind != ControlKind.ERROR and self.result is not False


@dataclass(frozen=True)
class FrameError:
    """Frame that could not be parsed."""

    error: ProtocolError

    @property
    def raw(self) -> str | None:
        return self.error.raw


ParsedFrame = DataFrame | ControlFrame | FrameError


def _request_id(message: dict[str, Any]) -> int | None:
    value = message.get("id")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _is_pong(message: dict[str, Any]) -> bool:
    for field in ("result", "method", "type"):
        value = message.get(field)
        if isinstance(value, str) and value.upper() == "PONG":
            return True
    return False


def parse_frame(raw: str | bytes) -> ParsedFrame:
    """Classify one inbound text frame."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return FrameError(ProtocolError("Frame is not valid UTF-8"))

    try:
        message = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        return FrameError(ProtocolError(f"Frame is not valid JSON: {e}", raw=raw))

    if not isinstance(message, dict):
        return FrameError(ProtocolError("Frame is not a JSON object", raw=raw))

    if "stream" in message and "data" in message:
        stream = message["stream"]
        if not isinstance(stream, str):
            return FrameError(ProtocolError("Stream identifier is not a string", raw=raw))
        return DataFrame(stream=stream, data=message["data"])

    request_id = _request_id(message)

    if message.get("error") is not None:
        return ControlFrame(kind=ControlKind.ERROR, request_id=request_id, error=message["error"])

    if _is_pong(message):
        return ControlFrame(kind=ControlKind.PONG, request_id=request_id)

    if "id" in message or "result" in message:
        return ControlFrame(
            kind=ControlKind.ACK, request_id=request_id, result=message.get("result")
        )

    return ControlFrame(kind=ControlKind.UNKNOWN, request_id=request_id, result=message)
