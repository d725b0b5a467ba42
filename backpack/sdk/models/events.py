"""Event types delivered to streaming handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..core.enums import Channel, ConnectionState


@dataclass(frozen=True)
class StreamEvent:
    """One data frame routed to a subscription handler.

    ``data`` is the already-parsed payload of the frame and ``symbol`` is in
    caller form (``SOL-USDC``), empty for account channels.
    """

    channel: Channel
    symbol: str
    data: Any
    stream: str
    received_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class ConnectionEvent:
    """Connection state change, passed to disconnect callbacks."""

    state: ConnectionState
    url: str
    timestamp: datetime
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
