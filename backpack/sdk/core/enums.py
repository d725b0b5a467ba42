"""Core enumerations shared by the streaming and REST layers.

Architecture:
    This module defines the fixed catalog of subscribable streams (``Channel``),
    the streaming session state machine values (``ConnectionState``) and the
    order vocabulary used by the REST methods. Every enum carries the exact
    wire value the exchange expects so callers never build strings by hand.

Design Decisions:
    - String enums: Values double as wire names, easy to serialize and log
    - Total mapping: Every Channel has exactly one wire name and parsing an
      unknown wire name yields ``None`` rather than raising, so the dispatcher
      can ignore protocol traffic it does not understand
    - Auth classification lives on the enum (``requires_auth``)

See Also:
    - streams: Stream identifier build/parse on top of Channel
    - ConnectionSession: Drives ConnectionState transitions
"""

from __future__ import annotations

from enum import Enum

# Candle interval carried by each candle channel
_CANDLE_INTERVALS = {
    "candles1m": "1m",
    "candles5m": "5m",
    "candles15m": "15m",
    "candles1h": "1h",
    "candles4h": "4h",
    "candles1d": "1d",
}

_USER_CHANNELS = frozenset({"userOrders", "userTrades", "userPositions", "userBalances"})


class Channel(str, Enum):
    """Logical stream kinds a client can subscribe to.

    Public channels (ticker, trades, candles, depth) need no authentication.
    The four ``USER_*`` channels carry account data and require an
    authenticated session before the subscription is sent.
    """

    TICKER = "ticker"
    TRADES = "trades"

    # Candles
    CANDLES_1M = "candles1m"
    CANDLES_5M = "candles5m"
    CANDLES_15M = "candles15m"
    CANDLES_1H = "candles1h"
    CANDLES_4H = "candles4h"
    CANDLES_1D = "candles1d"

    # Order book
    DEPTH = "depth"
    DEPTH_SNAPSHOT = "depthSnapshot"

    # Account data
    USER_ORDERS = "userOrders"
    USER_TRADES = "userTrades"
    USER_POSITIONS = "userPositions"
    USER_BALANCES = "userBalances"

    def __str__(self) -> str:
        """String representation returns the wire name."""
        return self.value

    @property
    def wire_name(self) -> str:
        """Canonical wire-format name."""
        return self.value

    @property
    def requires_auth(self) -> bool:
        """True exactly for the user-data channels."""
        return self.value in _USER_CHANNELS

    @property
    def is_candles(self) -> bool:
        return self.value in _CANDLE_INTERVALS

    @property
    def interval(self) -> str | None:
        """Candle interval (e.g. ``"1h"``) or None for non-candle channels."""
        return _CANDLE_INTERVALS.get(self.value)

    @classmethod
    def from_wire(cls, name: str) -> Channel | None:
        """Get channel from its wire name. Returns None if no match."""
        try:
            return cls(name)
        except ValueError:
            return None

    @classmethod
    def candles(cls, interval: str) -> Channel:
        """Look up the candle channel for an interval string.

        Raises:
            ValueError: If the interval has no candle channel
        """
        for wire, value in _CANDLE_INTERVALS.items():
            if value == interval:
                return cls(wire)
        raise ValueError(
            f"Unsupported candle interval: {interval}. Valid: {sorted(_CANDLE_INTERVALS.values())}"
        )


def requires_auth(channel: Channel) -> bool:
    """Return True when subscribing to ``channel`` needs an authenticated session."""
    return channel.requires_auth


class ConnectionState(str, Enum):
    """Lifecycle states of one physical streaming connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    CLOSING = "closing"

    def __str__(self) -> str:
        return self.value

    @property
    def is_open(self) -> bool:
        """True while frames can be sent on the connection."""
        return self in (
            ConnectionState.CONNECTED,
            ConnectionState.AUTHENTICATING,
            ConnectionState.AUTHENTICATED,
        )


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"


class OrderStatus(str, Enum):
    NEW = "NEW"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELED = "CANCELED"
    REJECTED = "REJECTED"


class TimeInForce(str, Enum):
    """Order time in force."""

    GTC = "GTC"  # Good Till Canceled
    IOC = "IOC"  # Immediate or Cancel
    FOK = "FOK"  # Fill or Kill
