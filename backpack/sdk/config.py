"""Shared Backpack constants and client configuration.

This module centralizes URLs, REST paths and tunables used by the streaming
session and the REST transport so the facade client can stay small.
"""

from __future__ import annotations

from dataclasses import dataclass

from .core.exceptions import ConfigurationError

WS_URL = "wss://ws.backpack.exchange"
REST_URL = "https://api.backpack.exchange"

# Signature validity window (ms) sent alongside every signed request
DEFAULT_WINDOW_MS = 5000

# REST paths
PATHS = {
    "time": "/api/v1/time",
    "exchange_info": "/api/v1/exchangeInfo",
    "ticker": "/api/v1/ticker",
    "tickers": "/api/v1/tickers",
    "depth": "/api/v1/depth",
    "trades": "/api/v1/trades",
    "historical_trades": "/api/v1/historicalTrades",
    "klines": "/api/v1/klines",
    "order": "/api/v1/order",
    "order_test": "/api/v1/order/test",
    "open_orders": "/api/v1/openOrders",
    "all_orders": "/api/v1/allOrders",
    "account": "/api/v1/account",
    "balances": "/api/v1/balances",
    "my_trades": "/api/v1/myTrades",
}


@dataclass
class SessionConfig:
    """Tunables for one streaming connection."""

    keepalive_interval: float = 30.0
    max_queue_size: int = 1024  # outbound frames; enqueue fails past this
    open_timeout: float = 10.0
    close_timeout: float = 10.0
    max_size: int | None = None  # bytes; None = websockets default
    auth_timeout: float = 5.0
    auth_poll_interval: float = 0.1
    window_ms: int = DEFAULT_WINDOW_MS
    base_reconnect_delay: float = 1.0
    max_reconnect_delay: float = 30.0
    jitter: float = 0.2  # +/-20% jitter to avoid thundering herds
    max_reconnect_attempts: int = 5

    def __post_init__(self) -> None:
        if self.max_queue_size < 1:
            raise ConfigurationError(
                f"max_queue_size must be at least 1, got {self.max_queue_size}"
            )


@dataclass
class RESTConfig:
    """Tunables for the one-shot HTTP transport."""

    base_url: str = REST_URL
    timeout: float = 30.0
    window_ms: int = DEFAULT_WINDOW_MS
