"""Data models for market and account data.

Architecture:
    This module exports the Pydantic v2 models the REST methods and the typed
    streaming helpers return. All models are immutable (frozen=True) and
    accept the exchange's camelCase field names through aliases.

Design Decisions:
    - Pydantic v2: Type validation and immutable models
    - Decimal for prices and quantities: Precision for financial values
    - Plain dataclasses for streaming events: No validation on the hot path
"""

from .account import Account, Balance, Position
from .candle import Candle
from .events import ConnectionEvent, StreamEvent
from .exchange_info import ExchangeInfo, SymbolInfo
from .order import Order, OrderRequest
from .order_book import OrderBook, OrderBookLevel
from .ticker import Ticker
from .trade import Trade

__all__ = [
    "Account",
    "Balance",
    "Candle",
    "ConnectionEvent",
    "ExchangeInfo",
    "Order",
    "OrderBook",
    "OrderBookLevel",
    "OrderRequest",
    "Position",
    "StreamEvent",
    "SymbolInfo",
    "Ticker",
    "Trade",
]
