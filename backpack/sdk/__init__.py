"""Backpack SDK - streaming subscriptions and signed REST calls for the Backpack exchange."""

from .auth import Credentials, Signer
from .clients import BackpackClient, BackpackRESTClient
from .config import REST_URL, WS_URL, RESTConfig, SessionConfig
from .core import (
    APIError,
    BackpackError,
    Channel,
    ConfigurationError,
    ConnectionState,
    CredentialsError,
    OrderSide,
    OrderStatus,
    OrderType,
    ProtocolError,
    ProviderError,
    QueueFullError,
    RateLimitError,
    SigningError,
    SubscriptionKey,
    TimeInForce,
    TransportError,
)
from .models import (
    Account,
    Balance,
    Candle,
    ConnectionEvent,
    ExchangeInfo,
    Order,
    OrderBook,
    OrderBookLevel,
    OrderRequest,
    Position,
    StreamEvent,
    SymbolInfo,
    Ticker,
    Trade,
)
from .runtime.rest import RESTTransport
from .runtime.ws import ConnectionSession, Dispatcher, SubscriptionRegistry

__version__ = "0.1.0"

__all__ = [
    # Clients
    "BackpackClient",
    "BackpackRESTClient",
    # Auth
    "Credentials",
    "Signer",
    # Config
    "REST_URL",
    "WS_URL",
    "RESTConfig",
    "SessionConfig",
    # Runtime
    "ConnectionSession",
    "Dispatcher",
    "RESTTransport",
    "SubscriptionRegistry",
    # Enums / keys
    "Channel",
    "ConnectionState",
    "OrderSide",
    "OrderStatus",
    "OrderType",
    "SubscriptionKey",
    "TimeInForce",
    # Models
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
    # Exceptions
    "APIError",
    "BackpackError",
    "ConfigurationError",
    "CredentialsError",
    "ProtocolError",
    "ProviderError",
    "QueueFullError",
    "RateLimitError",
    "SigningError",
    "TransportError",
]
