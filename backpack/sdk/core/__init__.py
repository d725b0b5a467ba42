"""Core components."""

from .enums import (
    Channel,
    ConnectionState,
    OrderSide,
    OrderStatus,
    OrderType,
    TimeInForce,
    requires_auth,
)
from .exceptions import (
    APIError,
    BackpackError,
    ConfigurationError,
    CredentialsError,
    ProtocolError,
    ProviderError,
    QueueFullError,
    RateLimitError,
    SigningError,
    TransportError,
)
from .streams import (
    SubscriptionKey,
    build_stream_id,
    display_symbol,
    normalize_symbol,
    parse_stream_id,
)

__all__ = [
    "Channel",
    "ConnectionState",
    "OrderSide",
    "OrderStatus",
    "OrderType",
    "TimeInForce",
    "requires_auth",
    # Stream identifiers
    "SubscriptionKey",
    "build_stream_id",
    "display_symbol",
    "normalize_symbol",
    "parse_stream_id",
    # Exceptions
    "BackpackError",
    "ConfigurationError",
    "CredentialsError",
    "SigningError",
    "TransportError",
    "ProtocolError",
    "QueueFullError",
    "ProviderError",
    "RateLimitError",
    "APIError",
]
