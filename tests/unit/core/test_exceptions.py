"""Unit tests for the exception hierarchy."""

from backpack.sdk.core import (
    APIError,
    BackpackError,
    ConfigurationError,
    CredentialsError,
    ProviderError,
    QueueFullError,
    RateLimitError,
    TransportError,
)


def test_rate_limit_error_with_retry_after():
    """Test RateLimitError with retry_after."""
    error = RateLimitError("rate limit", retry_after=120)
    assert error.status_code == 429
    assert error.retry_after == 120
    assert isinstance(error, ProviderError)
    assert isinstance(error, BackpackError)


def test_api_error_carries_code():
    """Test APIError keeps the exchange error code."""
    error = APIError("bad order", code="INVALID_ORDER", status_code=400)
    assert error.code == "INVALID_ORDER"
    assert error.status_code == 400
    assert isinstance(error, ProviderError)


def test_credentials_error_is_configuration_error():
    """Test CredentialsError is a ConfigurationError."""
    assert issubclass(CredentialsError, ConfigurationError)


def test_queue_full_and_transport_context():
    """Test QueueFullError and TransportError keep their context."""
    assert QueueFullError("full", capacity=8).capacity == 8
    assert TransportError("down", url="wss://x").url == "wss://x"
