"""Custom exception hierarchy."""

from __future__ import annotations


class BackpackError(Exception):
    """Base exception for all library errors."""

    pass


class ConfigurationError(BackpackError):
    """Invalid configuration, raised before any network I/O.

    Never retried automatically: a malformed key stays malformed.
    """

    pass


class CredentialsError(ConfigurationError):
    """Authenticated operation attempted without usable credentials."""

    pass


class SigningError(BackpackError):
    """The signing backend failed. Nothing was sent."""

    pass


class TransportError(BackpackError):
    """Network-level failure (DNS, TLS, refused connection, broken socket)."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class ProtocolError(BackpackError):
    """Inbound frame could not be understood.

    Used as the error value of frame parsing; it is logged and dropped by the
    dispatcher and never terminates the receive loop.
    """

    def __init__(self, message: str, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class QueueFullError(BackpackError):
    """Outbound message queue is at capacity (backpressure signal)."""

    def __init__(self, message: str, capacity: int) -> None:
        super().__init__(message)
        self.capacity = capacity


class ProviderError(BackpackError):
    """Error response from the exchange REST API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(ProviderError):
    """Exchange rate limit exceeded."""

    def __init__(self, message: str, retry_after: int = 60) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class APIError(ProviderError):
    """Exchange returned an error body (``{"code": ..., "msg": ...}``)."""

    def __init__(
        self,
        message: str,
        code: str | int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.code = code
