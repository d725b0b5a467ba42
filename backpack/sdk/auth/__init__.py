"""Request signing."""

from .signing import (
    Credentials,
    Signer,
    current_timestamp_ms,
    decode_private_key,
    handshake_message,
    request_message,
    sign,
    verify,
)

__all__ = [
    "Credentials",
    "Signer",
    "current_timestamp_ms",
    "decode_private_key",
    "handshake_message",
    "request_message",
    "sign",
    "verify",
]
