"""Ed25519 request signing shared by the REST and streaming transports.

Architecture:
    Both transports build their authentication headers through one ``Signer``
    so they can never disagree on how a signature is computed. The private
    key is decoded from Base64 once, when the signer is created, and only the
    resulting ``SigningKey`` is kept.

Message formats:
    - streaming handshake: ``timestamp + window``
    - one-shot call without body (GET/DELETE): ``timestamp``
    - one-shot call with body (POST/PUT): ``body + timestamp``

Signing is "pure" Ed25519 over the raw message bytes (no pre-hash) and the
signature is Base64-encoded for transport.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import time
from dataclasses import dataclass, field

from nacl.encoding import RawEncoder
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import SigningKey, VerifyKey

from ..config import DEFAULT_WINDOW_MS
from ..core.exceptions import ConfigurationError, CredentialsError, SigningError

logger = logging.getLogger(__name__)

SEED_LENGTH = 32
KEYPAIR_LENGTH = 64

BODY_METHODS = frozenset({"POST", "PUT"})


def current_timestamp_ms() -> int:
    """Current wall-clock time in milliseconds since epoch."""
    return int(time.time() * 1000)


def decode_private_key(encoded: str) -> bytes:
    """Decode a Base64 private key into raw key bytes.

    Raises:
        ConfigurationError: If the value is not Base64 or does not decode to
            32 (seed) or 64 (seed + public key) bytes
    """
    if not encoded:
        raise CredentialsError("Private key is empty")
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigurationError("Private key is not valid Base64") from e
    _check_key_length(raw)
    return raw


def _check_key_length(raw: bytes) -> None:
    if len(raw) not in (SEED_LENGTH, KEYPAIR_LENGTH):
        raise ConfigurationError(
            f"Private key must decode to {SEED_LENGTH} or {KEYPAIR_LENGTH} bytes, got {len(raw)}"
        )


def _signing_key(private_key: bytes) -> SigningKey:
    _check_key_length(private_key)
    # A 64-byte key is seed || public key; the seed alone determines the pair
    key = SigningKey(bytes(private_key[:SEED_LENGTH]))
    if len(private_key) == KEYPAIR_LENGTH and key.verify_key.encode() != bytes(
        private_key[SEED_LENGTH:]
    ):
        raise ConfigurationError("Private key public half does not match its seed")
    return key


def sign(message: bytes, private_key: bytes) -> bytes:
    """Sign ``message`` with a raw 32- or 64-byte Ed25519 private key.

    Raises:
        ConfigurationError: Malformed key length (raised before anything else)
        SigningError: The signing backend failed
    """
    key = _signing_key(private_key)
    try:
        return key.sign(message, encoder=RawEncoder).signature
    except CryptoError as e:
        raise SigningError(f"Ed25519 signing failed: {e}") from e


def verify(message: bytes, signature: bytes, verifying_key: bytes) -> bool:
    """Return True when ``signature`` is valid for ``message`` under ``verifying_key``."""
    try:
        VerifyKey(verifying_key).verify(message, signature)
    except BadSignatureError:
        return False
    return True


def handshake_message(timestamp: int | str, window: int | str = DEFAULT_WINDOW_MS) -> str:
    """Message signed for the streaming handshake."""
    return f"{timestamp}{window}"


def request_message(method: str, timestamp: int | str, body: str | None = None) -> str:
    """Message signed for a one-shot REST call."""
    if method.upper() in BODY_METHODS and body:
        return f"{body}{timestamp}"
    return str(timestamp)


@dataclass(frozen=True)
class Credentials:
    """API key pair: public key id plus Base64 Ed25519 private key."""

    api_key: str
    secret_key: str = field(repr=False)

    @property
    def is_valid(self) -> bool:
        """Both fields present."""
        return bool(self.api_key) and bool(self.secret_key)

    @classmethod
    def from_env(cls, prefix: str = "BACKPACK_") -> Credentials | None:
        """Read ``<prefix>API_KEY`` / ``<prefix>SECRET_KEY``. None if either is unset."""
        api_key = os.getenv(f"{prefix}API_KEY", "")
        secret_key = os.getenv(f"{prefix}SECRET_KEY", "")
        if not api_key or not secret_key:
            return None
        return cls(api_key=api_key, secret_key=secret_key)

    def __repr__(self) -> str:
        return f"Credentials(api_key={self.api_key!r}, secret_key='***')"


class Signer:
    """Signs handshake and request messages for one set of credentials.

    Decodes and validates the private key at construction, so a malformed key
    fails before any connection is attempted.
    """

    def __init__(self, credentials: Credentials, *, window_ms: int = DEFAULT_WINDOW_MS) -> None:
        if not credentials.is_valid:
            raise CredentialsError("API key and secret key are both required")
        self._api_key = credentials.api_key
        self._key = _signing_key(decode_private_key(credentials.secret_key))
        self.window_ms = window_ms

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def verifying_key(self) -> bytes:
        return self._key.verify_key.encode(RawEncoder)

    @property
    def verifying_key_b64(self) -> str:
        return base64.b64encode(self.verifying_key).decode("utf-8")

    def sign(self, message: str | bytes) -> bytes:
        """Raw Ed25519 signature over ``message``."""
        data = message.encode("utf-8") if isinstance(message, str) else message
        try:
            return self._key.sign(data, encoder=RawEncoder).signature
        except CryptoError as e:
            raise SigningError(f"Ed25519 signing failed: {e}") from e

    def sign_b64(self, message: str | bytes) -> str:
        """Base64 signature over ``message``, ready for transport."""
        return base64.b64encode(self.sign(message)).decode("utf-8")

    def handshake_headers(
        self, timestamp: int | None = None, window: int | None = None
    ) -> dict[str, str]:
        """Signed headers for the streaming handshake."""
        ts = current_timestamp_ms() if timestamp is None else timestamp
        win = self.window_ms if window is None else window
        return {
            "X-API-Key": self._api_key,
            "X-Timestamp": str(ts),
            "X-Window": str(win),
            "X-Signature": self.sign_b64(handshake_message(ts, win)),
        }

    def request_headers(
        self,
        method: str,
        body: str | None = None,
        *,
        timestamp: int | None = None,
        window: int | None = None,
    ) -> dict[str, str]:
        """Signed headers for a one-shot REST call."""
        ts = current_timestamp_ms() if timestamp is None else timestamp
        win = self.window_ms if window is None else window
        return {
            "X-API-Key": self._api_key,
            "X-Timestamp": str(ts),
            "X-Window": str(win),
            "X-Signature": self.sign_b64(request_message(method, ts, body)),
        }

    def __repr__(self) -> str:
        return f"Signer(api_key={self._api_key!r})"
