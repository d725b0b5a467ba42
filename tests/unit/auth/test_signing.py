"""Unit tests for Ed25519 signing and the shared Signer."""

from __future__ import annotations

import base64
from unittest.mock import AsyncMock, patch

import pytest
from nacl.signing import SigningKey

from backpack.sdk import BackpackClient
from backpack.sdk.auth import (
    Credentials,
    Signer,
    decode_private_key,
    handshake_message,
    request_message,
    sign,
    verify,
)
from backpack.sdk.core import ConfigurationError, CredentialsError


class TestSign:
    """Test sign() and verify()."""

    def test_signature_verifies_with_seed_key(self, signing_key):
        """A signature from a 32-byte seed verifies under the matching public key."""
        message = b"1700000000000" + b"5000"
        signature = sign(message, signing_key.encode())

        assert len(signature) == 64
        assert verify(message, signature, signing_key.verify_key.encode())

    def test_signature_verifies_with_keypair_key(self, signing_key):
        """A 64-byte seed+public key signs identically to the bare seed."""
        keypair = signing_key.encode() + signing_key.verify_key.encode()
        message = b"payload"

        assert sign(message, keypair) == sign(message, signing_key.encode())

    def test_keypair_with_foreign_public_half_rejected(self, signing_key):
        """A 64-byte key whose public half belongs to another seed is rejected."""
        other = SigningKey.generate()
        keypair = signing_key.encode() + other.verify_key.encode()

        with pytest.raises(ConfigurationError):
            sign(b"payload", keypair)

    def test_verify_rejects_tampered_message(self, signing_key):
        """Test verify() fails once the message changes."""
        signature = sign(b"original", signing_key.encode())
        assert not verify(b"tampered", signature, signing_key.verify_key.encode())

    @pytest.mark.parametrize("length", [31, 33, 0, 63, 65])
    def test_malformed_key_length_raises(self, length):
        """Keys that are neither 32 nor 64 bytes are rejected before signing."""
        with pytest.raises(ConfigurationError):
            sign(b"message", b"\x01" * length)

    def test_signing_twice_both_verify(self, signing_key):
        """Test repeated signatures of one message all verify."""
        message = b"1700000000000"
        first = sign(message, signing_key.encode())
        second = sign(message, signing_key.encode())

        public = signing_key.verify_key.encode()
        assert verify(message, first, public)
        assert verify(message, second, public)


class TestKeyDecoding:
    """Test decode_private_key()."""

    def test_rejects_bad_base64(self):
        """Test non-Base64 input is a configuration error."""
        with pytest.raises(ConfigurationError):
            decode_private_key("not base64!!")

    def test_empty_is_credentials_error(self):
        """Test an empty secret is reported as missing credentials."""
        with pytest.raises(CredentialsError):
            decode_private_key("")

    def test_generated_key_round_trip(self):
        """Test a Base64-encoded seed decodes to the same bytes."""
        key = SigningKey.generate()
        raw = decode_private_key(base64.b64encode(key.encode()).decode())
        assert raw == key.encode()


class TestMessages:
    """Test the signed message layouts."""

    def test_message_formats(self):
        """Handshake signs timestamp+window; only POST/PUT prepend the body."""
        assert handshake_message(1700000000000, 5000) == "17000000000005000"
        assert request_message("GET", 1700000000000) == "1700000000000"
        assert request_message("DELETE", 1700000000000, '{"a":1}') == "1700000000000"
        assert request_message("POST", 1700000000000, '{"a":1}') == '{"a":1}1700000000000'
        assert request_message("put", 1, "x") == "x1"


class TestSigner:
    """Signer shared by both transports."""

    def test_handshake_headers_verify(self, credentials, signing_key):
        """Test handshake headers carry a verifiable signature."""
        signer = Signer(credentials, window_ms=5000)
        headers = signer.handshake_headers(timestamp=1700000000000)

        assert headers["X-API-Key"] == "test-api-key"
        assert headers["X-Timestamp"] == "1700000000000"
        assert headers["X-Window"] == "5000"
        signature = base64.b64decode(headers["X-Signature"])
        assert verify(b"17000000000005000", signature, signing_key.verify_key.encode())

    def test_request_headers_sign_body_then_timestamp(self, credentials, signing_key):
        """Test POST headers sign body followed by timestamp."""
        signer = Signer(credentials)
        body = '{"symbol":"SOL_USDC"}'
        headers = signer.request_headers("POST", body, timestamp=42)

        signature = base64.b64decode(headers["X-Signature"])
        assert verify(f"{body}42".encode(), signature, signing_key.verify_key.encode())

    def test_verifying_key_matches(self, credentials, signing_key):
        """Test the derived public key matches the generated pair."""
        signer = Signer(credentials)
        assert signer.verifying_key == signing_key.verify_key.encode()

    def test_missing_secret_raises(self):
        """Test an empty secret fails at construction."""
        with pytest.raises(CredentialsError):
            Signer(Credentials(api_key="key", secret_key=""))

    def test_mismatched_keypair_rejected_at_construction(self, signing_key):
        """Test an inconsistent 64-byte key fails when the Signer is built."""
        keypair = signing_key.encode() + SigningKey.generate().verify_key.encode()
        secret = base64.b64encode(keypair).decode()

        with pytest.raises(ConfigurationError):
            Signer(Credentials(api_key="key", secret_key=secret))

    def test_repr_hides_secret(self, credentials):
        """Test neither repr leaks the secret."""
        assert credentials.secret_key not in repr(credentials)
        assert credentials.secret_key not in repr(Signer(credentials))


class TestCredentials:
    """Test Credentials loading and client-level key validation."""

    def test_from_env(self, monkeypatch):
        """Test both variables are required."""
        monkeypatch.setenv("BACKPACK_API_KEY", "abc")
        monkeypatch.setenv("BACKPACK_SECRET_KEY", "c2VjcmV0")
        creds = Credentials.from_env()
        assert creds == Credentials(api_key="abc", secret_key="c2VjcmV0")

        monkeypatch.delenv("BACKPACK_SECRET_KEY")
        assert Credentials.from_env() is None

    @pytest.mark.parametrize("length", [31, 33])
    def test_malformed_key_fails_before_any_network_call(self, length):
        """A bad key length surfaces at client construction with no connection attempt."""
        secret = base64.b64encode(b"\x02" * length).decode()
        with patch("websockets.connect", new=AsyncMock()) as connect:
            with pytest.raises(ConfigurationError):
                BackpackClient(Credentials(api_key="key", secret_key=secret))
            connect.assert_not_called()
