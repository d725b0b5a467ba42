"""Shared fixtures for integration tests."""

import os

import pytest

from backpack.sdk import Credentials

NETWORK_ENABLED = os.environ.get("RUN_BACKPACK_NETWORK_TESTS") == "1"

# Skip all integration tests unless RUN_BACKPACK_NETWORK_TESTS=1
pytestmark = pytest.mark.skipif(
    not NETWORK_ENABLED,
    reason="Requires network access. Set RUN_BACKPACK_NETWORK_TESTS=1 to run",
)


@pytest.fixture
def env_credentials():
    creds = Credentials.from_env()
    if creds is None:
        pytest.skip("BACKPACK_API_KEY / BACKPACK_SECRET_KEY not set")
    return creds
