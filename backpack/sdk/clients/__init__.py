"""High-level clients."""

from .backpack_client import BackpackClient, BackpackRESTClient
from .rest_mixin import RESTMixin

__all__ = ["BackpackClient", "BackpackRESTClient", "RESTMixin"]
