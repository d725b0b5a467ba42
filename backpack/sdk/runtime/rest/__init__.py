"""REST runtime."""

from .transport import RESTTransport

__all__ = ["RESTTransport"]
