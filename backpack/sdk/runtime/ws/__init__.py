"""Streaming runtime: connection session, subscription registry and dispatcher."""

from .dispatcher import Dispatcher, DispatchStats
from .frames import (
    PING_FRAME,
    ControlFrame,
    ControlKind,
    DataFrame,
    FrameError,
    auth_frame,
    parse_frame,
    subscribe_frame,
    unsubscribe_frame,
)
from .registry import Handler, SubscriptionRegistry
from .session import ConnectionSession

__all__ = [
    "PING_FRAME",
    "ConnectionSession",
    "ControlFrame",
    "ControlKind",
    "DataFrame",
    "DispatchStats",
    "Dispatcher",
    "FrameError",
    "Handler",
    "SubscriptionRegistry",
    "auth_frame",
    "parse_frame",
    "subscribe_frame",
    "unsubscribe_frame",
]
