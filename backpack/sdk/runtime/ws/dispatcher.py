"""Inbound frame dispatcher.

Classifies each raw frame with ``parse_frame`` and routes data frames to the
handler the registry resolves for their stream. Control frames drive the
session's authentication bookkeeping. Nothing raised by parsing or by a
handler leaves ``dispatch``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass

from ...core.streams import parse_stream_id
from ...models.events import StreamEvent
from .frames import ControlFrame, ControlKind, FrameError, parse_frame
from .registry import Handler, SubscriptionRegistry
from .session import ConnectionSession

logger = logging.getLogger(__name__)


@dataclass
class DispatchStats:
    """Counters for frames seen by a dispatcher."""

    frames_received: int = 0
    frames_dispatched: int = 0
    frames_dropped: int = 0
    control_frames: int = 0
    errors: int = 0


class Dispatcher:
    """Routes frames from one session to the handlers in one registry."""

    def __init__(
        self, registry: SubscriptionRegistry, session: ConnectionSession | None = None
    ) -> None:
        self._registry = registry
        self._session = session
        self._general_handler: Handler | None = None
        self.stats = DispatchStats()
        self._handler_tasks: set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> int:
        """Coroutine handlers still running."""
        return len(self._handler_tasks)

    def set_general_handler(self, handler: Handler | None) -> None:
        """Handler that sees every routable data frame, before the specific one."""
        self._general_handler = handler

    def dispatch(self, raw: str | bytes) -> bool:
        """Process one raw frame. Returns True when a subscription handler ran."""
        self.stats.frames_received += 1
        frame = parse_frame(raw)

        if isinstance(frame, FrameError):
            self.stats.errors += 1
            logger.warning(f"Dropping malformed frame: {frame.error}")
            return False

        if isinstance(frame, ControlFrame):
            self.stats.control_frames += 1
            self._handle_control(frame)
            return False

        parsed = parse_stream_id(frame.stream)
        if parsed is None:
            self.stats.frames_dropped += 1
            logger.debug(f"Dropping frame for unknown stream {frame.stream!r}")
            return False

        channel, symbol = parsed
        event = StreamEvent(channel=channel, symbol=symbol, data=frame.data, stream=frame.stream)

        general = self._general_handler
        if general is not None:
            self._invoke(general, event)

        handler = self._registry.lookup(channel, symbol)
        if handler is None:
            self.stats.frames_dropped += 1
            logger.debug(f"No handler for stream {frame.stream}")
            return False

        self._invoke(handler, event)
        self.stats.frames_dispatched += 1
        return True

    def _handle_control(self, frame: ControlFrame) -> None:
        session = self._session
        pending = session.pending_auth_id if session is not None else None
        is_auth_reply = pending is not None and frame.request_id == pending

        if frame.kind == ControlKind.PONG:
            logger.debug("Received pong")
            return

        if frame.kind == ControlKind.ERROR:
            if is_auth_reply:
                session.complete_authentication(False, frame.request_id)
            logger.error(f"Server reported error (id={frame.request_id}): {frame.error}")
            return

        if frame.kind == ControlKind.ACK:
            if is_auth_reply:
                session.complete_authentication(frame.succeeded, frame.request_id)
            else:
                logger.debug(f"Request {frame.request_id} acknowledged: {frame.result}")
            return

        logger.debug(f"Ignoring unrecognized control frame: {frame.result}")

    def _invoke(self, handler: Handler, event: StreamEvent) -> None:
        try:
            result = handler(event)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._handler_tasks.add(task)
                task.add_done_callback(self._on_handler_done)
        except Exception as e:  # noqa: BLE001
            self.stats.errors += 1
            logger.error(f"Handler for {event.stream} raised: {e}", exc_info=True)

    def _on_handler_done(self, task: asyncio.Future) -> None:
        self._handler_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.stats.errors += 1
            logger.error(f"Async handler raised: {exc}", exc_info=exc)
