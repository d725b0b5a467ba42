"""Connection session: one physical streaming connection and its state.

Architecture:
    ``connect`` opens the socket with ``websockets.connect`` and starts three
    tasks on the running loop:

    - receive loop: reads text frames and hands each one to the message
      callback (normally ``Dispatcher.dispatch``)
    - sender: drains a bounded outbound ``asyncio.Queue`` onto the socket
    - keep-alive: enqueues ``{"method": "PING"}`` every ``keepalive_interval``
      while the session is Connected or Authenticated

    ``send`` never blocks and never raises: it returns False when the session
    is not open or the queue is at capacity. A read or write failure moves the
    session to Disconnected, stops the other tasks and invokes the failure
    callback once. ``disconnect`` is idempotent and closes with code 1000.

The state field is guarded by a ``threading.Lock`` that is never held across
I/O or callbacks, so state can be read from any thread.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed

from ...config import SessionConfig
from ...core.enums import ConnectionState
from ...core.exceptions import QueueFullError, TransportError
from .frames import PING_FRAME, encode_frame

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str], Any]
FailureCallback = Callable[[str], Any]

NORMAL_CLOSURE = 1000


class ConnectionSession:
    """Owns one streaming connection, its outbound queue and its lifecycle."""

    def __init__(
        self,
        config: SessionConfig | None = None,
        *,
        on_message: MessageCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> None:
        self._conf = config or SessionConfig()
        self._on_message = on_message
        self._on_failure = on_failure

        self._state = ConnectionState.DISCONNECTED
        self._lock = threading.Lock()
        self._ws: Any = None
        self._url: str | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[str] | None = None
        self._tasks: list[asyncio.Task] = []
        self._callback_tasks: set[asyncio.Task] = set()
        self._pending_auth_id: int | None = None

        self.connected_at: datetime | None = None
        self.last_message_at: datetime | None = None

    # --- callbacks -----------------------------------------------------------

    def set_message_handler(self, callback: MessageCallback | None) -> None:
        self._on_message = callback

    def set_failure_handler(self, callback: FailureCallback | None) -> None:
        self._on_failure = callback

    # --- state ---------------------------------------------------------------

    @property
    def config(self) -> SessionConfig:
        return self._conf

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def is_connected(self) -> bool:
        return self.state.is_open

    @property
    def is_authenticated(self) -> bool:
        return self.state == ConnectionState.AUTHENTICATED

    @property
    def url(self) -> str | None:
        return self._url

    @property
    def pending(self) -> int:
        """Frames currently waiting in the outbound queue."""
        return self._queue.qsize() if self._queue is not None else 0

    @property
    def pending_auth_id(self) -> int | None:
        with self._lock:
            return self._pending_auth_id

    def _transition(
        self, new: ConnectionState, *, expected: tuple[ConnectionState, ...] | None = None
    ) -> bool:
        with self._lock:
            old = self._state
            if expected is not None and old not in expected:
                return False
            self._state = new
        if old != new:
            logger.debug(f"Session state {old} -> {new}")
        return True

    # --- lifecycle -----------------------------------------------------------

    def _connect_kwargs(self, headers: dict[str, str] | None) -> dict[str, Any]:
        conf = self._conf
        kwargs: dict[str, Any] = {
            # Keep-alive is sent as application-level PING frames
            "ping_interval": None,
            "open_timeout": conf.open_timeout,
            "close_timeout": conf.close_timeout,
        }
        if conf.max_size is not None:
            kwargs["max_size"] = conf.max_size
        if headers:
            kwargs["additional_headers"] = headers
        return kwargs

    async def connect(self, url: str, headers: dict[str, str] | None = None) -> bool:
        """Open the connection and start the session tasks.

        Returns True when the session is open (including when it already was)
        and False when the attempt failed; a failed attempt always leaves the
        session Disconnected.
        A ``disconnect()`` issued during the handshake makes it return False.
        """
        if not self._transition(
            ConnectionState.CONNECTING, expected=(ConnectionState.DISCONNECTED,)
        ):
            state = self.state
            logger.debug(f"connect() ignored, session is {state}")
            return state.is_open

        await self._reap_tasks()
        logger.info(f"Connecting to {url}")
        try:
            ws = await websockets.connect(url, **self._connect_kwargs(headers))
        except asyncio.CancelledError:
            self._transition(ConnectionState.DISCONNECTED, expected=(ConnectionState.CONNECTING,))
            raise
        except Exception as e:  # noqa: BLE001
            logger.error(f"Connection to {url} failed: {e}")
            self._transition(ConnectionState.DISCONNECTED, expected=(ConnectionState.CONNECTING,))
            return False

        # disconnect() during the handshake cancels this attempt
        if not self._transition(ConnectionState.CONNECTED, expected=(ConnectionState.CONNECTING,)):
            logger.info(f"Connection to {url} abandoned, disconnect requested while connecting")
            await self._close_socket(ws)
            return False

        self._ws = ws
        self._url = url
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self._conf.max_queue_size)
        with self._lock:
            self._pending_auth_id = None
        self.connected_at = datetime.now()
        self.last_message_at = None

        self._tasks = [
            asyncio.create_task(self._receive_loop(ws), name="backpack-ws-receive"),
            asyncio.create_task(self._send_loop(ws, self._queue), name="backpack-ws-send"),
            asyncio.create_task(self._keepalive_loop(), name="backpack-ws-keepalive"),
        ]
        logger.info(f"Connected to {url}")
        return True

    async def disconnect(self) -> None:
        """Close the connection with a normal-closure frame and stop all tasks.

        Safe to call repeatedly and while a previous call is in progress.
        """
        with self._lock:
            state = self._state
            if state in (ConnectionState.DISCONNECTED, ConnectionState.CLOSING):
                closing = False
            else:
                self._state = ConnectionState.CLOSING
                closing = True

        if not closing:
            if state == ConnectionState.DISCONNECTED:
                await self._reap_tasks()
            return

        if self._ws is not None:
            await self._close_socket(self._ws)

        await self._reap_tasks()
        self._ws = None
        self._queue = None
        with self._lock:
            self._pending_auth_id = None
            self._state = ConnectionState.DISCONNECTED
        logger.info(f"Disconnected from {self._url}")

    def disconnect_threadsafe(self, timeout: float | None = None) -> None:
        """Run ``disconnect`` on the session's loop from another thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        future = asyncio.run_coroutine_threadsafe(self.disconnect(), loop)
        future.result(timeout)

    async def _close_socket(self, ws: Any) -> None:
        try:
            await asyncio.wait_for(
                ws.close(code=NORMAL_CLOSURE, reason="Client disconnect"),
                timeout=self._conf.close_timeout,
            )
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Error closing connection: {e}")

    async def _reap_tasks(self) -> None:
        current = asyncio.current_task()
        tasks = [t for t in self._tasks if t is not current]
        self._tasks = []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _fail(self, reason: str) -> None:
        """Handle an unexpected read/write failure exactly once."""
        with self._lock:
            if self._state in (ConnectionState.DISCONNECTED, ConnectionState.CLOSING):
                return
            self._state = ConnectionState.DISCONNECTED
            self._pending_auth_id = None

        current = asyncio.current_task()
        for task in self._tasks:
            if task is not current:
                task.cancel()
        self._ws = None
        self._queue = None
        logger.error(f"Streaming connection lost: {reason}")

        callback = self._on_failure
        if callback is None:
            return
        try:
            result = callback(reason)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._callback_tasks.add(task)
                task.add_done_callback(self._callback_tasks.discard)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Failure callback raised: {e}", exc_info=True)

    # --- tasks ---------------------------------------------------------------

    async def _receive_loop(self, ws: Any) -> None:
        try:
            while True:
                raw = await ws.recv()
                self.last_message_at = datetime.now()
                callback = self._on_message
                if callback is None:
                    continue
                try:
                    callback(raw)
                except Exception as e:  # noqa: BLE001
                    logger.error(f"Message callback raised: {e}", exc_info=True)
        except asyncio.CancelledError:
            raise
        except ConnectionClosed as e:
            self._fail(f"connection closed ({e})")
        except Exception as e:  # noqa: BLE001
            self._fail(f"read failed ({e})")

    async def _send_loop(self, ws: Any, queue: asyncio.Queue[str]) -> None:
        while True:
            frame = await queue.get()
            try:
                await ws.send(frame)
            except asyncio.CancelledError:
                raise
            except Exception as e:  # noqa: BLE001
                self._fail(f"write failed ({e})")
                return
            finally:
                queue.task_done()

    async def _keepalive_loop(self) -> None:
        while True:
            await asyncio.sleep(self._conf.keepalive_interval)
            if self.state in (ConnectionState.CONNECTED, ConnectionState.AUTHENTICATED):
                if not self.send(PING_FRAME):
                    logger.warning("Keep-alive ping could not be queued")

    # --- outbound ------------------------------------------------------------

    def send(self, frame: str | dict[str, Any]) -> bool:
        """Queue a frame for transmission.

        Returns False without side effects when the session is not open or
        the outbound queue is full. Call from the session's event loop.
        """
        queue = self._queue
        if queue is None or not self.is_connected:
            logger.debug("Frame not queued: session is not connected")
            return False
        try:
            queue.put_nowait(encode_frame(frame))
        except asyncio.QueueFull:
            logger.warning(
                f"Outbound queue full ({self._conf.max_queue_size} frames), frame rejected"
            )
            return False
        return True

    def send_or_raise(self, frame: str | dict[str, Any]) -> None:
        """Like ``send`` but raises on rejection.

        Raises:
            TransportError: The session is not open
            QueueFullError: The outbound queue is at capacity
        """
        queue = self._queue
        if queue is None or not self.is_connected:
            raise TransportError("Session is not connected", url=self._url)
        try:
            queue.put_nowait(encode_frame(frame))
        except asyncio.QueueFull as e:
            raise QueueFullError(
                "Outbound queue is full", capacity=self._conf.max_queue_size
            ) from e

    def ping(self) -> bool:
        return self.send(PING_FRAME)

    # --- authentication bookkeeping ------------------------------------------

    def begin_authentication(self, request_id: int) -> bool:
        """Connected -> Authenticating, remembering the auth request id."""
        with self._lock:
            if self._state != ConnectionState.CONNECTED:
                return False
            self._state = ConnectionState.AUTHENTICATING
            self._pending_auth_id = request_id
        logger.debug(f"Authentication request {request_id} pending")
        return True

    def complete_authentication(self, success: bool, request_id: int | None = None) -> bool:
        """Resolve a pending authentication.

        Success moves to Authenticated, rejection back to Connected. Ignored
        (returns False) when no authentication is pending or ``request_id``
        names a different request.
        """
        with self._lock:
            if self._state != ConnectionState.AUTHENTICATING:
                return False
            if request_id is not None and request_id != self._pending_auth_id:
                return False
            self._state = (
                ConnectionState.AUTHENTICATED if success else ConnectionState.CONNECTED
            )
            self._pending_auth_id = None
        if success:
            logger.info("Streaming session authenticated")
        else:
            logger.warning("Streaming authentication rejected")
        return True

    def abandon_authentication(self, request_id: int | None = None) -> bool:
        """Give up waiting for an acknowledgement (back to Connected)."""
        with self._lock:
            if self._state != ConnectionState.AUTHENTICATING:
                return False
            if request_id is not None and request_id != self._pending_auth_id:
                return False
            self._state = ConnectionState.CONNECTED
            self._pending_auth_id = None
        return True

    def __repr__(self) -> str:
        return f"ConnectionSession(url={self._url!r}, state={self.state})"
