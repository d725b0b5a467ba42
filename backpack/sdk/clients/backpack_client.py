"""High-level Backpack client.

Architecture:
    ``BackpackClient`` owns one ``ConnectionSession``, one
    ``SubscriptionRegistry`` and the ``Dispatcher`` that joins them, plus a
    ``RESTTransport`` for one-shot calls. Both transports sign through the
    same ``Signer``.

    Subscribing registers the handler before the SUBSCRIBE frame is queued,
    so a data frame that races the server acknowledgement is still routed.
    Private channels require an authenticated session; ``subscribe``
    authenticates on demand.

Lifecycle:
    - ``disconnect()`` closes the connection and forgets every subscription.
    - An unexpected connection loss keeps the registry. ``reconnect()``
      reopens the connection with backoff and re-sends every subscription
      (authenticating first when a private one exists).
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
import random
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..auth.signing import Credentials, Signer, current_timestamp_ms, handshake_message
from ..config import REST_URL, WS_URL, RESTConfig, SessionConfig
from ..core.enums import Channel, ConnectionState
from ..core.streams import SubscriptionKey
from ..models.account import Balance, Position
from ..models.candle import Candle
from ..models.events import ConnectionEvent, StreamEvent
from ..models.order import Order
from ..models.order_book import OrderBook
from ..models.ticker import Ticker
from ..models.trade import Trade
from ..runtime.rest.transport import RESTTransport
from ..runtime.ws.dispatcher import Dispatcher
from ..runtime.ws.frames import auth_frame, subscribe_frame, unsubscribe_frame
from ..runtime.ws.registry import Handler, SubscriptionRegistry
from ..runtime.ws.session import ConnectionSession
from .rest_mixin import RESTMixin

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
DisconnectCallback = Callable[[ConnectionEvent], Awaitable[Any]] | Callable[[ConnectionEvent], Any]


class BackpackClient(RESTMixin):
    """Streaming subscriptions plus REST calls against one Backpack account.

    Example:
        async with BackpackClient() as client:
            await client.subscribe_ticker("SOL-USDC", print)
            await asyncio.sleep(60)
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        *,
        ws_url: str = WS_URL,
        rest_url: str = REST_URL,
        config: SessionConfig | None = None,
        rest_config: RESTConfig | None = None,
        session: ConnectionSession | None = None,
        rest: RESTTransport | None = None,
    ) -> None:
        self._conf = config or SessionConfig()
        self._ws_url = ws_url
        self._signer = self._make_signer(credentials)

        self._registry = SubscriptionRegistry()
        self._session = session or ConnectionSession(self._conf)
        self._dispatcher = Dispatcher(self._registry, self._session)
        self._session.set_message_handler(self._dispatcher.dispatch)
        self._session.set_failure_handler(self._on_session_failure)

        self._rest = rest or RESTTransport(
            rest_config or RESTConfig(base_url=rest_url, window_ms=self._conf.window_ms),
            signer=self._signer,
        )
        if self._rest.signer is None:
            self._rest.signer = self._signer

        self._request_ids = itertools.count(1)
        self._disconnect_callbacks: list[DisconnectCallback] = []
        self._callback_tasks: set[asyncio.Task] = set()

    def _make_signer(self, credentials: Credentials | None) -> Signer | None:
        if credentials is None or not credentials.is_valid:
            return None
        return Signer(credentials, window_ms=self._conf.window_ms)

    def set_credentials(self, credentials: Credentials) -> None:
        """Replace the credentials used by both transports.

        Raises:
            ConfigurationError: The private key is malformed
        """
        self._signer = self._make_signer(credentials)
        self._rest.signer = self._signer

    # --- properties ----------------------------------------------------------

    @property
    def has_credentials(self) -> bool:
        return self._signer is not None

    @property
    def state(self) -> ConnectionState:
        return self._session.state

    @property
    def is_connected(self) -> bool:
        return self._session.is_connected

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def session(self) -> ConnectionSession:
        return self._session

    @property
    def registry(self) -> SubscriptionRegistry:
        return self._registry

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def rest(self) -> RESTTransport:
        return self._rest

    def _next_id(self) -> int:
        return next(self._request_ids)

    # --- connection ----------------------------------------------------------

    async def connect(self) -> bool:
        """Open the streaming connection. Returns False on failure."""
        headers = self._signer.handshake_headers() if self._signer is not None else None
        return await self._session.connect(self._ws_url, headers=headers)

    async def disconnect(self) -> None:
        """Close the streaming connection and drop every subscription."""
        await self._session.disconnect()
        self._registry.clear()

    async def close(self) -> None:
        """Disconnect and release the HTTP session."""
        await self.disconnect()
        await self._rest.close()

    async def authenticate(self) -> bool:
        """Authenticate the open connection.

        Returns False immediately when the session is not Connected or no
        credentials are set, and False after ``auth_timeout`` seconds without
        an acknowledgement (the session is left Connected). A call made while
        another handshake is pending waits for that handshake instead of
        sending a second one.

        Raises:
            SigningError: The signing backend failed; nothing was sent
        """
        state = self._session.state
        if state == ConnectionState.AUTHENTICATED:
            return True
        if state == ConnectionState.AUTHENTICATING:
            pending = self._session.pending_auth_id
            logger.debug(f"Waiting for pending authentication request {pending}")
            return await self._await_authentication(pending)
        if state != ConnectionState.CONNECTED:
            logger.warning(f"Cannot authenticate while session is {state}")
            return False
        if self._signer is None:
            logger.error("Cannot authenticate: API credentials are not set")
            return False

        request_id = self._next_id()
        timestamp = current_timestamp_ms()
        window = self._signer.window_ms
        signature = self._signer.sign_b64(handshake_message(timestamp, window))
        frame = auth_frame(self._signer.api_key, signature, timestamp, window, request_id)

        if not self._session.begin_authentication(request_id):
            return False
        if not self._session.send(frame):
            self._session.abandon_authentication(request_id)
            logger.error("Could not queue authentication request")
            return False
        return await self._await_authentication(request_id)

    async def _await_authentication(self, request_id: int | None) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._conf.auth_timeout
        while loop.time() < deadline:
            await asyncio.sleep(self._conf.auth_poll_interval)
            state = self._session.state
            if state == ConnectionState.AUTHENTICATED:
                return True
            if state != ConnectionState.AUTHENTICATING:
                logger.warning(f"Authentication failed, session is {state}")
                return False

        self._session.abandon_authentication(request_id)
        logger.warning(f"Authentication timed out after {self._conf.auth_timeout}s")
        return self._session.is_authenticated

    def ping(self) -> bool:
        """Queue an application-level keep-alive ping."""
        return self._session.ping()

    # --- subscriptions -------------------------------------------------------

    async def subscribe(self, channel: Channel, symbol: str | None, handler: Handler) -> bool:
        """Route ``channel``/``symbol`` frames to ``handler`` and ask the server for them.

        ``handler`` receives a ``StreamEvent``; it may be a plain function or
        a coroutine function. Pass ``symbol=None`` for account channels or to
        receive every symbol of a public channel.
        """
        if not self._session.is_connected:
            logger.warning(f"Cannot subscribe to {channel}: not connected")
            return False

        if channel.requires_auth and not self._session.is_authenticated:
            if not await self.authenticate():
                logger.error(f"Cannot subscribe to {channel}: authentication failed")
                return False

        key = SubscriptionKey.of(channel, symbol)
        previous = self._registry.register(key, handler)
        if not self._session.send(subscribe_frame([key.stream_id], self._next_id())):
            if previous is None:
                self._registry.remove(key)
            else:
                self._registry.register(key, previous)
            logger.error(f"Could not queue subscription for {key}")
            return False

        logger.info(f"Subscribed to {key}")
        return True

    async def unsubscribe(self, channel: Channel, symbol: str | None = None) -> bool:
        """Stop routing ``channel``/``symbol`` and tell the server.

        The handler is removed even when the request cannot be sent.
        """
        key = SubscriptionKey.of(channel, symbol)
        self._registry.remove(key)
        if not self._session.send(unsubscribe_frame([key.stream_id], self._next_id())):
            logger.warning(f"Could not queue unsubscribe for {key}")
            return False
        logger.info(f"Unsubscribed from {key}")
        return True

    def on_general(self, handler: Handler | None) -> None:
        """Receive every routable data frame regardless of subscription."""
        self._dispatcher.set_general_handler(handler)

    def on_disconnect(self, callback: DisconnectCallback) -> None:
        """Be told when the connection drops unexpectedly."""
        self._disconnect_callbacks.append(callback)

    # --- typed helpers -------------------------------------------------------

    def _typed_handler(
        self,
        model: type[M],
        callback: Callable[[M], Any],
        *,
        fill_symbol: bool = True,
    ) -> Handler:
        def handler(event: StreamEvent) -> Any:
            data = event.data
            if fill_symbol and isinstance(data, dict) and "symbol" not in data and event.symbol:
                data = {**data, "symbol": event.symbol}
            try:
                item = model.model_validate(data)
            except ValidationError as e:
                logger.error(f"Error parsing {event.stream} payload as {model.__name__}: {e}")
                return None
            return callback(item)

        return handler

    async def subscribe_ticker(self, symbol: str, callback: Callable[[Ticker], Any]) -> bool:
        return await self.subscribe(Channel.TICKER, symbol, self._typed_handler(Ticker, callback))

    async def subscribe_trades(self, symbol: str, callback: Callable[[Trade], Any]) -> bool:
        return await self.subscribe(Channel.TRADES, symbol, self._typed_handler(Trade, callback))

    async def subscribe_candles(
        self, symbol: str, interval: Channel | str, callback: Callable[[Candle], Any]
    ) -> bool:
        """Subscribe to candles for ``interval`` (``"1m"`` or ``Channel.CANDLES_1M``)."""
        channel = interval if isinstance(interval, Channel) else Channel.candles(interval)
        if not channel.is_candles:
            raise ValueError(f"{channel} is not a candle channel")
        return await self.subscribe(channel, symbol, self._typed_handler(Candle, callback))

    async def subscribe_depth(self, symbol: str, callback: Callable[[OrderBook], Any]) -> bool:
        return await self.subscribe(
            Channel.DEPTH, symbol, self._typed_handler(OrderBook, callback)
        )

    async def subscribe_depth_snapshot(
        self, symbol: str, callback: Callable[[OrderBook], Any]
    ) -> bool:
        return await self.subscribe(
            Channel.DEPTH_SNAPSHOT, symbol, self._typed_handler(OrderBook, callback)
        )

    async def subscribe_user_orders(self, callback: Callable[[Order], Any]) -> bool:
        return await self.subscribe(
            Channel.USER_ORDERS, None, self._typed_handler(Order, callback, fill_symbol=False)
        )

    async def subscribe_user_trades(self, callback: Callable[[Trade], Any]) -> bool:
        return await self.subscribe(
            Channel.USER_TRADES, None, self._typed_handler(Trade, callback, fill_symbol=False)
        )

    async def subscribe_user_positions(self, callback: Callable[[Position], Any]) -> bool:
        return await self.subscribe(
            Channel.USER_POSITIONS,
            None,
            self._typed_handler(Position, callback, fill_symbol=False),
        )

    async def subscribe_user_balances(self, callback: Callable[[Balance], Any]) -> bool:
        return await self.subscribe(
            Channel.USER_BALANCES,
            None,
            self._typed_handler(Balance, callback, fill_symbol=False),
        )

    # --- reconnection --------------------------------------------------------

    def _next_delay(self, delay: float) -> float:
        """Exponential backoff with jitter, capped to max_reconnect_delay."""
        conf = self._conf
        delay = min(delay * 2, conf.max_reconnect_delay)
        factor = random.uniform(1 - conf.jitter, 1 + conf.jitter)
        return max(0.5, delay * factor)

    async def reconnect(self) -> bool:
        """Reopen the connection and restore every registered subscription.

        Returns False when no connection could be made within
        ``max_reconnect_attempts`` or some subscription could not be restored.
        """
        await self._session.disconnect()

        delay = self._conf.base_reconnect_delay
        attempts = max(1, self._conf.max_reconnect_attempts)
        for attempt in range(1, attempts + 1):
            if await self.connect():
                break
            if attempt == attempts:
                logger.error(f"Reconnect failed after {attempts} attempts")
                return False
            logger.warning(
                f"Reconnect attempt {attempt}/{attempts} failed, retrying in {delay:.1f}s"
            )
            await asyncio.sleep(delay)
            delay = self._next_delay(delay)

        keys = self._registry.keys()
        if any(key.channel.requires_auth for key in keys):
            if not await self.authenticate():
                logger.error("Re-authentication failed; private subscriptions not restored")

        restored = True
        for key in keys:
            if key.channel.requires_auth and not self._session.is_authenticated:
                restored = False
                continue
            if not self._session.send(subscribe_frame([key.stream_id], self._next_id())):
                logger.error(f"Could not restore subscription {key}")
                restored = False

        logger.info(f"Reconnected, restored {len(keys)} subscriptions")
        return restored

    def _on_session_failure(self, reason: str) -> None:
        event = ConnectionEvent(
            state=ConnectionState.DISCONNECTED,
            url=self._ws_url,
            timestamp=datetime.now(),
            error=reason,
            metadata={"subscriptions": len(self._registry)},
        )
        for callback in list(self._disconnect_callbacks):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._callback_tasks.add(task)
                    task.add_done_callback(self._callback_tasks.discard)
            except Exception as e:  # noqa: BLE001
                logger.error(f"Disconnect callback raised: {e}", exc_info=True)

    # --- context manager -----------------------------------------------------

    async def __aenter__(self) -> BackpackClient:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"BackpackClient(ws_url={self._ws_url!r}, state={self.state}, "
            f"subscriptions={len(self._registry)})"
        )


class BackpackRESTClient(RESTMixin):
    """REST-only client for scripts that never stream."""

    def __init__(
        self,
        credentials: Credentials | None = None,
        *,
        config: RESTConfig | None = None,
        transport: RESTTransport | None = None,
    ) -> None:
        conf = config or RESTConfig()
        signer = (
            Signer(credentials, window_ms=conf.window_ms)
            if credentials is not None and credentials.is_valid
            else None
        )
        self._rest = transport or RESTTransport(conf, signer=signer)

    async def close(self) -> None:
        await self._rest.close()

    async def __aenter__(self) -> BackpackRESTClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
