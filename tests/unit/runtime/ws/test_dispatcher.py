"""Unit tests for Dispatcher routing and control-frame handling."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from backpack.sdk.core import Channel, SubscriptionKey
from backpack.sdk.models import StreamEvent
from backpack.sdk.runtime.ws import Dispatcher, SubscriptionRegistry


def data_frame(stream: str, data) -> str:
    return json.dumps({"stream": stream, "data": data})


@pytest.fixture
def registry():
    return SubscriptionRegistry()


@pytest.fixture
def dispatcher(registry):
    return Dispatcher(registry)


class TestDataRouting:
    """Test routing of data frames to registered handlers."""

    def test_routes_to_exact_handler(self, registry, dispatcher):
        """Test a symbol subscription receives a StreamEvent for its stream."""
        handler = MagicMock()
        registry.register(SubscriptionKey.of(Channel.TICKER, "SOL-USDC"), handler)

        assert dispatcher.dispatch(data_frame("ticker.SOL_USDC", {"lastPrice": "1.5"}))

        handler.assert_called_once()
        event = handler.call_args.args[0]
        assert isinstance(event, StreamEvent)
        assert event.channel is Channel.TICKER
        assert event.symbol == "SOL-USDC"
        assert event.data == {"lastPrice": "1.5"}
        assert event.stream == "ticker.SOL_USDC"

    def test_channel_wide_handler_receives_other_symbols(self, registry, dispatcher):
        """Test a channel-wide subscription catches every symbol."""
        handler = MagicMock()
        registry.register(SubscriptionKey.of(Channel.TRADES), handler)

        dispatcher.dispatch(data_frame("trades.BTC_USDC", {}))
        dispatcher.dispatch(data_frame("trades.ETH_USDC", {}))

        symbols = [c.args[0].symbol for c in handler.call_args_list]
        assert symbols == ["BTC-USDC", "ETH-USDC"]

    def test_user_channel_without_symbol(self, registry, dispatcher):
        """Test account streams deliver an empty symbol."""
        handler = MagicMock()
        registry.register(SubscriptionKey.of(Channel.USER_ORDERS), handler)

        dispatcher.dispatch(data_frame("userOrders", {"orderId": 1}))

        assert handler.call_args.args[0].symbol == ""

    def test_unknown_or_unsubscribed_stream_dropped(self, registry, dispatcher):
        """Test unknown channels and unsubscribed symbols are counted as dropped."""
        handler = MagicMock()
        registry.register(SubscriptionKey.of(Channel.TICKER, "SOL-USDC"), handler)

        assert not dispatcher.dispatch(data_frame("bookTicker.SOL_USDC", {}))
        assert not dispatcher.dispatch(data_frame("ticker.BTC_USDC", {}))

        handler.assert_not_called()
        assert dispatcher.stats.frames_dropped == 2

    def test_duplicate_frames_dispatched_twice(self, registry, dispatcher):
        """No deduplication: identical frames each reach the handler."""
        handler = MagicMock()
        registry.register(SubscriptionKey.of(Channel.TRADES, "SOL-USDC"), handler)
        raw = data_frame("trades.SOL_USDC", {"id": 1})

        dispatcher.dispatch(raw)
        dispatcher.dispatch(raw)

        assert handler.call_count == 2
        assert dispatcher.stats.frames_dispatched == 2

    def test_frame_after_removal_dropped(self, registry, dispatcher):
        """Test a removed handler is never called."""
        handler = MagicMock()
        key = SubscriptionKey.of(Channel.TICKER, "SOL-USDC")
        registry.register(key, handler)
        registry.remove(key)

        assert not dispatcher.dispatch(data_frame("ticker.SOL_USDC", {}))
        handler.assert_not_called()

    def test_general_handler_sees_every_data_frame(self, registry, dispatcher):
        """Test the general handler sees data frames but not control frames."""
        general = MagicMock()
        dispatcher.set_general_handler(general)

        dispatcher.dispatch(data_frame("ticker.SOL_USDC", {}))
        dispatcher.dispatch('{"id":1,"result":null}')

        general.assert_called_once()


class TestErrorIsolation:
    """Test that parse and handler errors never escape dispatch()."""

    def test_malformed_frame_logged_and_dropped(self, dispatcher):
        """Test invalid JSON is counted as an error."""
        assert not dispatcher.dispatch("{not json")
        assert dispatcher.stats.errors == 1
        assert dispatcher.stats.frames_received == 1

    def test_handler_exception_is_contained(self, registry, dispatcher):
        """Test a raising handler keeps receiving later frames."""
        failing = MagicMock(side_effect=RuntimeError("handler bug"))
        registry.register(SubscriptionKey.of(Channel.TICKER, "SOL-USDC"), failing)

        dispatcher.dispatch(data_frame("ticker.SOL_USDC", {}))
        dispatcher.dispatch(data_frame("ticker.SOL_USDC", {}))

        assert failing.call_count == 2
        assert dispatcher.stats.errors == 2

    @pytest.mark.asyncio
    async def test_coroutine_handler_scheduled(self, registry, dispatcher):
        """Test coroutine handlers run as tasks."""
        seen = []

        async def handler(event):
            seen.append(event.symbol)

        registry.register(SubscriptionKey.of(Channel.TICKER, "SOL-USDC"), handler)
        dispatcher.dispatch(data_frame("ticker.SOL_USDC", {}))
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert seen == ["SOL-USDC"]

    @pytest.mark.asyncio
    async def test_running_coroutine_handler_is_retained(self, registry, dispatcher):
        """Test the dispatcher holds a running handler task until it finishes."""
        release = asyncio.Event()
        done = []

        async def handler(event):
            await release.wait()
            done.append(event.stream)

        registry.register(SubscriptionKey.of(Channel.TICKER, "SOL-USDC"), handler)
        dispatcher.dispatch(data_frame("ticker.SOL_USDC", {}))
        await asyncio.sleep(0)
        assert dispatcher.pending_tasks == 1

        release.set()
        for _ in range(3):
            await asyncio.sleep(0)

        assert done == ["ticker.SOL_USDC"]
        assert dispatcher.pending_tasks == 0

    @pytest.mark.asyncio
    async def test_coroutine_handler_failure_counted(self, registry, dispatcher):
        """Test a failing coroutine handler is logged and counted."""

        async def handler(event):
            raise ValueError("async bug")

        registry.register(SubscriptionKey.of(Channel.TICKER, "SOL-USDC"), handler)
        dispatcher.dispatch(data_frame("ticker.SOL_USDC", {}))
        for _ in range(3):
            await asyncio.sleep(0)

        assert dispatcher.stats.errors == 1
        assert dispatcher.pending_tasks == 0


class TestControlFrames:
    """Test control frames driving authentication state."""

    def _dispatcher_with_pending_auth(self, request_id: int):
        session = MagicMock()
        session.pending_auth_id = request_id
        return Dispatcher(SubscriptionRegistry(), session), session

    def test_auth_ack_completes_authentication(self):
        """Test an ack with the pending id completes authentication."""
        dispatcher, session = self._dispatcher_with_pending_auth(7)

        dispatcher.dispatch('{"id":7,"result":null}')

        session.complete_authentication.assert_called_once_with(True, 7)

    def test_auth_error_rejects_authentication(self):
        """Test an error with the pending id rejects authentication."""
        dispatcher, session = self._dispatcher_with_pending_auth(7)

        dispatcher.dispatch('{"id":7,"error":{"message":"invalid signature"}}')

        session.complete_authentication.assert_called_once_with(False, 7)

    def test_unrelated_ack_ignored(self):
        """Test acks for other ids and pongs leave authentication alone."""
        dispatcher, session = self._dispatcher_with_pending_auth(7)

        dispatcher.dispatch('{"id":3,"result":null}')
        dispatcher.dispatch('{"result":"PONG"}')

        session.complete_authentication.assert_not_called()
        assert dispatcher.stats.control_frames == 2
