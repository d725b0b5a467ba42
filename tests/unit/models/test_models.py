"""Unit tests for the pydantic domain models."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from backpack.sdk.core import OrderStatus, OrderType
from backpack.sdk.models import Account, Candle, Order, OrderBook, OrderRequest, Ticker, Trade


def test_ticker_aliases_and_spread():
    """Test camelCase aliases and the derived spread."""
    ticker = Ticker.model_validate(
        {"symbol": "SOL_USDC", "lastPrice": "10", "bestBid": "9.9", "bestAsk": "10.1", "timestamp": 1}
    )
    assert ticker.timestamp == "1"
    assert ticker.spread == Decimal("0.2")
    assert Ticker.model_validate({"symbol": "X", "lastPrice": "1"}).spread is None


def test_models_are_frozen():
    """Test models reject mutation after validation."""
    trade = Trade.model_validate({"symbol": "SOL_USDC", "price": "1", "quantity": "2"})
    assert trade.notional == Decimal("2")
    with pytest.raises(ValidationError):
        trade.price = Decimal("3")


def test_candle_rejects_low_above_high():
    """Test Candle rejects a low above the high."""
    with pytest.raises(ValidationError):
        Candle(symbol="X", timestamp="t", open=1, high=1, low=2, close=1, volume=0)


def test_order_book_parses_pairs():
    """Test price levels from pairs or objects."""
    book = OrderBook.model_validate({"bids": [["1", "2"]], "asks": [{"price": "3", "quantity": "4"}]})
    assert book.best_bid.price == Decimal("1")
    assert book.best_ask.price == Decimal("3")
    assert OrderBook.model_validate({"bids": None}).best_bid is None


def test_order_normalizes_enums():
    """Test Order normalizes side, type and status strings."""
    order = Order.model_validate(
        {
            "orderId": 42,
            "symbol": "SOL_USDC",
            "side": "sell",
            "type": "market",
            "quantity": "5",
            "executedQty": "2",
            "status": "partially_filled",
        }
    )
    assert order.id == "42"
    assert order.status is OrderStatus.PARTIALLY_FILLED
    assert order.remaining_quantity == Decimal("3")
    assert order.is_open


def test_order_request_requires_limit_price():
    """Test limit orders need a price and payloads use wire names."""
    with pytest.raises(ValidationError):
        OrderRequest(symbol="SOL_USDC", side="BUY", type=OrderType.LIMIT, quantity="1")

    market = OrderRequest(symbol="SOL_USDC", side="SELL", type=OrderType.MARKET, quantity="1.5")
    assert market.to_payload() == {
        "symbol": "SOL_USDC",
        "side": "SELL",
        "type": "MARKET",
        "quantity": "1.5",
        "timeInForce": "GTC",
    }


def test_account_balance_lookup():
    """Test Account.balance by asset."""
    account = Account.model_validate(
        {"accountId": "a1", "balances": [{"asset": "SOL", "free": "1", "locked": "0.5"}]}
    )
    assert account.balance("SOL").total == Decimal("1.5")
    assert account.balance("BTC") is None
