"""REST market-data and account methods.

Mixed into both ``BackpackClient`` and ``BackpackRESTClient``; the host class
provides ``self._rest`` (a ``RESTTransport``).
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from ..config import PATHS
from ..core.enums import Channel
from ..core.exceptions import ProviderError, TransportError
from ..core.streams import normalize_symbol
from ..models.account import Account, Balance
from ..models.candle import Candle
from ..models.exchange_info import ExchangeInfo
from ..models.order import Order, OrderRequest
from ..models.order_book import OrderBook
from ..models.ticker import Ticker
from ..models.trade import Trade
from ..runtime.rest.transport import RESTTransport

logger = logging.getLogger(__name__)


def _candle_from_row(symbol: str, row: Any) -> Candle:
    if isinstance(row, dict):
        return Candle(
            symbol=symbol,
            timestamp=row.get("start", row.get("timestamp", "")),
            open=Decimal(str(row["open"])),
            high=Decimal(str(row["high"])),
            low=Decimal(str(row["low"])),
            close=Decimal(str(row["close"])),
            volume=Decimal(str(row.get("volume", "0"))),
        )
    return Candle.from_kline(symbol, row)


def _with_symbol(symbol: str, item: Any) -> Any:
    if isinstance(item, dict) and "symbol" not in item:
        return {**item, "symbol": symbol}
    return item


class RESTMixin:
    """Typed wrappers over ``RESTTransport.send_signed_request``."""

    _rest: RESTTransport

    # --- public market data --------------------------------------------------

    async def get_server_time(self) -> int:
        data = await self._rest.get(PATHS["time"])
        if isinstance(data, dict):
            return int(data.get("serverTime", 0))
        return int(data)

    async def get_exchange_info(self) -> ExchangeInfo:
        data = await self._rest.get(PATHS["exchange_info"])
        if isinstance(data, list):
            data = {"symbols": data}
        return ExchangeInfo.model_validate(data)

    async def get_ticker(self, symbol: str) -> Ticker:
        wire = normalize_symbol(symbol)
        data = await self._rest.get(PATHS["ticker"], params={"symbol": wire})
        return Ticker.model_validate(_with_symbol(wire, data))

    async def get_all_tickers(self) -> list[Ticker]:
        data = await self._rest.get(PATHS["tickers"])
        return [Ticker.model_validate(item) for item in data or []]

    async def get_order_book(self, symbol: str, limit: int = 100) -> OrderBook:
        wire = normalize_symbol(symbol)
        data = await self._rest.get(PATHS["depth"], params={"symbol": wire, "limit": limit})
        return OrderBook.model_validate(_with_symbol(wire, data))

    async def get_recent_trades(self, symbol: str, limit: int | None = None) -> list[Trade]:
        wire = normalize_symbol(symbol)
        data = await self._rest.get(PATHS["trades"], params={"symbol": wire, "limit": limit})
        return [Trade.model_validate(_with_symbol(wire, item)) for item in data or []]

    async def get_historical_trades(
        self, symbol: str, limit: int | None = None, offset: int | None = None
    ) -> list[Trade]:
        wire = normalize_symbol(symbol)
        data = await self._rest.get(
            PATHS["historical_trades"],
            params={"symbol": wire, "limit": limit, "offset": offset},
            signed=True,
        )
        return [Trade.model_validate(_with_symbol(wire, item)) for item in data or []]

    async def get_candles(
        self,
        symbol: str,
        interval: Channel | str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int | None = None,
    ) -> list[Candle]:
        """Historical candles.

        Args:
            interval: A candle channel (``Channel.CANDLES_1H``) or interval
                string (``"1h"``)

        Raises:
            ValueError: ``interval`` is not a candle interval
        """
        channel = interval if isinstance(interval, Channel) else Channel.candles(interval)
        if not channel.is_candles:
            raise ValueError(f"{channel} is not a candle channel")
        wire = normalize_symbol(symbol)
        data = await self._rest.get(
            PATHS["klines"],
            params={
                "symbol": wire,
                "interval": channel.interval,
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
        )
        return [_candle_from_row(wire, row) for row in data or []]

    # --- orders --------------------------------------------------------------

    async def create_order(self, request: OrderRequest) -> Order:
        data = await self._rest.post(PATHS["order"], body=request.to_payload())
        return Order.model_validate(data)

    async def test_order(self, request: OrderRequest) -> bool:
        """Validate an order without placing it. Returns False when rejected."""
        try:
            await self._rest.post(PATHS["order_test"], body=request.to_payload())
        except (ProviderError, TransportError) as e:
            logger.error(f"Order test failed: {e}")
            return False
        return True

    async def cancel_order(self, symbol: str, order_id: str) -> bool:
        try:
            await self._rest.delete(
                PATHS["order"], params={"symbol": normalize_symbol(symbol), "orderId": order_id}
            )
        except (ProviderError, TransportError) as e:
            logger.error(f"Cancel order {order_id} failed: {e}")
            return False
        return True

    async def cancel_order_by_client_id(self, symbol: str, client_order_id: str) -> bool:
        try:
            await self._rest.delete(
                PATHS["order"],
                params={"symbol": normalize_symbol(symbol), "clientOrderId": client_order_id},
            )
        except (ProviderError, TransportError) as e:
            logger.error(f"Cancel order by client id {client_order_id} failed: {e}")
            return False
        return True

    async def cancel_all_orders(self, symbol: str | None = None) -> int:
        """Cancel open orders in one market, or everywhere when ``symbol`` is None.

        Returns how many were cancelled.
        """
        params = {"symbol": normalize_symbol(symbol)} if symbol else None
        data = await self._rest.delete(PATHS["open_orders"], params=params)
        if isinstance(data, list):
            return len(data)
        if isinstance(data, dict):
            return int(data.get("count", 0))
        return 0

    async def get_order(self, symbol: str, order_id: str) -> Order:
        data = await self._rest.get(
            PATHS["order"],
            params={"symbol": normalize_symbol(symbol), "orderId": order_id},
            signed=True,
        )
        return Order.model_validate(data)

    async def get_order_by_client_id(self, symbol: str, client_order_id: str) -> Order:
        data = await self._rest.get(
            PATHS["order"],
            params={"symbol": normalize_symbol(symbol), "clientOrderId": client_order_id},
            signed=True,
        )
        return Order.model_validate(data)

    async def get_open_orders(self, symbol: str | None = None) -> list[Order]:
        params = {"symbol": normalize_symbol(symbol)} if symbol else None
        data = await self._rest.get(PATHS["open_orders"], params=params, signed=True)
        return [Order.model_validate(item) for item in data or []]

    async def get_all_orders(
        self,
        symbol: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int | None = None,
    ) -> list[Order]:
        data = await self._rest.get(
            PATHS["all_orders"],
            params={
                "symbol": normalize_symbol(symbol),
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
            signed=True,
        )
        return [Order.model_validate(item) for item in data or []]

    # --- account -------------------------------------------------------------

    async def get_account(self) -> Account:
        data = await self._rest.get(PATHS["account"], signed=True)
        return Account.model_validate(data)

    async def get_balances(self) -> list[Balance]:
        data = await self._rest.get(PATHS["balances"], signed=True)
        if isinstance(data, dict):
            # {"SOL": {"available": ..., "locked": ...}, ...}
            return [
                Balance(
                    asset=asset,
                    free=Decimal(str(entry.get("available", entry.get("free", "0")))),
                    locked=Decimal(str(entry.get("locked", "0"))),
                )
                for asset, entry in data.items()
            ]
        return [Balance.model_validate(item) for item in data or []]

    async def get_account_trades(
        self,
        symbol: str | None = None,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int | None = None,
    ) -> list[Trade]:
        data = await self._rest.get(
            PATHS["my_trades"],
            params={
                "symbol": normalize_symbol(symbol) or None,
                "startTime": start_time,
                "endTime": end_time,
                "limit": limit,
            },
            signed=True,
        )
        return [Trade.model_validate(item) for item in data or []]
