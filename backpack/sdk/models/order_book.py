"""Order book data models."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderBookLevel(BaseModel):
    """One price level: ``[price, quantity]`` on the wire."""

    price: Decimal = Field(..., ge=0)
    quantity: Decimal = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_pair(cls, pair: Any) -> "OrderBookLevel":
        if isinstance(pair, dict):
            return cls.model_validate(pair)
        price, quantity = pair[0], pair[1]
        return cls(price=Decimal(str(price)), quantity=Decimal(str(quantity)))


class OrderBook(BaseModel):
    """Order book snapshot or incremental update."""

    symbol: str = ""
    bids: list[OrderBookLevel] = Field(default_factory=list)
    asks: list[OrderBookLevel] = Field(default_factory=list)

    @field_validator("bids", "asks", mode="before")
    @classmethod
    def _parse_levels(cls, v):
        if v is None:
            return []
        return [OrderBookLevel.from_pair(level) for level in v]

    @property
    def best_bid(self) -> OrderBookLevel | None:
        return max(self.bids, key=lambda lvl: lvl.price) if self.bids else None

    @property
    def best_ask(self) -> OrderBookLevel | None:
        return min(self.asks, key=lambda lvl: lvl.price) if self.asks else None

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)
