"""Ticker data model."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Ticker(BaseModel):
    """24h rolling ticker for one market."""

    symbol: str = Field(..., min_length=1)
    timestamp: str = ""
    last_price: Decimal = Field(..., alias="lastPrice")
    best_bid: Decimal | None = Field(None, alias="bestBid")
    best_ask: Decimal | None = Field(None, alias="bestAsk")
    volume_24h: Decimal = Field(Decimal("0"), alias="volume24h", ge=0)
    price_change_24h: Decimal = Field(Decimal("0"), alias="priceChange24h")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _stringify_timestamp(cls, v):
        return "" if v is None else str(v)

    @property
    def spread(self) -> Decimal | None:
        """Best ask minus best bid, when both sides are known."""
        if self.best_bid is None or self.best_ask is None:
            return None
        return self.best_ask - self.best_bid

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)
