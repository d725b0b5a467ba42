"""Candle (OHLCV) data model."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Candle(BaseModel):
    """OHLCV candle data."""

    symbol: str = Field(..., min_length=1)
    timestamp: str
    open: Decimal = Field(..., ge=0)
    high: Decimal = Field(..., ge=0)
    low: Decimal = Field(..., ge=0)
    close: Decimal = Field(..., ge=0)
    volume: Decimal = Field(..., ge=0)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _stringify_timestamp(cls, v):
        return str(v)

    @field_validator("low")
    @classmethod
    def validate_low(cls, v: Decimal, info) -> Decimal:
        """Validate low <= high."""
        if "high" in info.data and v > info.data["high"]:
            raise ValueError("low must be <= high")
        return v

    @classmethod
    def from_kline(cls, symbol: str, row: list[Any]) -> "Candle":
        """Build from a REST kline row ``[timestamp, open, high, low, close, volume]``."""
        return cls(
            symbol=symbol,
            timestamp=row[0],
            open=Decimal(str(row[1])),
            low=Decimal(str(row[3])),
            high=Decimal(str(row[2])),
            close=Decimal(str(row[4])),
            volume=Decimal(str(row[5])),
        )

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)
