"""Exchange metadata models."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class SymbolInfo(BaseModel):
    """Trading rules for one market."""

    name: str = Field(..., alias="symbol", min_length=1)
    base_asset: str = Field(..., alias="baseAsset")
    quote_asset: str = Field(..., alias="quoteAsset")
    is_active: bool = Field(True, alias="isActive")
    min_price: Decimal = Field(Decimal("0"), alias="minPrice")
    max_price: Decimal = Field(Decimal("0"), alias="maxPrice")
    tick_size: Decimal = Field(Decimal("0"), alias="tickSize")
    min_qty: Decimal = Field(Decimal("0"), alias="minQty")
    max_qty: Decimal = Field(Decimal("0"), alias="maxQty")
    step_size: Decimal = Field(Decimal("0"), alias="stepSize")

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)


class ExchangeInfo(BaseModel):
    """Exchange-wide metadata."""

    timezone: str = "UTC"
    server_time: int = Field(0, alias="serverTime")
    symbols: list[SymbolInfo] = Field(default_factory=list)

    def get_symbol(self, name: str) -> SymbolInfo | None:
        for info in self.symbols:
            if info.name == name:
                return info
        return None

    model_config = ConfigDict(frozen=True, populate_by_name=True)
