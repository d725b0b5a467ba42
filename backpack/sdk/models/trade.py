"""Trade data model."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Trade(BaseModel):
    """Public print or account fill."""

    symbol: str = Field(..., min_length=1)
    id: str = ""
    timestamp: str = ""
    price: Decimal = Field(..., ge=0)
    quantity: Decimal = Field(..., ge=0)
    is_buyer_maker: bool = Field(False, alias="isBuyerMaker")

    @field_validator("id", "timestamp", mode="before")
    @classmethod
    def _stringify(cls, v):
        return "" if v is None else str(v)

    @property
    def notional(self) -> Decimal:
        return self.price * self.quantity

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)
