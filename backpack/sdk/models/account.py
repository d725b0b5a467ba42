"""Account, balance and position data models."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class Balance(BaseModel):
    """Balance of one asset."""

    asset: str = Field(..., min_length=1)
    free: Decimal = Field(..., ge=0)
    locked: Decimal = Field(Decimal("0"), ge=0)

    @property
    def total(self) -> Decimal:
        return self.free + self.locked

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class Position(BaseModel):
    """Open position in one market."""

    symbol: str = Field(..., min_length=1)
    size: Decimal
    entry_price: Decimal = Field(..., alias="entryPrice")
    mark_price: Decimal = Field(..., alias="markPrice")
    unrealized_pnl: Decimal = Field(Decimal("0"), alias="unrealizedPnl")

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)


class Account(BaseModel):
    """Account settings plus balances."""

    account_id: str = Field(..., alias="accountId")
    account_type: str = Field("", alias="accountType")
    can_trade: bool = Field(False, alias="canTrade")
    can_withdraw: bool = Field(False, alias="canWithdraw")
    balances: list[Balance] = Field(default_factory=list)

    def balance(self, asset: str) -> Balance | None:
        for b in self.balances:
            if b.asset == asset:
                return b
        return None

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)
