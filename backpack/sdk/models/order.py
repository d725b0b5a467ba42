"""Order data models."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.enums import OrderSide, OrderStatus, OrderType, TimeInForce


class Order(BaseModel):
    """Order as reported by the exchange."""

    id: str = Field(..., alias="orderId")
    client_order_id: str = Field("", alias="clientOrderId")
    symbol: str = Field(..., min_length=1)
    side: OrderSide
    type: OrderType
    price: Decimal = Field(Decimal("0"), ge=0)
    quantity: Decimal = Field(..., ge=0)
    executed_quantity: Decimal = Field(Decimal("0"), alias="executedQty", ge=0)
    status: OrderStatus = OrderStatus.NEW
    timestamp: str = ""

    @field_validator("id", "client_order_id", "timestamp", mode="before")
    @classmethod
    def _stringify(cls, v):
        return "" if v is None else str(v)

    @field_validator("side", "type", "status", mode="before")
    @classmethod
    def _upper(cls, v):
        return v.upper() if isinstance(v, str) else v

    @property
    def remaining_quantity(self) -> Decimal:
        return self.quantity - self.executed_quantity

    @property
    def is_open(self) -> bool:
        return self.status in (OrderStatus.NEW, OrderStatus.PARTIALLY_FILLED)

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)


class OrderRequest(BaseModel):
    """New order parameters."""

    symbol: str = Field(..., min_length=1)
    side: OrderSide
    type: OrderType
    quantity: Decimal = Field(..., gt=0)
    price: Decimal | None = Field(None, gt=0)
    client_order_id: str | None = None
    time_in_force: TimeInForce = TimeInForce.GTC

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: Decimal | None, info) -> Decimal | None:
        """Limit orders need a price."""
        if v is None and info.data.get("type") == OrderType.LIMIT:
            raise ValueError("price is required for LIMIT orders")
        return v

    def to_payload(self) -> dict[str, Any]:
        """Wire body for ``POST /api/v1/order``."""
        payload: dict[str, Any] = {
            "symbol": self.symbol,
            "side": self.side.value,
            "type": self.type.value,
            "quantity": str(self.quantity),
            "timeInForce": self.time_in_force.value,
        }
        if self.price is not None:
            payload["price"] = str(self.price)
        if self.client_order_id:
            payload["clientOrderId"] = self.client_order_id
        return payload

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)
