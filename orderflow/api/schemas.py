from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from orderflow.domain.orders.aggregates import OrderStatus
from orderflow.domain.pricing.money import MAX_AMOUNT
from orderflow.services.orders import LineRequest


class OrderLineRequest(BaseModel):
    item_id: str = Field(min_length=1)
    quantity: int = Field(gt=0)

    def to_line(self) -> LineRequest:
        return LineRequest(item_id=self.item_id, quantity=self.quantity)


class ClientCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    address: str = ""
    vat_id: str = ""
    phone: str = ""
    email: str = Field(min_length=3)
    notes: str | None = None


class ClientUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    address: str | None = None
    vat_id: str | None = None
    phone: str | None = None
    email: str | None = Field(default=None, min_length=3)
    notes: str | None = None


class ItemCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    category: str = ""
    unit_price: Decimal = Field(ge=0, le=MAX_AMOUNT, decimal_places=2)
    weight_grams: int = Field(default=0, ge=0)
    picture_url: str | None = None
    description: str | None = None


class ItemUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    category: str | None = None
    unit_price: Decimal | None = Field(default=None, ge=0, le=MAX_AMOUNT, decimal_places=2)
    weight_grams: int | None = Field(default=None, ge=0)
    picture_url: str | None = None
    description: str | None = None


class OrderCreateRequest(BaseModel):
    client_id: str
    delivery_date: date
    items: list[OrderLineRequest] = Field(default_factory=list)
    notes: str | None = None
    status: OrderStatus = "pending"


class OrderUpdateRequest(BaseModel):
    client_id: str | None = None
    delivery_date: date | None = None
    items: list[OrderLineRequest] | None = None
    notes: str | None = None
    status: OrderStatus | None = None


class OrderStatusRequest(BaseModel):
    status: OrderStatus


class MergeOrdersRequest(BaseModel):
    order_ids: list[str] = Field(description="at least two pending orders of one client")
    delivery_date: date


class PortalOrderRequest(BaseModel):
    delivery_date: date
    items: list[OrderLineRequest] = Field(min_length=1)
    notes: str | None = None


class BasketQuoteRequest(BaseModel):
    items: list[OrderLineRequest] = Field(default_factory=list)


class SubtotalQuoteRequest(BaseModel):
    # Negative values reach the discount engine, which answers negative_amount.
    subtotal: Decimal = Field(le=MAX_AMOUNT)
