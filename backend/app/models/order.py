from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.models.common import CamelModel
from app.models.enums import OrderStatus, PaymentStatus


class Order(CamelModel):
    id: int
    user_id: int
    status: OrderStatus = OrderStatus.CREATED
    total_amount: float
    currency: str = "USD"
    delivery_details: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime


class OrderItem(CamelModel):
    id: int
    order_id: int
    listing_id: int
    quantity: int = Field(1, ge=1)
    # Price at checkout time; never follows later listing price changes.
    unit_price: float


class OrderWithItems(Order):
    items: List[OrderItem] = Field(default_factory=list)


class Payment(CamelModel):
    id: int
    order_id: int
    amount: float
    currency: str = "USD"
    status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str
    transaction_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OrderItemRequest(CamelModel):
    listing_id: int
    quantity: int = Field(1, ge=1)
    # Accepted for compatibility with older clients; the server always
    # snapshots the live listing price instead.
    unit_price: Optional[float] = None


class OrderCreateRequest(CamelModel):
    items: List[OrderItemRequest]
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    delivery_details: Optional[Dict[str, Any]] = None


class PaymentRequest(CamelModel):
    order_id: int
    payment_method: str = Field(..., min_length=1, max_length=50)
