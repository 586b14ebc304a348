"""
Order Pydantic schemas for API requests/responses
"""
from pydantic import Field, field_validator
from typing import Optional, List

from pizzadesk.database.models.order import OrderStatus, OrderType
from pizzadesk.schemas.common import CamelModel, UtcDatetime


# === OrderItem Schemas ===

class OrderItemCreate(CamelModel):
    """One line of an order as submitted by the dashboard"""
    product_id: str = Field(..., min_length=1)
    product2_id: Optional[str] = Field(None, description="Second flavor of a half-and-half pizza")
    is_half_half: bool = False
    quantity: int = Field(..., ge=1)
    size: Optional[str] = Field(None, description="Required for sized products (pizzas, drinks)")


class OrderItemResponse(CamelModel):
    product_id: str
    product2_id: Optional[str] = None
    is_half_half: bool = False
    product_name: str
    quantity: int
    size: Optional[str] = None
    unit_price: float


# === Order Schemas ===

class OrderCreate(CamelModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: Optional[str] = None
    order_type: OrderType = OrderType.PICKUP
    items: List[OrderItemCreate] = Field(..., min_length=1, description="Items to order")
    address: Optional[str] = None
    location_link: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator('customer_name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Customer name must not be blank")
        return v


class OrderUpdate(CamelModel):
    """
    Partial update. Unset fields are left alone; `status` must be the next
    status of the lifecycle or Cancelled.
    """
    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    order_type: Optional[OrderType] = None
    items: Optional[List[OrderItemCreate]] = Field(None, min_length=1)
    address: Optional[str] = None
    location_link: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)
    status: Optional[OrderStatus] = None


class OrderResponse(CamelModel):
    id: str
    order_number: int
    customer_id: Optional[str] = None
    customer_name: str
    customer_phone: Optional[str] = None
    items: List[OrderItemResponse]
    total: float
    status: OrderStatus
    timestamp: UtcDatetime
    order_type: OrderType
    address: Optional[str] = None
    location_link: Optional[str] = None
    notes: Optional[str] = None


# === Report Schemas ===

class RevenueStats(CamelModel):
    today_revenue: float
    yesterday_revenue: float


class DailyRevenue(CamelModel):
    date: str = Field(..., description="YYYY-MM-DD (UTC)")
    name: str = Field(..., description="Short weekday name")
    revenue: float


class TopProduct(CamelModel):
    name: str
    count: int
