"""
Order model
Items are kept as a JSON document on the order, each entry frozen at write time:
{"product_id", "product2_id", "is_half_half", "product_name", "quantity", "size", "unit_price"}
"""
from enum import StrEnum
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, JSON
from pizzadesk.database.base import Base, enum_type, new_id, utcnow


class OrderStatus(StrEnum):
    """Lifecycle of an order through the kitchen"""
    RECEIVED = "Received"
    PREPARING = "Preparing"
    READY = "Ready"
    OUT_FOR_DELIVERY = "OutForDelivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    ARCHIVED = "Archived"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.ARCHIVED})


class OrderType(StrEnum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=new_id)
    order_number = Column(Integer, nullable=False, index=True)

    customer_id = Column(String(32), nullable=True, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(32), nullable=True, index=True)  # normalized digits

    items = Column(JSON, nullable=False, default=list)
    total = Column(Float, nullable=False, default=0.0)

    status = Column(enum_type(OrderStatus), nullable=False, default=OrderStatus.RECEIVED, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    order_type = Column(enum_type(OrderType), nullable=False, default=OrderType.PICKUP)
    address = Column(Text, nullable=True)
    location_link = Column(String(1000), nullable=True)
    notes = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Order #{self.order_number} - {self.customer_name} - {self.status.value}>"
