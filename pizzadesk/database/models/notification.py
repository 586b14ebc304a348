"""
In-app notification model
Created only by the notification dispatcher; afterwards only is_read changes.
"""
from enum import StrEnum
from sqlalchemy import Column, String, Boolean, DateTime, Text
from pizzadesk.database.base import Base, enum_type, new_id, utcnow


class NotificationPriority(StrEnum):
    HIGH = "high"
    NORMAL = "normal"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False, index=True)
    message = Column(Text, nullable=False)
    related_url = Column(String(500), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    priority = Column(enum_type(NotificationPriority), nullable=False, default=NotificationPriority.NORMAL)


class NotificationEvent(StrEnum):
    """Domain events that fan out to staff"""
    ORDER_CREATED = "OrderCreated"
    ORDER_EDITED = "OrderEdited"
    ORDER_READY = "OrderReady"
    ORDER_CANCELLED = "OrderCancelled"
    ORDER_DELIVERED = "OrderDelivered"
    USER_STATUS_CHANGED = "UserStatusChanged"
    NEW_USER_REGISTERED = "NewUserRegistered"
