"""
Customer model
Order count, total spent and last order date are never stored: they are
folded from the orders on every read (services.customer_service).
"""
import re
from sqlalchemy import Column, String, DateTime, Text
from pizzadesk.database.base import Base, new_id, utcnow


def normalize_phone(phone: str | None) -> str:
    """Digits only: "(11) 98765-4321" -> "11987654321" """
    return re.sub(r"\D", "", phone or "")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, index=True)
    phone = Column(String(32), unique=True, nullable=False, index=True)
    address = Column(Text, nullable=True)
    location_link = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Customer {self.name} {self.phone}>"
