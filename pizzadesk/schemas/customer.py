"""
Customer Pydantic schemas
"""
from typing import Optional
from pydantic import Field

from pizzadesk.schemas.common import CamelModel, UtcDatetime


class CustomerCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., description="Any format; stored as digits only")
    address: Optional[str] = None
    location_link: Optional[str] = None


class CustomerUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = None
    address: Optional[str] = None
    location_link: Optional[str] = None


class CustomerResponse(CamelModel):
    """Stored fields plus the aggregates folded from the customer's orders"""
    id: str
    name: str
    phone: str
    address: Optional[str] = None
    location_link: Optional[str] = None
    order_count: int = 0
    total_spent: float = 0.0
    last_order_date: Optional[UtcDatetime] = Field(None, description="null when the customer never ordered")
