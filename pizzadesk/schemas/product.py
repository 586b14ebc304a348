"""
Product Pydantic schemas for API requests/responses
"""
from typing import Optional
from pydantic import Field, field_validator

from pizzadesk.database.models.product import ProductCategory
from pizzadesk.schemas.common import CamelModel


def _check_prices(sizes: Optional[dict[str, float]]) -> Optional[dict[str, float]]:
    if sizes is not None and any(price < 0 for price in sizes.values()):
        raise ValueError("Size prices must not be negative")
    return sizes


class ProductBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: ProductCategory
    sizes: Optional[dict[str, float]] = Field(None, description="Size label -> price (Pizza, Drink)")
    price: Optional[float] = Field(None, ge=0, description="Flat price (Extra)")
    is_available: bool = True
    description: Optional[str] = None

    @field_validator('sizes')
    @classmethod
    def validate_sizes(cls, v: Optional[dict[str, float]]) -> Optional[dict[str, float]]:
        return _check_prices(v)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(CamelModel):
    """Schema for updating a product (all fields optional)"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[ProductCategory] = None
    sizes: Optional[dict[str, float]] = None
    price: Optional[float] = Field(None, ge=0)
    is_available: Optional[bool] = None
    description: Optional[str] = None

    @field_validator('sizes')
    @classmethod
    def validate_sizes(cls, v: Optional[dict[str, float]]) -> Optional[dict[str, float]]:
        return _check_prices(v)


class ProductResponse(ProductBase):
    id: str
