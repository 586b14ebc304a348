"""
Product catalog model
"""
from enum import StrEnum
from typing import Optional
from sqlalchemy import Column, String, Float, Boolean, Text, JSON
from pizzadesk.database.base import Base, enum_type, new_id


class ProductCategory(StrEnum):
    PIZZA = "Pizza"
    DRINK = "Drink"
    EXTRA = "Extra"

    @property
    def is_sized(self) -> bool:
        """Pizzas and drinks are priced per size, extras have a flat price"""
        return self in (ProductCategory.PIZZA, ProductCategory.DRINK)


class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, index=True)
    category = Column(enum_type(ProductCategory), nullable=False, index=True)
    sizes = Column(JSON, nullable=True)    # {"small": 30.0, "large": 45.0}
    price = Column(Float, nullable=True)   # flat price (extras)
    is_available = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)

    def price_for(self, size: Optional[str]) -> Optional[float]:
        """Unit price for a size label (ignored for flat-priced products)"""
        if self.category.is_sized:
            if not size or not self.sizes:
                return None
            return self.sizes.get(size)
        return self.price

    def __repr__(self):
        return f"<Product {self.name} ({self.category.value})>"
