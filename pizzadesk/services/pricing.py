"""
Order pricing

Prices are resolved from the catalog at write time and frozen on the order:
- sized product:     sizes[size]
- half and half:     max(first.sizes[size], second.sizes[size])  (the pricier half)
- flat product:      price
Total = sum(unit price x quantity), rounded to cents.
"""
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from pizzadesk.core.exceptions import NotFound, ValidationError
from pizzadesk.database.models.product import Product, ProductCategory
from pizzadesk.schemas.order import OrderItemCreate

HALF_HALF_PREFIX = "Half & Half:"


@dataclass
class PricedOrder:
    items: list[dict]
    total: float


def referenced_product_ids(items: Iterable[OrderItemCreate]) -> set[str]:
    ids = set()
    for item in items:
        ids.add(item.product_id)
        if item.is_half_half and item.product2_id:
            ids.add(item.product2_id)
    return ids


def _lookup(catalog: Mapping[str, Product], product_id: str) -> Product:
    product = catalog.get(product_id)
    if product is None:
        raise NotFound(f"Product {product_id} not found")
    if not product.is_available:
        raise ValidationError(f"Product '{product.name}' is not available")
    return product


def _sized_price(product: Product, size: str | None) -> float:
    price = product.price_for(size)
    if price is None:
        if not size:
            raise ValidationError(f"A size is required for '{product.name}'")
        raise ValidationError(f"Size '{size}' is not offered for '{product.name}'")
    return price


def price_item(item: OrderItemCreate, catalog: Mapping[str, Product]) -> dict:
    """Resolve one line into its stored form, with display name and unit price"""
    product = _lookup(catalog, item.product_id)

    if item.is_half_half:
        if not item.product2_id:
            raise ValidationError("A half and half pizza needs a second flavor")
        second = _lookup(catalog, item.product2_id)
        if product.category != ProductCategory.PIZZA or second.category != ProductCategory.PIZZA:
            raise ValidationError("Only pizzas can be ordered half and half")
        unit_price = max(_sized_price(product, item.size), _sized_price(second, item.size))
        name = f"{HALF_HALF_PREFIX} {product.name} / {second.name}"
        second_id, size = second.id, item.size
    elif product.category.is_sized:
        unit_price = _sized_price(product, item.size)
        name, second_id, size = product.name, None, item.size
    else:
        if product.price is None:
            raise ValidationError(f"Product '{product.name}' has no price")
        unit_price = product.price
        name, second_id, size = product.name, None, None

    return {
        "product_id": product.id,
        "product2_id": second_id,
        "is_half_half": item.is_half_half,
        "product_name": name,
        "quantity": item.quantity,
        "size": size,
        "unit_price": unit_price,
    }


def price_order(items: Sequence[OrderItemCreate], catalog: Mapping[str, Product]) -> PricedOrder:
    if not items:
        raise ValidationError("An order must contain at least one item")
    priced = [price_item(item, catalog) for item in items]
    total = round(sum(line["unit_price"] * line["quantity"] for line in priced), 2)
    return PricedOrder(items=priced, total=total)
