"""
Product business logic service
"""
from typing import Optional

from pizzadesk.core.exceptions import ValidationError
from pizzadesk.core.i18n_logger import get_i18n_logger
from pizzadesk.database.models.product import Product, ProductCategory
from pizzadesk.database.store import DocumentStore
from pizzadesk.schemas.product import ProductCreate, ProductUpdate

logger = get_i18n_logger(__name__)


def check_pricing(category: ProductCategory, sizes: Optional[dict], price: Optional[float]) -> None:
    """Pizzas and drinks need at least one size price, extras need a flat price"""
    if category.is_sized:
        if not sizes:
            raise ValidationError(f"A {category.value} needs at least one size with a price")
    elif price is None:
        raise ValidationError(f"A {category.value} needs a price")


class ProductService:
    """Service for product business logic"""

    @staticmethod
    async def create_product(store: DocumentStore, product_data: ProductCreate) -> Product:
        """Create a new product"""
        check_pricing(product_data.category, product_data.sizes, product_data.price)
        product = await store.add(Product(
            name=product_data.name.strip(),
            category=product_data.category,
            sizes=product_data.sizes if product_data.category.is_sized else None,
            price=None if product_data.category.is_sized else product_data.price,
            is_available=product_data.is_available,
            description=product_data.description,
        ))
        logger.info("product.created", name=product.name, category=product.category.value)
        return product

    @staticmethod
    async def get_product(store: DocumentStore, product_id: str) -> Product:
        """Get a product by ID"""
        return await store.get_or_404(Product, product_id, "Product")

    @staticmethod
    async def get_products(store: DocumentStore, available_only: bool = False) -> list[Product]:
        criteria = [Product.is_available.is_(True)] if available_only else []
        return await store.query(Product, *criteria, order_by=[Product.category, Product.name])

    @staticmethod
    async def update_product(store: DocumentStore, product_id: str, product_data: ProductUpdate) -> Product:
        """Update only the provided fields, then re-check the pricing of the result"""
        product = await ProductService.get_product(store, product_id)
        values = product_data.model_dump(exclude_unset=True)
        for field in ("name", "category", "is_available"):
            if field in values and values[field] is None:
                del values[field]

        category = values.get("category") or product.category
        sizes = values["sizes"] if "sizes" in values else product.sizes
        price = values["price"] if "price" in values else product.price
        check_pricing(category, sizes, price)

        await store.update(product, values)
        logger.info("product.updated", name=product.name)
        return product

    @staticmethod
    async def delete_product(store: DocumentStore, product_id: str) -> None:
        """Permanently delete a product; past orders keep their frozen names and prices"""
        product = await ProductService.get_product(store, product_id)
        await store.delete(product)
        logger.info("product.deleted", name=product.name)

    @staticmethod
    async def catalog_for(store: DocumentStore, product_ids: set[str]) -> dict[str, Product]:
        """Products referenced by an order, keyed by id"""
        if not product_ids:
            return {}
        products = await store.query(Product, Product.id.in_(product_ids))
        return {product.id: product for product in products}
