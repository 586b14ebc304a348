"""
Product catalog endpoints
"""
from typing import Annotated, List
from fastapi import APIRouter, Depends, Query, Response, status

from pizzadesk.core.dependencies import StoreDependency, require
from pizzadesk.database.models.user import User
from pizzadesk.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from pizzadesk.services.product_service import ProductService

router = APIRouter(tags=["Products"])

ProductReader = Annotated[User, Depends(require("products.read"))]
ProductWriter = Annotated[User, Depends(require("products.write"))]


@router.get("", response_model=List[ProductResponse])
async def list_products(
    store: StoreDependency,
    user: ProductReader,
    available_only: bool = Query(False, description="Only products that can be ordered")
):
    return await ProductService.get_products(store, available_only=available_only)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(product_data: ProductCreate, store: StoreDependency, user: ProductWriter):
    """
    Pizzas and drinks are priced per size (`sizes`), extras by a flat `price`.
    """
    return await ProductService.create_product(store, product_data)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, store: StoreDependency, user: ProductReader):
    return await ProductService.get_product(store, product_id)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    product_data: ProductUpdate,
    store: StoreDependency,
    user: ProductWriter
):
    return await ProductService.update_product(store, product_id, product_data)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: str, store: StoreDependency, user: ProductWriter):
    await ProductService.delete_product(store, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
