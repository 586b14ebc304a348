"""
Customer endpoints
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, Query, Response, status

from pizzadesk.core.dependencies import StoreDependency, require
from pizzadesk.database.models.user import User
from pizzadesk.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
from pizzadesk.schemas.order import OrderResponse
from pizzadesk.services.customer_service import CustomerService

router = APIRouter(tags=["Customers"])

CustomerReader = Annotated[User, Depends(require("customers.read"))]
CustomerWriter = Annotated[User, Depends(require("customers.write"))]


@router.get("", response_model=List[CustomerResponse])
async def list_customers(
    store: StoreDependency,
    user: CustomerReader,
    phone: Optional[str] = Query(None, description="Look a customer up by phone (any format)")
):
    """
    All customers sorted by name, with order count, total spent and last
    order date. With `phone`, at most the one matching customer.
    """
    if phone is not None:
        return await CustomerService.get_by_phone(store, phone)
    return await CustomerService.list_customers(store)


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(data: CustomerCreate, store: StoreDependency, user: CustomerWriter):
    return await CustomerService.create_customer(store, data)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: str, store: StoreDependency, user: CustomerReader):
    return await CustomerService.get_customer(store, customer_id)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    store: StoreDependency,
    user: CustomerWriter
):
    return await CustomerService.update_customer(store, customer_id, data)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(customer_id: str, store: StoreDependency, user: CustomerWriter):
    await CustomerService.delete_customer(store, customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{customer_id}/history", response_model=List[OrderResponse])
async def customer_history(customer_id: str, store: StoreDependency, user: CustomerReader):
    """Every order of the customer, archived ones included, newest first"""
    return await CustomerService.history(store, customer_id)
