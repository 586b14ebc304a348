"""
Order management endpoints

Static paths (/revenue-stats, /delete-all) are declared before /{order_id}.
"""
from typing import Annotated, List
from fastapi import APIRouter, Depends, Response, status

from pizzadesk.core.dependencies import DispatcherDependency, StoreDependency, require
from pizzadesk.database.models.user import User
from pizzadesk.schemas.order import OrderCreate, OrderResponse, OrderUpdate, RevenueStats
from pizzadesk.services.order_service import OrderService
from pizzadesk.services.report_service import ReportService

router = APIRouter(tags=["Orders"])

OrderReader = Annotated[User, Depends(require("orders.read"))]
OrderWriter = Annotated[User, Depends(require("orders.update"))]


@router.get("", response_model=List[OrderResponse])
async def list_orders(store: StoreDependency, user: OrderReader):
    """Active (non-archived) orders, newest first"""
    return await OrderService.list_active(store)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    store: StoreDependency,
    dispatcher: DispatcherDependency,
    user: Annotated[User, Depends(require("orders.create"))]
):
    """
    Create a new order.

    Process:
    1. Validate items and price them from the catalog
    2. Find or create the customer by phone
    3. Allocate the next order number
    4. Notify staff

    Permissions: approved staff; delivery orders need an administrator
    """
    return await OrderService.create_order(store, dispatcher, order_data, user)


@router.get("/revenue-stats", response_model=RevenueStats)
async def revenue_stats(store: StoreDependency, user: OrderReader):
    """Today's and yesterday's revenue for the dashboard card"""
    return await ReportService.revenue_stats(store)


@router.delete("/delete-all", status_code=status.HTTP_204_NO_CONTENT)
async def archive_all_orders(
    store: StoreDependency,
    admin: Annotated[User, Depends(require("orders.archive_all"))]
):
    """
    Close the day: archive every order and restart the numbering at 1.

    Permissions: administrators
    """
    await OrderService.archive_all_and_reset(store, admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, store: StoreDependency, user: OrderReader):
    return await OrderService.get_order(store, order_id)


@router.put("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: str,
    patch: OrderUpdate,
    store: StoreDependency,
    dispatcher: DispatcherDependency,
    user: OrderWriter
):
    """
    Partial update. Items are re-priced; `status` may only be the next status
    of the order's flow or Cancelled (409 otherwise).
    """
    return await OrderService.update_order(store, dispatcher, order_id, patch, user)


@router.post("/{order_id}/advance", response_model=OrderResponse)
async def advance_order(
    order_id: str,
    store: StoreDependency,
    dispatcher: DispatcherDependency,
    user: OrderWriter
):
    """Move the order one step along its delivery or pickup flow"""
    return await OrderService.advance(store, dispatcher, order_id)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    store: StoreDependency,
    dispatcher: DispatcherDependency,
    user: OrderWriter
):
    return await OrderService.cancel(store, dispatcher, order_id)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
    order_id: str,
    store: StoreDependency,
    admin: Annotated[User, Depends(require("orders.delete"))]
):
    """Permanently delete an order. Permissions: administrators"""
    await OrderService.delete_order(store, order_id, admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
