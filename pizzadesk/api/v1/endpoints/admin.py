"""
Maintenance endpoints (Admin only)
"""
from typing import Annotated
from fastapi import APIRouter, Depends

from pizzadesk.core.dependencies import StoreDependency, require
from pizzadesk.database.models.user import User
from pizzadesk.schemas.common import MessageResponse
from pizzadesk.services.order_service import OrderService

router = APIRouter(tags=["Maintenance"])


@router.post("/app-reset", response_model=MessageResponse)
async def reset_app(
    store: StoreDependency,
    admin: Annotated[User, Depends(require("app.reset"))]
):
    """Delete every order and notification. Customers, products and accounts are kept."""
    await OrderService.reset_app(store, admin)
    return MessageResponse(message="App reset completed. Orders and notifications were deleted.")
