"""
API v1 router - combines all v1 endpoints
"""
from fastapi import APIRouter
from pizzadesk.api.v1.endpoints import (
    admin, auth, customers, notifications, orders, products, push, reports, users, websockets
)

# Create main v1 router
api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth")
api_router.include_router(users.router, prefix="/users")
api_router.include_router(orders.router, prefix="/orders")
api_router.include_router(customers.router, prefix="/customers")
api_router.include_router(products.router, prefix="/products")
api_router.include_router(notifications.router, prefix="/notifications")
api_router.include_router(reports.router, prefix="/reports")
api_router.include_router(push.router, prefix="/push")
api_router.include_router(admin.router)
api_router.include_router(websockets.router)
