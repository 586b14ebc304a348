"""
Shared dependencies across the application (ASYNC VERSION)

This module provides type-annotated dependencies that you can use in your
FastAPI endpoints to make them cleaner and more readable.

Usage example:
    @router.delete("/orders/{order_id}")
    async def delete_order(
        order_id: str,
        store: StoreDependency,
        admin: Annotated[User, Depends(require("orders.delete"))]
    ):
        ...
"""
from typing import Annotated, Callable
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pizzadesk.core.permissions import OperationPolicy
from pizzadesk.core.push import PushProvider, build_push_provider
from pizzadesk.core.security import get_current_user
from pizzadesk.core.websocket_manager import AlertSink
from pizzadesk.database.models.user import User
from pizzadesk.database.session import get_db
from pizzadesk.database.store import DocumentStore
from pizzadesk.services.notification_service import NotificationDispatcher


# === Database Dependencies ===

DbDependency = Annotated[AsyncSession, Depends(get_db)]
"""
Async database session dependency.

Use this instead of manually adding `db: AsyncSession = Depends(get_db)`.
"""


def get_store(db: DbDependency) -> DocumentStore:
    return DocumentStore(db)


StoreDependency = Annotated[DocumentStore, Depends(get_store)]
"""
Document store over the request's session.

Example:
    async def list_products(store: StoreDependency):
        return await store.query(Product)
"""


# === User Authentication Dependencies ===

CurrentUser = Annotated[User, Depends(get_current_user)]
"""
Current authenticated user (any role, any status).

The JWT token has been validated and the profile loaded. Returns the
SQLAlchemy User model, not a Pydantic schema.
"""


def require(operation: str) -> Callable:
    """
    Dependency factory: the authenticated user, provided the policy table
    allows them the operation; Forbidden otherwise.

    Example:
        async def weekly_revenue(user: Annotated[User, Depends(require("reports.read"))]):
            ...
    """
    async def check_operation(current_user: CurrentUser) -> User:
        return OperationPolicy.enforce(current_user, operation)

    check_operation.__name__ = f"require_{operation.replace('.', '_')}"
    return check_operation


AdminUser = Annotated[User, Depends(require("users.manage"))]
"""
Current user verified as an approved ADMIN.

Example:
    async def delete_user(user_key: str, admin: AdminUser):
        # Only admins reach here
        ...
"""


# === Notification Dependencies ===

def get_push_provider() -> PushProvider:
    """Overridable in tests with a recording fake"""
    return build_push_provider()


def get_alert_sink(request: Request) -> AlertSink:
    """The application's WebSocket connection manager"""
    return request.app.state.alert_sink


def get_dispatcher(
    store: StoreDependency,
    push: Annotated[PushProvider, Depends(get_push_provider)],
    alerts: Annotated[AlertSink, Depends(get_alert_sink)],
) -> NotificationDispatcher:
    return NotificationDispatcher(store, push, alerts)


DispatcherDependency = Annotated[NotificationDispatcher, Depends(get_dispatcher)]
"""
Notification fan-out bound to the request's store, the push provider and the
live alert sink.
"""
