"""
In-app notification endpoints (always scoped to the caller)
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Body, Depends, Query

from pizzadesk.core.dependencies import DispatcherDependency, StoreDependency, require
from pizzadesk.database.models.user import User
from pizzadesk.schemas.common import MessageResponse
from pizzadesk.schemas.notification import MarkReadRequest, NotificationResponse
from pizzadesk.services.notification_service import INBOX_LIMIT, NotificationService

router = APIRouter(tags=["Notifications"])

InboxOwner = Annotated[User, Depends(require("notifications.own"))]


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    store: StoreDependency,
    user: InboxOwner,
    include_read: bool = Query(False, description="Also return notifications already read"),
    limit: int = Query(INBOX_LIMIT, ge=1, le=INBOX_LIMIT)
):
    """The caller's notifications, newest first (unread only by default)"""
    return await NotificationService.list_for(store, user, include_read=include_read, limit=limit)


@router.put("", response_model=MessageResponse)
async def mark_notifications_read(
    store: StoreDependency,
    user: InboxOwner,
    data: Annotated[Optional[MarkReadRequest], Body()] = None
):
    """Mark every unread notification as read, or only `notificationIds` when given"""
    ids = data.notification_ids if data else None
    count = await NotificationService.mark_all_read(store, user, ids)
    return MessageResponse(message=f"{count} notifications marked as read")


@router.post("/test", response_model=MessageResponse)
async def send_test_notification(user: InboxOwner, dispatcher: DispatcherDependency):
    """Push a test message to the caller's registered device"""
    result = await dispatcher.send_test(user)
    if not result.success:
        return MessageResponse(message=f"Test notification failed: {result.message or result.error}")
    return MessageResponse(message="Test notification sent")


@router.put("/{notification_id}", response_model=NotificationResponse)
async def mark_notification_read(notification_id: str, store: StoreDependency, user: InboxOwner):
    """Mark one notification as read; 403 when it belongs to someone else"""
    return await NotificationService.mark_read(store, user, notification_id)
