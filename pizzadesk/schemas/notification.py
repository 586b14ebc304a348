"""
Notification Pydantic schemas
"""
from typing import List, Optional

from pizzadesk.database.models.notification import NotificationPriority
from pizzadesk.schemas.common import CamelModel, UtcDatetime


class NotificationResponse(CamelModel):
    id: str
    user_id: str
    message: str
    related_url: Optional[str] = None
    is_read: bool
    timestamp: UtcDatetime
    priority: NotificationPriority


class MarkReadRequest(CamelModel):
    """Without ids every unread notification of the caller is marked as read"""
    notification_ids: Optional[List[str]] = None
