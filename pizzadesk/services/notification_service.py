"""
Notification fan-out

One domain event (order created, order ready, account approved, ...) becomes:
1. an audience: approved users of the roles listed in AUDIENCES, deduplicated by key
2. one persisted in-app Notification per recipient
3. a best-effort push to every recipient with a device token
4. a live alert on every open WebSocket connection of each recipient

The whole fan-out runs inside NotificationDispatcher.dispatch, which never
raises: a failed notification must not undo the mutation that triggered it.
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from pizzadesk.core.exceptions import Forbidden, ValidationError
from pizzadesk.core.i18n_logger import get_i18n_logger, translate
from pizzadesk.core.push import PushPayload, PushProvider, PushResult
from pizzadesk.core.websocket_manager import AlertSink
from pizzadesk.database.models.notification import Notification, NotificationEvent, NotificationPriority
from pizzadesk.database.models.order import Order, OrderType
from pizzadesk.database.models.user import User, UserRole, UserStatus
from pizzadesk.database.store import DocumentStore

logger = get_i18n_logger(__name__)

INBOX_LIMIT = 50

ORDER_STAFF = (UserRole.ADMIN, UserRole.EMPLOYEE)
ADMINS_ONLY = (UserRole.ADMIN,)

# Roles notified per event (always filtered on APPROVED status)
AUDIENCES: dict[NotificationEvent, tuple[UserRole, ...]] = {
    NotificationEvent.ORDER_CREATED: ORDER_STAFF,
    NotificationEvent.ORDER_EDITED: ORDER_STAFF,
    NotificationEvent.ORDER_READY: ORDER_STAFF,
    NotificationEvent.ORDER_CANCELLED: ORDER_STAFF,
    NotificationEvent.ORDER_DELIVERED: ADMINS_ONLY,
    NotificationEvent.NEW_USER_REGISTERED: ADMINS_ONLY,
}

HIGH_PRIORITY_EVENTS = frozenset({NotificationEvent.ORDER_READY, NotificationEvent.ORDER_EDITED})

# A status change only reaches the affected user for these outcomes
ANNOUNCED_USER_STATUSES = frozenset({UserStatus.APPROVED, UserStatus.REJECTED})

Subject = Union[Order, User]


@dataclass
class Composed:
    title: str
    message: str
    url: str
    tag: str
    priority: NotificationPriority


def priority_for(event: NotificationEvent) -> NotificationPriority:
    return NotificationPriority.HIGH if event in HIGH_PRIORITY_EVENTS else NotificationPriority.NORMAL


def compose(event: NotificationEvent, subject: Subject) -> Composed:
    """Render title, message and deep link of an event from the locale catalog"""
    if isinstance(subject, Order):
        subject_id = subject.id
        params = {"number": subject.order_number, "customer": subject.customer_name}
        if event == NotificationEvent.ORDER_READY:
            kind = "delivery" if subject.order_type == OrderType.DELIVERY else "pickup"
            params["kind"] = translate(f"notification.kind.{kind}")
        url = f"/orders?open={subject.id}" if event == NotificationEvent.ORDER_EDITED else "/orders"
        key = event.value
    else:
        subject_id = subject.key
        params = {"name": subject.name}
        if event == NotificationEvent.USER_STATUS_CHANGED:
            key = f"{event.value}.{subject.status.value}"
            url = "/dashboard"
        else:
            key = event.value
            url = "/settings?tab=users"

    return Composed(
        title=translate(f"notification.title.{key}"),
        message=translate(f"notification.message.{key}", **params),
        url=url,
        tag=f"{event.value}-{subject_id}",
        priority=priority_for(event),
    )


class NotificationDispatcher:
    """
    Fans domain events out to staff.

    Collaborators are injected: the document store (audience queries and
    persistence), a push provider and the live alert sink.
    """

    def __init__(self, store: DocumentStore, push: PushProvider, alerts: Optional[AlertSink] = None):
        self.store = store
        self.push = push
        self.alerts = alerts

    async def resolve_audience(self, event: NotificationEvent, subject: Subject) -> list[User]:
        if event == NotificationEvent.USER_STATUS_CHANGED:
            if isinstance(subject, User) and subject.status in ANNOUNCED_USER_STATUSES:
                return [subject]
            return []

        recipients: dict[str, User] = {}
        for role in AUDIENCES.get(event, ()):
            users = await self.store.query(User, User.role == role, User.status == UserStatus.APPROVED)
            for user in users:
                recipients.setdefault(user.key, user)
        return list(recipients.values())

    async def dispatch(self, event: NotificationEvent, subject: Subject) -> int:
        """
        Notify the audience of an event. Returns the number of recipients.

        Never raises; failures are logged and the subject is reloaded so the
        caller can keep using it.
        """
        try:
            return await self._fan_out(event, subject)
        except Exception as e:
            logger.error("notification.dispatch.failed", event=event.value, error=str(e))
            await self._recover(subject)
            return 0

    async def _fan_out(self, event: NotificationEvent, subject: Subject) -> int:
        composed = compose(event, subject)
        recipients = await self.resolve_audience(event, subject)
        if not recipients:
            logger.debug("notification.dispatch.no_audience", event=event.value)
            return 0

        notifications = await self._persist(recipients, composed)
        await self._push_all(recipients, composed)
        await self._alert_all(notifications)

        logger.info("notification.dispatch.done", event=event.value, recipients=len(recipients))
        return len(recipients)

    async def _persist(self, recipients: list[User], composed: Composed) -> list[Notification]:
        now = datetime.now(timezone.utc)
        notifications = [
            Notification(
                user_id=user.key,
                message=composed.message,
                related_url=composed.url,
                is_read=False,
                timestamp=now,
                priority=composed.priority,
            )
            for user in recipients
        ]
        self.store.session.add_all(notifications)
        await self.store.commit()
        return notifications

    async def _push_all(self, recipients: list[User], composed: Composed) -> None:
        targets = [(user.key, user.fcm_token) for user in recipients if user.fcm_token]
        if not targets:
            return

        payload = PushPayload(title=composed.title, body=composed.message, url=composed.url, tag=composed.tag)
        results = await asyncio.gather(
            *(self.push.send(token, payload) for _, token in targets),
            return_exceptions=True,
        )

        for (user_key, token), result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.error("notification.push.failed", user_id=user_key, error=str(result))
            elif result.token_invalid:
                await self.forget_token(user_key, token)
            elif not result.success:
                logger.warning("notification.push.failed", user_id=user_key, error=result.message or result.error)

    async def forget_token(self, user_key: str, token: str) -> bool:
        """Clear a device token, unless the user registered a new one meanwhile"""
        cleared = await self.store.conditional_update(
            User,
            user_key,
            expected={"fcm_token": token},
            values={"fcm_token": None, "fcm_token_updated_at": datetime.now(timezone.utc)},
        )
        if cleared:
            logger.info("notification.token.removed", user_id=user_key)
        return cleared

    async def _alert_all(self, notifications: list[Notification]) -> None:
        if self.alerts is None:
            return
        for notification in notifications:
            await self.alerts.alert(
                notification.user_id,
                {
                    "type": "notification",
                    "id": notification.id,
                    "message": notification.message,
                    "relatedUrl": notification.related_url,
                    "priority": notification.priority.value,
                    "timestamp": notification.timestamp.isoformat(),
                },
            )

    async def _recover(self, subject: Subject) -> None:
        session = self.store.session
        try:
            await session.rollback()
            await session.refresh(subject)
        except SQLAlchemyError as e:
            logger.error("notification.dispatch.recover_failed", error=str(e))

    async def send_test(self, user: User) -> PushResult:
        """Push a test message to the caller's own device"""
        if not user.fcm_token:
            raise ValidationError("No device is registered for push notifications. Enable notifications in the app first.")

        payload = PushPayload(
            title=translate("notification.title.Test"),
            body=translate("notification.message.Test"),
            url="/orders",
            tag=f"Test-{user.key}",
        )
        result = await self.push.send(user.fcm_token, payload)
        if result.token_invalid:
            await self.forget_token(user.key, user.fcm_token)
        return result


# === Inbox ===

class NotificationService:
    """Reads and read-state changes of a user's own notifications"""

    @staticmethod
    async def list_for(
        store: DocumentStore,
        user: User,
        include_read: bool = False,
        limit: int = INBOX_LIMIT,
    ) -> list[Notification]:
        """Newest first, only notifications created after the account itself"""
        criteria = [Notification.user_id == user.key]
        if user.created_at is not None:
            criteria.append(Notification.timestamp >= user.created_at)
        if not include_read:
            criteria.append(Notification.is_read.is_(False))
        return await store.query(
            Notification,
            *criteria,
            order_by=[Notification.timestamp.desc()],
            limit=limit,
        )

    @staticmethod
    async def mark_all_read(store: DocumentStore, user: User, notification_ids: Optional[list[str]] = None) -> int:
        """
        Mark the caller's notifications as read in one write.

        With ids, only those of them that belong to the caller are touched.
        """
        criteria = [Notification.user_id == user.key, Notification.is_read.is_(False)]
        if notification_ids is not None:
            if not notification_ids:
                return 0
            criteria.append(Notification.id.in_(notification_ids))
        count = await store.batch_update(Notification, criteria, {"is_read": True})
        logger.debug("notification.marked_read", user_id=user.key, count=count)
        return count

    @staticmethod
    async def mark_read(store: DocumentStore, user: User, notification_id: str) -> Notification:
        notification = await store.get_or_404(Notification, notification_id, "Notification")
        if notification.user_id != user.key:
            logger.warning("notification.access.denied", user_id=user.key, notification_id=notification_id)
            raise Forbidden("This notification belongs to another user")
        if not notification.is_read:
            await store.update(notification, {"is_read": True})
        return notification

    @staticmethod
    async def purge_all(store: DocumentStore, user_key: Optional[str] = None) -> int:
        """Hard delete notifications (of one user, or all of them)"""
        statement = delete(Notification)
        if user_key is not None:
            statement = statement.where(Notification.user_id == user_key)
        result = await store.session.execute(statement)
        await store.commit()
        return result.rowcount
