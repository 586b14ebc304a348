"""
Staff accounts: registration, approval, profile changes and device tokens
"""
from datetime import datetime, timezone
from urllib.parse import quote

from sqlalchemy import func, select

from pizzadesk.core.exceptions import Conflict, Forbidden, Unauthorized, ValidationError
from pizzadesk.core.i18n_logger import get_i18n_logger
from pizzadesk.core.permissions import OperationPolicy
from pizzadesk.core.security import get_password_hash, verify_password
from pizzadesk.database.models.notification import NotificationEvent
from pizzadesk.database.models.user import User, UserRole, UserStatus
from pizzadesk.database.store import DocumentStore
from pizzadesk.schemas.user import UserCreate, UserRegister, UserUpdate
from pizzadesk.services.notification_service import NotificationDispatcher, NotificationService

logger = get_i18n_logger(__name__)

AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=random"


def initials(name: str) -> str:
    """Avatar fallback letters: Ana Maria Souza -> AM"""
    return "".join(part[0] for part in name.split()[:2]).upper()


def default_avatar(name: str) -> str:
    return AVATAR_URL.format(name=quote(name))


class UserService:
    """Service for staff accounts"""

    @staticmethod
    async def _insert(
        store: DocumentStore,
        data: UserRegister,
        role: UserRole,
        status: UserStatus,
    ) -> User:
        if await store.first(User, func.lower(User.email) == data.email.lower()):
            logger.warning("auth.registration.failed", reason=data.email)
            raise Conflict("Email already registered")

        try:
            hashed_password = get_password_hash(data.password)
        except ValidationError as e:
            logger.warning("auth.password.validation_failed", email=data.email, reason=e.detail)
            raise

        user = await store.add(User(
            name=data.name,
            email=data.email,
            hashed_password=hashed_password,
            role=role,
            status=status,
            avatar=default_avatar(data.name),
            fallback=initials(data.name),
            created_at=datetime.now(timezone.utc),
        ))
        logger.info(
            "auth.registration.success",
            email=user.email,
            role=user.role.value,
            status=user.status.value,
            user_id=user.key
        )
        return user

    @staticmethod
    async def register(store: DocumentStore, dispatcher: NotificationDispatcher, data: UserRegister) -> User:
        """
        Public sign-up.

        The very first account becomes an approved administrator so the desk
        can be bootstrapped; everyone after that waits for approval.
        """
        user_count = (await store.session.execute(select(func.count()).select_from(User))).scalar_one()
        if user_count == 0:
            return await UserService._insert(store, data, UserRole.ADMIN, UserStatus.APPROVED)

        user = await UserService._insert(store, data, UserRole.EMPLOYEE, UserStatus.PENDING)
        await dispatcher.dispatch(NotificationEvent.NEW_USER_REGISTERED, user)
        return user

    @staticmethod
    async def create_user(store: DocumentStore, dispatcher: NotificationDispatcher, data: UserCreate) -> User:
        """Account created by an administrator"""
        user = await UserService._insert(store, data, data.role, data.status)
        if user.status == UserStatus.PENDING:
            await dispatcher.dispatch(NotificationEvent.NEW_USER_REGISTERED, user)
        return user

    @staticmethod
    async def authenticate(store: DocumentStore, email: str, password: str) -> User:
        """Credentials check; only approved accounts may sign in"""
        user = await store.first(User, func.lower(User.email) == email.strip().lower())
        if user is None or not verify_password(password, user.hashed_password):
            logger.warning("auth.login.failed", email=email, reason="invalid credentials")
            raise Unauthorized("Incorrect email or password")
        if user.status != UserStatus.APPROVED:
            logger.warning("auth.login.failed", email=email, reason=user.status.value)
            raise Forbidden(f"Your account is {user.status.value.lower()}. An administrator must approve it first.")
        logger.info("auth.login.success", email=user.email, role=user.role.value)
        return user

    @staticmethod
    async def list_users(store: DocumentStore) -> list[User]:
        return await store.query(User, order_by=[User.name])

    @staticmethod
    async def get_user(store: DocumentStore, user_key: str) -> User:
        return await store.get_or_404(User, user_key, "User")

    @staticmethod
    async def update_user(
        store: DocumentStore,
        dispatcher: NotificationDispatcher,
        user_key: str,
        data: UserUpdate,
        actor: User,
    ) -> User:
        """
        Update a profile. Anyone may edit their own name and avatar; editing
        somebody else, or any role or status, takes users.manage.
        """
        values = data.model_dump(exclude_unset=True)
        if user_key != actor.key or "role" in values or "status" in values:
            OperationPolicy.enforce(actor, "users.manage")

        user = await UserService.get_user(store, user_key)
        for field in ("name", "role", "status"):
            if field in values and values[field] is None:
                del values[field]
        if "name" in values:
            values["name"] = values["name"].strip()
            values["fallback"] = initials(values["name"])

        await UserService._keep_an_admin(store, user, values)

        previous_status = user.status
        await store.update(user, values)
        logger.info("user.updated", email=user.email, user=actor.email)

        if user.status != previous_status:
            logger.info(
                "user.status.changed",
                email=user.email,
                old_status=previous_status.value,
                new_status=user.status.value
            )
            await dispatcher.dispatch(NotificationEvent.USER_STATUS_CHANGED, user)
        return user

    @staticmethod
    async def _keep_an_admin(store: DocumentStore, user: User, values: dict) -> None:
        """Prevent removing the last approved admin"""
        if not (user.is_admin() and user.is_approved()):
            return
        demoted = values.get("role", user.role) != UserRole.ADMIN
        suspended = values.get("status", user.status) != UserStatus.APPROVED
        if not (demoted or suspended):
            return
        admin_count = (await store.session.execute(
            select(func.count()).select_from(User).where(
                User.role == UserRole.ADMIN, User.status == UserStatus.APPROVED
            )
        )).scalar_one()
        if admin_count <= 1:
            raise ValidationError("Cannot remove the last admin user")

    @staticmethod
    async def delete_user(store: DocumentStore, user_key: str, actor: User) -> None:
        if user_key == actor.key:
            raise ValidationError("You cannot delete your own account")
        user = await UserService.get_user(store, user_key)
        await store.delete(user)
        await NotificationService.purge_all(store, user_key)
        logger.info("user.deleted", email=user.email, user=actor.email)

    @staticmethod
    async def save_fcm_token(store: DocumentStore, user_key: str, token: str, actor: User) -> User:
        """Register the device of the caller for push notifications"""
        if user_key != actor.key:
            raise Forbidden("You can only register your own device")
        user = await UserService.get_user(store, user_key)
        await store.update(user, {"fcm_token": token, "fcm_token_updated_at": datetime.now(timezone.utc)})
        logger.info("user.fcm_token.saved", email=user.email)
        return user

