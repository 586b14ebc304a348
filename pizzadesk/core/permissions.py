"""
Operation-level permission system

A single declarative table maps every protected operation to the roles that
may perform it and the account status they must have. Endpoints never check
roles by hand: they declare the operation and the gate evaluates it once per
request (see core.dependencies.require).
"""
from dataclasses import dataclass
from typing import Optional

from pizzadesk.core.exceptions import Forbidden
from pizzadesk.core.i18n_logger import get_i18n_logger
from pizzadesk.database.models.user import User, UserRole, UserStatus

logger = get_i18n_logger("permissions")


@dataclass(frozen=True)
class Policy:
    roles: frozenset[UserRole]
    status: UserStatus = UserStatus.APPROVED

    def allows(self, user: User) -> bool:
        return user.role in self.roles and user.status == self.status


STAFF = frozenset({UserRole.ADMIN, UserRole.EMPLOYEE})
ADMINS = frozenset({UserRole.ADMIN})


class OperationPolicy:
    """
    Central permission definitions for each operation.

    Anything not listed here is denied.
    """

    POLICIES: dict[str, Policy] = {
        # Orders
        'orders.read': Policy(STAFF),
        'orders.create': Policy(STAFF),
        'orders.update': Policy(STAFF),
        'orders.delivery': Policy(ADMINS),      # choosing the delivery order type
        'orders.delete': Policy(ADMINS),
        'orders.archive_all': Policy(ADMINS),

        # Customers and catalog
        'customers.read': Policy(STAFF),
        'customers.write': Policy(STAFF),
        'products.read': Policy(STAFF),
        'products.write': Policy(STAFF),

        # Accounts
        'users.manage': Policy(ADMINS),
        'users.self': Policy(STAFF),
        'notifications.own': Policy(STAFF),

        # Reports
        'reports.read': Policy(ADMINS),

        # Maintenance
        'app.reset': Policy(ADMINS),
    }

    @classmethod
    def check(cls, user: Optional[User], operation: str) -> bool:
        """
        Check if a user may perform an operation.

        Returns:
            True if allowed, False otherwise
        """
        if user is None:
            logger.warning("auth.unauthorized", resource=operation)
            return False

        policy = cls.POLICIES.get(operation)
        allowed = policy is not None and policy.allows(user)

        if not allowed:
            logger.warning(
                "error.permission",
                email=user.email,
                role=user.role.value,
                status=user.status.value,
                action=operation
            )
        return allowed

    @classmethod
    def enforce(cls, user: Optional[User], operation: str) -> User:
        """Raise Forbidden unless the user may perform the operation"""
        if not cls.check(user, operation):
            raise Forbidden(f"You don't have permission to perform '{operation}'")
        return user
