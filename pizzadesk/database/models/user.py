"""
User profile model
The key is the stable identity id carried in the bearer token's "sub" claim
"""
from enum import StrEnum
from sqlalchemy import Column, String, DateTime
from pizzadesk.database.base import Base, enum_type, new_id, utcnow


class UserRole(StrEnum):
    ADMIN = "Administrator"
    EMPLOYEE = "Employee"


class UserStatus(StrEnum):
    APPROVED = "Approved"
    PENDING = "Pending"
    REJECTED = "Rejected"


class User(Base):
    """
    Staff member of the pizzeria.

    Only APPROVED users may use the operational app; the role decides which
    mutations are allowed (see core.permissions).
    """
    __tablename__ = "users"

    key = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(100), nullable=False)

    role = Column(enum_type(UserRole), nullable=False, default=UserRole.EMPLOYEE, index=True)
    status = Column(enum_type(UserStatus), nullable=False, default=UserStatus.PENDING, index=True)

    avatar = Column(String(500), nullable=True)
    fallback = Column(String(4), nullable=True)

    # Device push token, cleared automatically when the provider reports it invalid
    fcm_token = Column(String(500), nullable=True)
    fcm_token_updated_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def is_approved(self) -> bool:
        return self.status == UserStatus.APPROVED

    def __repr__(self):
        return f"<User {self.email} ({self.role.value}, {self.status.value})>"
