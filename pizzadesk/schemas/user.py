"""
Pydantic schemas for user profiles and authentication.
"""
from typing import Optional
from pydantic import EmailStr, Field, field_validator

from pizzadesk.database.models.user import UserRole, UserStatus
from pizzadesk.schemas.common import CamelModel


class UserRegister(CamelModel):
    """Public sign-up. New accounts wait for an administrator's approval."""
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class UserCreate(UserRegister):
    """Account created by an administrator"""
    role: UserRole = UserRole.EMPLOYEE
    status: UserStatus = UserStatus.PENDING


class UserUpdate(CamelModel):
    """
    Partial profile update. Email and key are immutable; role and status
    may only be changed by an administrator.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    avatar: Optional[str] = Field(None, max_length=500)
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None


class FcmTokenUpdate(CamelModel):
    fcm_token: str = Field(..., min_length=1, max_length=500)


class UserResponse(CamelModel):
    key: str
    name: str
    email: EmailStr
    role: UserRole
    status: UserStatus
    avatar: Optional[str] = None
    fallback: Optional[str] = None


class Token(CamelModel):
    """JWT token response after successful authentication."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse
