"""
Security utilities: JWT, password hashing, authentication (ASYNC VERSION)

This is the identity provider of the desk: it verifies a bearer token and maps
it to the stable user key stored in the token's "sub" claim.
"""
from typing import Annotated, Optional
from datetime import datetime, timedelta, timezone
from fastapi import Depends, Response
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from config import (
    SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES,
    TOKEN_REFRESH_THRESHOLD_MINUTES, API_VERSION, RATE_LIMIT_ENABLED, BCRYPT_ROUNDS
)
from pizzadesk.core.exceptions import Unauthorized, ValidationError
from pizzadesk.core.i18n_logger import get_i18n_logger
from pizzadesk.database.session import get_db
from pizzadesk.database.models.user import User

limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)

if not SECRET_KEY or not ALGORITHM:
    raise RuntimeError("SECRET_KEY and ALGORITHM must be set in environment variables")

# Initialize password hashing and OAuth2
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"/api/{API_VERSION}/auth/token", auto_error=False)

logger = get_i18n_logger(__name__)

# === Password Utilities ===

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def validate_password(password: str) -> str:
    """
    Validate password meets security requirements.

    Requirements:
    - 8-72 bytes (bcrypt limit)
    - At least one letter and one digit
    - No spaces

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password.encode('utf-8')) > 72:
        raise ValidationError("Password must be less than 72 bytes long")
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long")
    if " " in password:
        raise ValidationError("Password must not contain spaces")
    if not any(char.isalpha() for char in password):
        raise ValidationError("Password must contain at least one letter")
    if not any(char.isdigit() for char in password):
        raise ValidationError("Password must contain at least one digit")
    return password


def get_password_hash(password: str) -> str:
    """Validate then hash a password with bcrypt"""
    return pwd_context.hash(validate_password(password))


# === Token Utilities ===

def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token for a user key.

    Args:
        subject: The user's stable key
        expires_delta: Optional custom expiration time
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": subject,
        "exp": expire,
        "iat": now,
        "type": "access",
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate a JWT token.

    Raises:
        JWTError: If token is invalid
        ExpiredSignatureError: If token has expired
    """
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])


def verify_token(token: Optional[str]) -> str:
    """Bearer token -> verified user key"""
    if not token:
        raise Unauthorized("Not authenticated")
    try:
        payload = decode_token(token)
    except ExpiredSignatureError:
        raise Unauthorized("Token has expired. Please login again.")
    except JWTError as e:
        logger.debug("auth.token.invalid", error=str(e))
        raise Unauthorized()

    subject = payload.get("sub")
    if not subject or payload.get("type") != "access":
        raise Unauthorized()
    return subject


def get_token_remaining_duration(payload: dict) -> timedelta:
    """Remaining lifetime of a decoded token (zero when there is no exp claim)"""
    exp_timestamp = payload.get("exp")
    if exp_timestamp is None:
        return timedelta(0)
    exp_datetime = datetime.fromtimestamp(exp_timestamp, tz=timezone.utc)
    return exp_datetime - datetime.now(timezone.utc)


def should_refresh_token(token: str) -> bool:
    """
    Tokens are refreshed when fewer than TOKEN_REFRESH_THRESHOLD_MINUTES remain.
    """
    try:
        payload = decode_token(token)
    except JWTError:
        return False
    if payload.get("exp") is None:
        return False
    remaining = get_token_remaining_duration(payload)
    return remaining.total_seconds() < TOKEN_REFRESH_THRESHOLD_MINUTES * 60


# === Authentication Dependencies ===

async def get_user_from_token(token: Optional[str], db: AsyncSession) -> User:
    """
    Authenticate a user from a bearer token without using Depends.

    Also used by the WebSocket endpoint, where the token arrives as a query parameter.
    """
    user_key = verify_token(token)
    user = await db.get(User, user_key)
    if user is None:
        raise Unauthorized()
    return user


async def get_current_user(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
    response: Response
) -> User:
    """
    Get current authenticated user from JWT token (ASYNC VERSION).

    When the token is close to expiry a fresh one is returned in the
    X-New-Token header (sliding session).
    """
    user = await get_user_from_token(token, db)

    if should_refresh_token(token):
        response.headers["X-New-Token"] = create_access_token(user.key)
        logger.info("auth.token.refreshed", email=user.email)

    return user
