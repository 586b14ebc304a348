"""
Authentication endpoints
"""
from typing import Annotated
from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm

from config import ACCESS_TOKEN_EXPIRE_MINUTES, LOGIN_RATE_LIMIT
from pizzadesk.core.dependencies import CurrentUser, DispatcherDependency, StoreDependency
from pizzadesk.core.i18n_logger import get_i18n_logger
from pizzadesk.core.security import create_access_token, limiter
from pizzadesk.core.websocket_manager import ConnectionManager
from pizzadesk.schemas.common import MessageResponse
from pizzadesk.schemas.user import Token, UserRegister, UserResponse
from pizzadesk.services.user_service import UserService

logger = get_i18n_logger(__name__)

router = APIRouter(tags=["Authentication"])


# ============================================================================
# REGISTRATION ENDPOINT
# ============================================================================
@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=UserResponse,
    summary="Register a new user",
    description="Create a staff account. The first account becomes an approved administrator."
)
async def register(
    data: UserRegister,
    store: StoreDependency,
    dispatcher: DispatcherDependency
):
    """
    Register a new user.

    New accounts are Pending Employees until an administrator approves them;
    administrators are notified of the request.

    Password requirements:
    - At least 8 characters, at most 72 bytes
    - At least one letter and one digit
    - No spaces allowed
    """
    return await UserService.register(store, dispatcher, data)


# ============================================================================
# LOGIN ENDPOINT
# ============================================================================
@router.post(
    "/token",
    response_model=Token,
    summary="Login to get access token",
    description="Authenticate with email (as username) and password to receive a JWT token"
)
@limiter.limit(LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    store: StoreDependency
):
    """
    Only approved accounts receive a token; pending and rejected ones get 403.
    """
    logger.info(
        "auth.login.attempt",
        email=form_data.username,
        ip_address=request.client.host if request.client else "unknown"
    )
    user = await UserService.authenticate(store, form_data.username, form_data.password)

    return Token(
        access_token=create_access_token(user.key),
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(user),
    )


# ============================================================================
# CURRENT USER
# ============================================================================
@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user profile"
)
async def get_current_user_info(current_user: CurrentUser):
    """
    The profile behind the bearer token, whatever its status, so a pending
    user can see that the account still waits for approval.
    """
    logger.debug("auth.profile.accessed", email=current_user.email)
    return current_user


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request, current_user: CurrentUser):
    """Close the caller's live connections; the client discards its token"""
    manager: ConnectionManager = request.app.state.alert_sink
    await manager.close_user(current_user.key)
    logger.info("auth.logout", email=current_user.email)
    return MessageResponse(message="Logged out")
