"""
User management endpoints
"""
from typing import Annotated, List
from fastapi import APIRouter, Depends, Response, status

from pizzadesk.core.dependencies import AdminUser, DispatcherDependency, StoreDependency, require
from pizzadesk.core.permissions import OperationPolicy
from pizzadesk.database.models.user import User
from pizzadesk.schemas.common import MessageResponse
from pizzadesk.schemas.user import FcmTokenUpdate, UserCreate, UserResponse, UserUpdate
from pizzadesk.services.user_service import UserService

router = APIRouter(tags=["User Management"])

SelfUser = Annotated[User, Depends(require("users.self"))]


@router.get("", response_model=List[UserResponse])
async def get_all_users(admin: AdminUser, store: StoreDependency):
    """Get all users (Admin only)"""
    return await UserService.list_users(store)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    admin: AdminUser,
    store: StoreDependency,
    dispatcher: DispatcherDependency
):
    """Create an account on someone's behalf (Admin only)"""
    return await UserService.create_user(store, dispatcher, data)


@router.get("/{user_key}", response_model=UserResponse)
async def get_user(user_key: str, user: SelfUser, store: StoreDependency):
    """Own profile, or anyone's for administrators"""
    if user_key != user.key:
        OperationPolicy.enforce(user, "users.manage")
    return await UserService.get_user(store, user_key)


@router.put("/{user_key}", response_model=UserResponse)
async def update_user(
    user_key: str,
    data: UserUpdate,
    user: SelfUser,
    store: StoreDependency,
    dispatcher: DispatcherDependency
):
    """
    Update a profile. Approving or rejecting an account notifies its owner.

    Permissions: own name and avatar for everyone; anything else for administrators
    """
    return await UserService.update_user(store, dispatcher, user_key, data, user)


@router.delete("/{user_key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_key: str, admin: AdminUser, store: StoreDependency):
    """Delete an account (Admin only, never your own)"""
    await UserService.delete_user(store, user_key, admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{user_key}/fcm-token", response_model=MessageResponse)
async def save_fcm_token(
    user_key: str,
    data: FcmTokenUpdate,
    user: SelfUser,
    store: StoreDependency
):
    """Register the caller's device for push notifications"""
    await UserService.save_fcm_token(store, user_key, data.fcm_token, user)
    return MessageResponse(message="Token saved")
