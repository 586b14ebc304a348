"""
Public web-push client configuration
"""
from fastapi import APIRouter

from config import FIREBASE_WEB_CONFIG

router = APIRouter(tags=["Push"])


@router.get("/config")
async def push_config():
    """Client keys the browser needs to register for push; nothing secret"""
    return FIREBASE_WEB_CONFIG
