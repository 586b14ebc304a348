"""
WebSocket endpoint for live notifications
"""
from datetime import datetime, timezone
from typing import Annotated
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from pizzadesk.core.exceptions import Unauthorized
from pizzadesk.core.i18n_logger import get_i18n_logger
from pizzadesk.core.permissions import OperationPolicy
from pizzadesk.core.security import get_user_from_token
from pizzadesk.core.websocket_manager import ConnectionManager
from pizzadesk.database.session import get_db

router = APIRouter(tags=["WebSocket"])
logger = get_i18n_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    db: Annotated[AsyncSession, Depends(get_db)],
    token: str = Query(..., description="JWT access token for authentication")
):
    """
    Live channel of the dashboard.

    Connection URL: ws://localhost:8000/api/v1/ws?token=YOUR_JWT_TOKEN

    Server to client:
    {"type": "connection_established" | "notification" | "pong" | "stats" | "error", ...}

    Client to server:
    {"action": "ping" | "get_stats"}
    """
    manager: ConnectionManager = websocket.app.state.alert_sink

    try:
        user = await get_user_from_token(token, db)
    except Unauthorized:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    if not OperationPolicy.check(user, "notifications.own"):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    # The session is not needed while the socket stays open
    await db.close()

    await manager.connect(websocket=websocket, user_id=user.key, user_role=user.role, name=user.name)
    try:
        while True:
            data = await websocket.receive_json()
            action = data.get("action") if isinstance(data, dict) else None

            if action == "ping":
                await manager.send_personal_message({"type": "pong", "timestamp": _now()}, websocket)
            elif action == "get_stats" and user.is_admin():
                await manager.send_personal_message(
                    {"type": "stats", "data": manager.get_connection_stats(), "timestamp": _now()},
                    websocket
                )
            else:
                await manager.send_personal_message(
                    {"type": "error", "message": f"Unknown action: {action}", "timestamp": _now()},
                    websocket
                )
    except WebSocketDisconnect:
        pass
    except ValueError as e:
        logger.warning("ws.message.invalid", user_id=user.key, error=str(e))
    finally:
        manager.disconnect(websocket)
