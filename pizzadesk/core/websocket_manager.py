"""
WebSocket Connection Manager for Real-Time Updates

This is the live alert sink of the dashboard: every notification the
dispatcher persists is also pushed to the recipient's open connections, which
is what makes the client play its alert sound. The manager belongs to the
application (created with it, see main.py); a connection lives from connect
until disconnect or logout.
"""
from fastapi import WebSocket
from typing import Dict, List, Set, Protocol
from pizzadesk.database.models.user import UserRole
from datetime import datetime, timezone
from pizzadesk.core.i18n_logger import get_i18n_logger

logger = get_i18n_logger(__name__)


class AlertSink(Protocol):
    async def alert(self, user_id: str, message: dict) -> None:
        ...


class ConnectionManager:
    """
    Manages WebSocket connections organized by role and user.

    Architecture:
    - active_connections: all active websocket connections
    - connections_by_role: connections grouped by user role
    - connections_by_user: connections for specific users (multiple devices)
    """

    def __init__(self):
        self.active_connections: List[WebSocket] = []
        self.connections_by_role: Dict[UserRole, Set[WebSocket]] = {role: set() for role in UserRole}
        self.connections_by_user: Dict[str, Set[WebSocket]] = {}
        self.connection_metadata: Dict[WebSocket, dict] = {}

    async def connect(self, websocket: WebSocket, user_id: str, user_role: UserRole, name: str):
        """
        Accept a new WebSocket connection and register it.
        """
        await websocket.accept()

        self.active_connections.append(websocket)
        self.connections_by_role[user_role].add(websocket)
        self.connections_by_user.setdefault(user_id, set()).add(websocket)
        self.connection_metadata[websocket] = {
            'user_id': user_id,
            'name': name,
            'role': user_role,
            'connected_at': datetime.now(timezone.utc).isoformat()
        }

        logger.info(
            "ws.connected",
            user_id=user_id,
            name=name,
            role=user_role.value,
            total=len(self.active_connections)
        )

        await self.send_personal_message(
            {
                "type": "connection_established",
                "role": user_role.value,
                "timestamp": datetime.now(timezone.utc).isoformat()
            },
            websocket
        )

    def disconnect(self, websocket: WebSocket):
        """
        Remove a WebSocket connection when the client disconnects.
        """
        metadata = self.connection_metadata.pop(websocket, None)
        if metadata is None:
            return

        user_id = metadata['user_id']
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
        self.connections_by_role[metadata['role']].discard(websocket)

        user_connections = self.connections_by_user.get(user_id)
        if user_connections is not None:
            user_connections.discard(websocket)
            if not user_connections:
                del self.connections_by_user[user_id]

        logger.info("ws.disconnected", user_id=user_id, remaining=len(self.active_connections))

    async def close_user(self, user_id: str):
        """Tear down every connection of a user (logout)"""
        for websocket in list(self.connections_by_user.get(user_id, ())):
            try:
                await websocket.close()
            except RuntimeError:
                pass  # already closed by the client
            self.disconnect(websocket)

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.error("ws.send.failed", error=str(e))
            self.disconnect(websocket)

    async def send_to_user(self, message: dict, user_id: str):
        """
        Send a message to all connections of a specific user.
        """
        disconnected = []
        for connection in list(self.connections_by_user.get(user_id, ())):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.error("ws.send.failed", error=str(e))
                disconnected.append(connection)

        for conn in disconnected:
            self.disconnect(conn)

    async def alert(self, user_id: str, message: dict) -> None:
        await self.send_to_user(message, user_id)

    def get_connection_stats(self) -> dict:
        return {
            'total_connections': len(self.active_connections),
            'connections_by_role': {
                role.value: len(connections)
                for role, connections in self.connections_by_role.items()
            },
            'unique_users': len(self.connections_by_user),
        }

