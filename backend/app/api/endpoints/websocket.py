"""
WebSocket endpoint for real-time events.
"""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from loguru import logger

from app.api.deps import get_connection_manager
from app.utils.websocket_auth import require_websocket_identity
from app.utils.websocket_manager import ConnectionManager

router = APIRouter()


@router.websocket("/ws")
async def events_websocket(
    websocket: WebSocket,
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """
    Push channel for notification, browserNotification, aiUpdate and itemUpdate events.

    Connect with ``/ws?userId=<uuid>&sessionId=<id>``. Clients may send
    ``{"type": "ping"}`` and get ``{"type": "pong"}`` back.
    """
    try:
        user_id, session_id = await require_websocket_identity(websocket)
    except WebSocketDisconnect:
        return

    client = await manager.connect(websocket, user_id, session_id)
    try:
        while True:
            raw = await websocket.receive_text()
            await manager.handle_message(user_id, raw)
    except WebSocketDisconnect:
        logger.info(f"WebSocket closed by client for user {user_id}")
    finally:
        manager.disconnect(client)
