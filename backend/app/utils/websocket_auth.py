"""
WebSocket handshake checks.
"""

from typing import Optional, Tuple
from uuid import UUID

from fastapi import WebSocket, WebSocketDisconnect, status
from jose import JWTError, jwt
from loguru import logger

from app.core.config import settings


def _token_subject(token: str) -> Optional[str]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"WebSocket JWT validation failed: {e}")
        return None
    return payload.get("sub")


def identify_websocket(websocket: WebSocket) -> Optional[Tuple[UUID, str]]:
    """
    Read ``userId`` and ``sessionId`` from the handshake query string.

    When a ``token`` is passed as well, its subject must be the same user.

    Returns:
        (user_id, session_id) or None if the handshake is not acceptable
    """
    user_id_raw = websocket.query_params.get("userId")
    session_id = websocket.query_params.get("sessionId")

    if not user_id_raw or not session_id:
        logger.warning("WebSocket connection rejected: missing userId or sessionId")
        return None

    try:
        user_id = UUID(user_id_raw)
    except ValueError:
        logger.warning(f"WebSocket connection rejected: invalid userId {user_id_raw!r}")
        return None

    token = websocket.query_params.get("token")
    if token is not None and _token_subject(token) != str(user_id):
        logger.warning(f"WebSocket connection rejected: token does not match user {user_id}")
        return None

    return user_id, session_id


async def require_websocket_identity(websocket: WebSocket) -> Tuple[UUID, str]:
    """
    Require a valid handshake, reject the connection otherwise.

    Raises:
        WebSocketDisconnect: The socket was closed with a policy violation
    """
    identity = identify_websocket(websocket)

    if identity is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        raise WebSocketDisconnect(code=status.WS_1008_POLICY_VIOLATION, reason="Missing authentication")

    return identity
