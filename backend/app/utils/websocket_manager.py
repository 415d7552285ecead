"""
WebSocket connection manager for real-time updates.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
from loguru import logger
from starlette.websockets import WebSocketState


@dataclass
class ConnectedClient:
    user_id: UUID
    session_id: str
    websocket: WebSocket

    @property
    def is_open(self) -> bool:
        return self.websocket.client_state == WebSocketState.CONNECTED


class ConnectionManager:
    """Tracks live sockets per user and pushes JSON events to them."""

    def __init__(self):
        # Map of user_id -> connected clients, one per socket
        self.active_connections: Dict[UUID, List[ConnectedClient]] = {}

    async def connect(self, websocket: WebSocket, user_id: UUID, session_id: str) -> ConnectedClient:
        """Accept a socket, register it and greet the user."""
        await websocket.accept()

        client = ConnectedClient(user_id=user_id, session_id=session_id, websocket=websocket)
        self.active_connections.setdefault(user_id, []).append(client)
        logger.info(
            f"WebSocket connected for user {user_id} (session {session_id}). "
            f"Total connections: {len(self.active_connections[user_id])}"
        )

        await self.send_to_user(user_id, {
            "type": "notification",
            "payload": {
                "title": "Connected",
                "content": "WebSocket connection established successfully",
            },
        })
        return client

    def disconnect(self, client: ConnectedClient) -> None:
        """Remove exactly this client; other sockets of the same session stay."""
        clients = self.active_connections.get(client.user_id)
        if clients is None:
            return

        remaining = [c for c in clients if c is not client]
        if remaining:
            self.active_connections[client.user_id] = remaining
        else:
            del self.active_connections[client.user_id]

        logger.info(f"WebSocket disconnected for user {client.user_id} (session {client.session_id})")

    async def handle_message(self, user_id: UUID, raw: str) -> None:
        """Handle an inbound frame. Malformed frames are logged and dropped."""
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Dropping malformed WebSocket message from user {user_id}: {e}")
            return

        if not isinstance(message, dict):
            logger.warning(f"Dropping non-object WebSocket message from user {user_id}")
            return

        if message.get("type") == "ping":
            await self.send_to_user(user_id, {"type": "pong"})
        else:
            logger.debug(f"Ignoring WebSocket message of type {message.get('type')!r} from user {user_id}")

    async def send_to_user(self, user_id: UUID, message: Dict[str, Any]) -> int:
        """
        Send a message to every open socket of a user.

        Returns:
            Number of sockets the message was written to
        """
        clients = self.active_connections.get(user_id)
        if not clients:
            return 0
        return await self._deliver(list(clients), self._serialize(message))

    async def broadcast(self, message: Dict[str, Any]) -> int:
        """Send a message to every open socket of every user."""
        clients = [c for user_clients in self.active_connections.values() for c in user_clients]
        if not clients:
            return 0
        return await self._deliver(clients, self._serialize(message))

    @staticmethod
    def _serialize(message: Dict[str, Any]) -> str:
        return json.dumps(jsonable_encoder(message))

    async def _deliver(self, clients: List[ConnectedClient], text: str) -> int:
        open_clients = [c for c in clients if c.is_open]
        results = await asyncio.gather(*(self._send(c, text) for c in open_clients))

        for client, sent in zip(open_clients, results):
            if not sent:
                self.disconnect(client)
        return sum(1 for sent in results if sent)

    @staticmethod
    async def _send(client: ConnectedClient, text: str) -> bool:
        try:
            await client.websocket.send_text(text)
            return True
        except Exception as e:
            logger.warning(f"Failed to send to WebSocket of user {client.user_id}: {e}")
            return False

    def connection_count(self, user_id: Optional[UUID] = None) -> int:
        if user_id is not None:
            return len(self.active_connections.get(user_id, []))
        return sum(len(clients) for clients in self.active_connections.values())

    async def shutdown(self) -> None:
        """Close every socket and forget them."""
        clients = [c for user_clients in self.active_connections.values() for c in user_clients]
        self.active_connections.clear()
        for client in clients:
            if client.is_open:
                try:
                    await client.websocket.close()
                except Exception as e:
                    logger.debug(f"Error closing WebSocket of user {client.user_id}: {e}")
        logger.info(f"Closed {len(clients)} WebSocket connection(s)")
