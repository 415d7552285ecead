"""
Tests for the WebSocket connection manager and the /ws handshake.
"""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketDisconnect

from main import app
from app.utils.websocket_manager import ConnectionManager
from tests.factories import FakeWebSocket


@pytest.mark.asyncio
async def test_connect_registers_and_sends_welcome():
    manager = ConnectionManager()
    user_id = uuid4()
    ws = FakeWebSocket()

    await manager.connect(ws, user_id, "s1")

    assert manager.connection_count(user_id) == 1
    welcome = ws.messages_of("notification")
    assert welcome[0]["payload"]["title"] == "Connected"


@pytest.mark.asyncio
async def test_send_to_user_reaches_every_session():
    manager = ConnectionManager()
    user_id = uuid4()
    first, second = FakeWebSocket(), FakeWebSocket()
    await manager.connect(first, user_id, "s1")
    await manager.connect(second, user_id, "s2")

    sent = await manager.send_to_user(user_id, {"type": "aiUpdate", "payload": {"itemId": "x"}})

    assert sent == 2
    assert first.messages_of("aiUpdate") == second.messages_of("aiUpdate") == [
        {"type": "aiUpdate", "payload": {"itemId": "x"}}
    ]


@pytest.mark.asyncio
async def test_send_to_user_without_sockets_returns_zero():
    manager = ConnectionManager()

    assert await manager.send_to_user(uuid4(), {"type": "notification"}) == 0


@pytest.mark.asyncio
async def test_closed_sockets_are_skipped_and_failing_sockets_dropped():
    manager = ConnectionManager()
    user_id = uuid4()
    healthy, closed, broken = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
    await manager.connect(healthy, user_id, "healthy")
    await manager.connect(closed, user_id, "closed")
    await manager.connect(broken, user_id, "broken")
    await closed.close()
    broken.fail_on_send = True

    sent = await manager.send_to_user(user_id, {"type": "itemUpdate", "payload": {}})

    assert sent == 1
    assert [c.session_id for c in manager.active_connections[user_id]] == ["healthy", "closed"]


@pytest.mark.asyncio
async def test_disconnect_removes_only_that_client():
    manager = ConnectionManager()
    user_id = uuid4()
    first = await manager.connect(FakeWebSocket(), user_id, "s1")
    second = await manager.connect(FakeWebSocket(), user_id, "s2")

    manager.disconnect(first)
    assert manager.connection_count(user_id) == 1

    manager.disconnect(second)
    assert user_id not in manager.active_connections


@pytest.mark.asyncio
async def test_tabs_sharing_a_session_disconnect_independently():
    manager = ConnectionManager()
    user_id = uuid4()
    closing_tab, open_tab = FakeWebSocket(), FakeWebSocket()
    closing = await manager.connect(closing_tab, user_id, "login-session")
    await manager.connect(open_tab, user_id, "login-session")

    manager.disconnect(closing)

    assert manager.connection_count(user_id) == 1
    assert await manager.send_to_user(user_id, {"type": "itemUpdate", "payload": {}}) == 1
    assert len(open_tab.messages_of("itemUpdate")) == 1


@pytest.mark.asyncio
async def test_failing_socket_does_not_drop_its_session_sibling():
    manager = ConnectionManager()
    user_id = uuid4()
    broken, healthy = FakeWebSocket(), FakeWebSocket()
    await manager.connect(broken, user_id, "login-session")
    await manager.connect(healthy, user_id, "login-session")
    broken.fail_on_send = True

    assert await manager.send_to_user(user_id, {"type": "aiUpdate", "payload": {}}) == 1

    assert [c.websocket for c in manager.active_connections[user_id]] == [healthy]


@pytest.mark.asyncio
async def test_ping_gets_pong_and_malformed_input_is_dropped():
    manager = ConnectionManager()
    user_id = uuid4()
    ws = FakeWebSocket()
    await manager.connect(ws, user_id, "s1")

    await manager.handle_message(user_id, "{not json")
    await manager.handle_message(user_id, '"just a string"')
    await manager.handle_message(user_id, '{"type": "ping"}')

    assert ws.messages_of("pong") == [{"type": "pong"}]
    assert manager.connection_count(user_id) == 1


@pytest.mark.asyncio
async def test_broadcast_and_shutdown():
    manager = ConnectionManager()
    sockets = [FakeWebSocket(), FakeWebSocket()]
    await manager.connect(sockets[0], uuid4(), "a")
    await manager.connect(sockets[1], uuid4(), "b")

    assert await manager.broadcast({"type": "notification", "payload": {"title": "hi"}}) == 2

    await manager.shutdown()
    assert manager.connection_count() == 0
    assert all(ws.closed for ws in sockets)


def test_handshake_without_session_id_is_rejected():
    client = TestClient(app)

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"/ws?userId={uuid4()}"):
            pass

    assert exc_info.value.code == 1008


def test_handshake_with_invalid_user_id_is_rejected():
    client = TestClient(app)

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws?userId=not-a-uuid&sessionId=abc"):
            pass

    assert exc_info.value.code == 1008


def test_handshake_accepts_and_answers_ping():
    manager = ConnectionManager()
    app.state.connection_manager = manager
    client = TestClient(app)
    user_id = uuid4()

    try:
        with client.websocket_connect(f"/ws?userId={user_id}&sessionId=abc") as ws:
            welcome = ws.receive_json()
            assert welcome["type"] == "notification"
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}
            assert manager.connection_count(user_id) == 1
    finally:
        app.state.connection_manager = ConnectionManager()
