"""
SkillSwap Backend — Messaging & Presence Tests
================================================

What:  Tests for direct messages over REST and the WebSocket frame handler.
How:   Sockets are AsyncMock objects with a `send_json` coroutine; the frame
       handler is driven directly with the test session factory.

What we test:
    ✅ REST send stores trimmed content and pushes to an online recipient
    ✅ The push only happens after the message is committed
    ✅ Blank content, self-messages and unknown recipients are rejected
    ✅ Conversations include both directions, oldest first
    ✅ Frame handler persists, delivers, echoes; bad frames get an error event
    ✅ The socket refuses an invalid token with 1008
    ✅ Presence registry only purges the current handle and drops failing ones
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.exceptions import NotFoundError, ValidationError
from skillswap.models.message import Message
from skillswap.routes import chat
from skillswap.routes.chat import CHAT_ERROR_EVENT, CHAT_MESSAGE_EVENT, handle_chat_frame
from skillswap.services.message_service import MessageService
from skillswap.services.presence import PresenceRegistry, presence_registry


def _socket() -> AsyncMock:
    socket = AsyncMock()
    socket.send_json = AsyncMock()
    return socket


class TestPresenceRegistry:

    def test_register_and_unregister(self):
        registry = PresenceRegistry()
        user_id, socket = uuid.uuid4(), _socket()

        registry.register(user_id, socket)
        assert registry.is_online(user_id)
        assert registry.online_count == 1

        assert registry.unregister(user_id, socket) is True
        assert not registry.is_online(user_id)

    @pytest.mark.asyncio
    async def test_stale_handle_does_not_purge_newer_one(self):
        registry = PresenceRegistry()
        user_id, old_tab, new_tab = uuid.uuid4(), _socket(), _socket()

        registry.register(user_id, old_tab)
        registry.register(user_id, new_tab)

        assert registry.unregister(user_id, old_tab) is False
        assert registry.is_online(user_id)

        assert await registry.deliver(user_id, {"event": "x"}) is True
        new_tab.send_json.assert_awaited_once_with({"event": "x"})
        old_tab.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deliver(self):
        registry = PresenceRegistry()
        user_id, socket = uuid.uuid4(), _socket()

        assert await registry.deliver(user_id, {"event": "x"}) is False

        registry.register(user_id, socket)
        assert await registry.deliver(user_id, {"event": "x"}) is True
        socket.send_json.assert_awaited_once_with({"event": "x"})

    @pytest.mark.asyncio
    async def test_failing_handle_is_dropped(self):
        registry = PresenceRegistry()
        user_id, socket = uuid.uuid4(), _socket()
        socket.send_json.side_effect = RuntimeError("socket closed")
        registry.register(user_id, socket)

        assert await registry.deliver(user_id, {"event": "x"}) is False
        assert not registry.is_online(user_id)


class TestMessageService:

    def setup_method(self):
        self.service = MessageService()

    @pytest.mark.asyncio
    async def test_send_and_conversation(self, db_session, make_user):
        alice, bob, carol = await make_user("Alice"), await make_user("Bob"), await make_user("Carol")

        first = await self.service.send_message(db_session, alice, bob.id, "  hello  ")
        await self.service.send_message(db_session, carol, bob.id, "not in this chat")
        second = await self.service.send_message(db_session, bob, alice.id, "hi back")

        assert first.content == "hello"
        assert first.read is False

        conversation = await self.service.get_conversation(db_session, bob.id, alice.id)
        assert [m.id for m in conversation] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_guards(self, db_session, make_user):
        alice = await make_user("Alice")
        with pytest.raises(ValidationError, match="content"):
            await self.service.send_message(db_session, alice, uuid.uuid4(), "   ")
        with pytest.raises(ValidationError, match="yourself"):
            await self.service.send_message(db_session, alice, alice.id, "hi")
        with pytest.raises(NotFoundError):
            await self.service.send_message(db_session, alice, uuid.uuid4(), "hi")


class TestChatRest:

    @pytest.mark.asyncio
    async def test_send_pushes_to_online_recipient(self, test_client, register_user):
        alice = await register_user("Alice")
        bob = await register_user("Bob")
        bob_socket = _socket()
        presence_registry.register(uuid.UUID(bob["user"]["id"]), bob_socket)

        response = await test_client.post(
            "/api/chat/send",
            json={"recipientId": bob["user"]["id"], "content": " hey "},
            headers=alice["headers"],
        )

        assert response.status_code == 201
        message = response.json()
        assert message["content"] == "hey"
        assert message["sender"]["id"] == alice["user"]["id"]
        assert message["read"] is False

        bob_socket.send_json.assert_awaited_once()
        event = bob_socket.send_json.await_args.args[0]
        assert event["event"] == CHAT_MESSAGE_EVENT
        assert event["data"]["id"] == message["id"]

    @pytest.mark.asyncio
    async def test_push_happens_after_commit(self, test_client, register_user, monkeypatch):
        alice = await register_user("Alice")
        bob = await register_user("Bob")
        events = []
        bob_socket = _socket()
        bob_socket.send_json.side_effect = lambda data: events.append("push")
        presence_registry.register(uuid.UUID(bob["user"]["id"]), bob_socket)

        original_commit = AsyncSession.commit

        async def recording_commit(session):
            await original_commit(session)
            events.append("commit")

        monkeypatch.setattr(AsyncSession, "commit", recording_commit)

        response = await test_client.post(
            "/api/chat/send",
            json={"recipientId": bob["user"]["id"], "content": "hey"},
            headers=alice["headers"],
        )

        assert response.status_code == 201
        assert events[:2] == ["commit", "push"]

    @pytest.mark.asyncio
    async def test_failed_commit_pushes_nothing(self, test_client, register_user, monkeypatch):
        alice = await register_user("Alice")
        bob = await register_user("Bob")
        bob_socket = _socket()
        presence_registry.register(uuid.UUID(bob["user"]["id"]), bob_socket)

        async def failing_commit(session):
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(AsyncSession, "commit", failing_commit)

        response = await test_client.post(
            "/api/chat/send",
            json={"recipientId": bob["user"]["id"], "content": "hey"},
            headers=alice["headers"],
        )

        assert response.status_code == 500
        bob_socket.send_json.assert_not_awaited()


    @pytest.mark.asyncio
    async def test_conversation(self, test_client, register_user):
        alice = await register_user("Alice")
        bob = await register_user("Bob")
        for sender, recipient, text in [(alice, bob, "one"), (bob, alice, "two"), (alice, bob, "three")]:
            await test_client.post(
                "/api/chat/send",
                json={"recipientId": recipient["user"]["id"], "content": text},
                headers=sender["headers"],
            )

        response = await test_client.get(f"/api/chat/{alice['user']['id']}", headers=bob["headers"])
        assert response.status_code == 200
        assert [m["content"] for m in response.json()] == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_rejections(self, test_client, register_user):
        alice = await register_user("Alice")

        blank = await test_client.post(
            "/api/chat/send",
            json={"recipientId": str(uuid.uuid4()), "content": "  "},
            headers=alice["headers"],
        )
        assert blank.status_code == 400

        to_self = await test_client.post(
            "/api/chat/send",
            json={"recipientId": alice["user"]["id"], "content": "me"},
            headers=alice["headers"],
        )
        assert to_self.status_code == 400

        unauthenticated = await test_client.post(
            "/api/chat/send", json={"recipientId": alice["user"]["id"], "content": "x"}
        )
        assert unauthenticated.status_code == 401


class TestChatFrames:

    @pytest.mark.asyncio
    async def test_frame_is_stored_delivered_and_echoed(self, session_factory, make_user, db_session):
        alice, bob = await make_user("Alice"), await make_user("Bob")
        await db_session.commit()
        alice_id, bob_id = alice.id, bob.id
        await db_session.close()

        alice_socket, bob_socket = _socket(), _socket()
        presence_registry.register(bob_id, bob_socket)

        stored = await handle_chat_frame(
            alice_socket,
            alice_id,
            {"recipientId": str(bob_id), "content": "hello"},
            session_factory=session_factory,
        )

        assert stored is True
        event = alice_socket.send_json.await_args.args[0]
        assert event["event"] == CHAT_MESSAGE_EVENT
        assert event["data"]["content"] == "hello"
        bob_socket.send_json.assert_awaited_once_with(event)

        async with session_factory() as db:
            count = (await db.execute(select(func.count()).select_from(Message))).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "frame",
        [
            {"content": "no recipient"},
            {"recipientId": "not-a-uuid", "content": "hi"},
            "just a string",
        ],
    )
    async def test_malformed_frame_gets_error_event(self, session_factory, frame):
        socket = _socket()
        stored = await handle_chat_frame(socket, uuid.uuid4(), frame, session_factory=session_factory)

        assert stored is False
        socket.send_json.assert_awaited_once_with(
            {"event": CHAT_ERROR_EVENT, "error": "Failed to send message"}
        )

    @pytest.mark.asyncio
    async def test_unknown_recipient_gets_error_event(self, session_factory, make_user, db_session):
        alice = await make_user("Alice")
        await db_session.commit()
        alice_id = alice.id
        await db_session.close()

        socket = _socket()
        stored = await handle_chat_frame(
            socket,
            alice_id,
            {"recipientId": str(uuid.uuid4()), "content": "hi"},
            session_factory=session_factory,
        )

        assert stored is False
        assert socket.send_json.await_args.args[0]["event"] == CHAT_ERROR_EVENT


class TestChatSocketHandshake:

    @pytest.mark.asyncio
    async def test_invalid_token_closes_with_policy_violation(self, session_factory, monkeypatch):
        monkeypatch.setattr(chat, "async_session_factory", session_factory)
        websocket = AsyncMock()

        await chat.chat_socket(websocket, token="not-a-token")

        websocket.close.assert_awaited_once_with(code=status.WS_1008_POLICY_VIOLATION)
        websocket.accept.assert_not_awaited()
        assert presence_registry.online_count == 0

    @pytest.mark.asyncio
    async def test_token_for_deleted_user_is_refused(self, session_factory, monkeypatch):
        from skillswap.security import create_access_token

        monkeypatch.setattr(chat, "async_session_factory", session_factory)
        websocket = AsyncMock()
        token = create_access_token(uuid.uuid4(), "ghost@example.com", "Ghost")

        await chat.chat_socket(websocket, token=token)

        websocket.close.assert_awaited_once_with(code=status.WS_1008_POLICY_VIOLATION)
