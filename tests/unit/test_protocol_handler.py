from __future__ import annotations

import pytest

from verse_chat.application.exceptions import NotAuthenticatedError
from verse_chat.infrastructure.memory.uow import InMemoryBackend
from verse_chat.infrastructure.ws.handler import Authenticated, Closed, Unauthenticated
from verse_chat.infrastructure.ws.protocol import MarkReadFrame, SendMessageFrame
from tests.conftest import FailingMessageStore, make_users, send


async def _authed(connect, user_id):
    ws, handler = connect()
    await handler.handle_text(send(type="auth", userId=user_id))
    ws.sent.clear()
    return ws, handler


@pytest.mark.asyncio
async def test_auth_binds_and_acknowledges(connect, registry):
    ws, handler = connect()

    await handler.handle_text(send(type="auth", userId=1))

    assert handler.state == Authenticated(1)
    assert registry.lookup(1) is ws
    assert ws.frames == [{"type": "auth_ok", "userId": 1}]


@pytest.mark.asyncio
async def test_auth_for_unknown_user_stays_unauthenticated(connect, registry):
    ws, handler = connect()

    await handler.handle_text(send(type="auth", userId=99))

    assert handler.state == Unauthenticated()
    assert 99 not in registry
    assert ws.frames[0]["type"] == "error"
    assert "99" in ws.frames[0]["message"]


@pytest.mark.asyncio
async def test_message_delivered_and_confirmed(connect, backend):
    """User 1 messages online user 2: confirmation, push and one unread row."""
    ws1, _h1 = await _authed(connect, 1)
    ws2, _h2 = await _authed(connect, 2)

    await _h1.handle_text(send(type="message", receiverId=2, content="hello"))

    [sent] = ws1.of_type("message_sent")
    [pushed] = ws2.of_type("message")
    assert sent["message"] == pushed["message"]
    assert pushed["message"]["content"] == "hello"
    assert pushed["message"]["senderId"] == 1
    assert pushed["message"]["receiverId"] == 2
    assert pushed["message"]["isRead"] is False
    assert pushed["message"]["imageData"] is None

    stored = await backend.store.get_messages_between_users(1, 2)
    assert len(stored) == 1
    assert stored[0].is_read is False


@pytest.mark.asyncio
async def test_mark_read_flips_and_notifies_sender(connect, backend):
    ws1, h1 = await _authed(connect, 1)
    ws2, h2 = await _authed(connect, 2)
    await h1.handle_text(send(type="message", receiverId=2, content="hello"))
    ws1.sent.clear()

    await h2.handle_text(send(type="mark_read", senderId=1))

    stored = await backend.store.get_messages_between_users(1, 2)
    assert [m.is_read for m in stored] == [True]
    assert ws1.frames == [{"type": "messages_read", "by": 2}]
    assert ws2.of_type("error") == []


@pytest.mark.asyncio
async def test_offline_receiver_still_gets_stored_message(connect, backend, delivery):
    ws1, h1 = await _authed(connect, 1)

    await h1.handle_text(send(type="message", receiverId=2, content="later"))

    assert len(ws1.of_type("message_sent")) == 1
    assert delivery.stats.offline == 1
    stored = await backend.store.get_messages_between_users(1, 2)
    assert [(m.content, m.is_read) for m in stored] == [("later", False)]


@pytest.mark.asyncio
async def test_bogus_frame_before_auth_then_auth_succeeds(connect):
    ws, handler = connect()

    await handler.handle_text(send(type="bogus"))
    assert ws.frames[-1]["type"] == "error"
    assert handler.state == Unauthenticated()

    await handler.handle_text(send(type="auth", userId=1))
    assert handler.state == Authenticated(1)
    assert ws.frames[-1] == {"type": "auth_ok", "userId": 1}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "frame",
    [
        send(type="message", receiverId=2, content="hi"),
        send(type="mark_read", senderId=2),
    ],
)
async def test_frames_before_auth_are_rejected(connect, backend, frame):
    ws, handler = connect()

    await handler.handle_text(frame)

    assert ws.frames == [{"type": "error", "message": "Not authenticated"}]
    assert len(backend.store) == 0


@pytest.mark.asyncio
async def test_store_failure_sends_error_without_delivery(connect, registry):
    failing = InMemoryBackend(store=FailingMessageStore(), users=make_users(1, 2))
    ws1, h1 = connect(failing.uow)
    ws2, h2 = connect(failing.uow)
    await h1.handle_text(send(type="auth", userId=1))
    await h2.handle_text(send(type="auth", userId=2))
    ws1.sent.clear()
    ws2.sent.clear()

    await h1.handle_text(send(type="message", receiverId=2, content="lost?"))

    assert failing.store.create_calls == 1
    assert [f["type"] for f in ws1.frames] == ["error"]
    assert ws2.frames == []
    assert h1.state == Authenticated(1)


@pytest.mark.asyncio
async def test_mark_read_store_failure_sends_error_without_receipt(connect):
    failing = InMemoryBackend(store=FailingMessageStore(), users=make_users(1, 2))
    ws1, h1 = connect(failing.uow)
    ws2, h2 = connect(failing.uow)
    await h1.handle_text(send(type="auth", userId=1))
    await h2.handle_text(send(type="auth", userId=2))
    ws1.sent.clear()
    ws2.sent.clear()

    await h2.handle_text(send(type="mark_read", senderId=1))

    assert ws2.frames == [{"type": "error", "message": "Failed to process mark_read"}]
    assert ws1.frames == []
    assert h2.state == Authenticated(2)


@pytest.mark.asyncio
async def test_receiver_write_failure_still_confirms_to_sender(connect, backend, registry, delivery):
    ws1, h1 = await _authed(connect, 1)
    ws2, _ = await _authed(connect, 2)
    ws2.fail_on_send = True

    await h1.handle_text(send(type="message", receiverId=2, content="into the void"))

    assert [f["type"] for f in ws1.frames] == ["message_sent"]
    assert delivery.stats.failed == 1
    assert registry.lookup(2) is None
    assert h1.state == Authenticated(1)
    assert [m.content for m in await backend.store.get_messages_between_users(1, 2)] == ["into the void"]


@pytest.mark.asyncio
async def test_exactly_one_confirmation_per_message(connect):
    ws1, h1 = await _authed(connect, 1)
    ws2, _ = await _authed(connect, 2)

    await h1.handle_text(send(type="message", receiverId=2, content="one"))
    await h1.handle_text(send(type="message", receiverId=3, content="two"))

    assert [f["message"]["content"] for f in ws1.of_type("message_sent")] == ["one", "two"]
    assert [f["message"]["content"] for f in ws2.of_type("message")] == ["one"]


@pytest.mark.asyncio
async def test_mark_read_twice_is_safe_and_still_notifies(connect, backend):
    ws1, h1 = await _authed(connect, 1)
    ws2, h2 = await _authed(connect, 2)
    await h1.handle_text(send(type="message", receiverId=2, content="hi"))
    ws1.sent.clear()

    await h2.handle_text(send(type="mark_read", senderId=1))
    await h2.handle_text(send(type="mark_read", senderId=1))

    assert ws1.frames == [{"type": "messages_read", "by": 2}] * 2
    assert ws2.of_type("error") == []
    assert await backend.store.mark_messages_as_read(2, 1) == 0


@pytest.mark.asyncio
async def test_messages_stored_in_arrival_order(connect, backend):
    _, h1 = await _authed(connect, 1)

    for text in ("m1", "m2", "m3"):
        await h1.handle_text(send(type="message", receiverId=2, content=text))

    stored = await backend.store.get_messages_between_users(1, 2)
    assert [m.content for m in stored] == ["m1", "m2", "m3"]
    ids = [m.id for m in stored]
    stamps = [m.created_at for m in stored]
    assert ids == sorted(ids) and len(set(ids)) == 3
    assert stamps == sorted(stamps) and len(set(stamps)) == 3


@pytest.mark.asyncio
async def test_image_only_message_is_accepted(connect, backend):
    ws, h = await _authed(connect, 1)

    await h.handle_text(send(type="message", receiverId=2, content="", imageData="data:image/png;base64,AAAA"))

    [sent] = ws.of_type("message_sent")
    assert sent["message"]["imageData"] == "data:image/png;base64,AAAA"
    assert sent["message"]["content"] == ""


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "frame",
    [
        send(type="message", receiverId=2, content=""),
        send(type="message", receiverId=2, content="x" * 21),
        send(type="message", content="no receiver"),
        send(type="message", receiverId=0, content="zero"),
        send(type="message", receiverId=2, content=5),
        "{not json",
        "[1, 2]",
        send(userId=1),
    ],
)
async def test_bad_frames_get_error_and_connection_survives(connect, backend, frame):
    ws, h = await _authed(connect, 1)

    await h.handle_text(frame)

    assert [f["type"] for f in ws.frames] == ["error"]
    assert ws.frames[0]["message"]
    assert h.state == Authenticated(1)
    assert len(backend.store) == 0

    await h.handle_text(send(type="message", receiverId=2, content="recovered"))
    assert len(ws.of_type("message_sent")) == 1


@pytest.mark.asyncio
async def test_reauth_same_user_rebinds(connect, registry):
    ws, h = await _authed(connect, 1)

    await h.handle_text(send(type="auth", userId=1))

    assert ws.frames == [{"type": "auth_ok", "userId": 1}]
    assert registry.lookup(1) is ws


@pytest.mark.asyncio
async def test_reauth_as_other_user_is_rejected(connect, registry):
    ws, h = await _authed(connect, 1)

    await h.handle_text(send(type="auth", userId=2))

    assert ws.frames[0]["type"] == "error"
    assert h.state == Authenticated(1)
    assert registry.lookup(2) is None


@pytest.mark.asyncio
async def test_newer_socket_replaces_older_binding(connect, registry):
    old_ws, old_h = await _authed(connect, 1)
    new_ws, _new_h = await _authed(connect, 1)
    _, h2 = await _authed(connect, 2)

    await h2.handle_text(send(type="message", receiverId=1, content="which?"))

    assert registry.lookup(1) is new_ws
    assert len(new_ws.of_type("message")) == 1
    assert old_ws.frames == []

    await old_h.close()
    assert registry.lookup(1) is new_ws


@pytest.mark.asyncio
async def test_close_unbinds_and_ignores_later_frames(connect, registry, backend):
    ws, h = await _authed(connect, 1)

    await h.close()
    await h.handle_text(send(type="message", receiverId=2, content="ghost"))

    assert h.state == Closed()
    assert 1 not in registry
    assert ws.frames == []
    assert len(backend.store) == 0


@pytest.mark.asyncio
async def test_close_before_auth(connect, registry):
    _, h = connect()

    await h.close()

    assert h.state == Closed()
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_ping_answered_in_any_open_state(connect):
    ws, h = connect()

    await h.handle_text(send(type="ping"))
    await h.handle_text(send(type="auth", userId=3))
    await h.handle_text(send(type="ping"))

    assert [f["type"] for f in ws.frames] == ["pong", "auth_ok", "pong"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "action, frame",
    [
        ("_send_message", SendMessageFrame(type="message", receiver_id=2, content="hi")),
        ("_mark_read", MarkReadFrame(type="mark_read", sender_id=2)),
        ("_reauthenticate", None),
    ],
)
async def test_authenticated_actions_refuse_without_a_user(connect, action, frame):
    _, h = connect()

    with pytest.raises(NotAuthenticatedError):
        await getattr(h, action)(frame)
