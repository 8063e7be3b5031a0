from unittest.mock import AsyncMock

import pytest

from peerpresence.models.domain.conversation_domain import DirectMessage, GlobalMessage
from peerpresence.realtime import gateway
from peerpresence.realtime.presence import presence
from tests.support import CONVERSATION_ID, PERSON_A, PERSON_B, utc


@pytest.fixture
def sio(monkeypatch):
    """Socket.IO server calls recorded; sessions kept in a dict."""
    sessions = {}

    async def save_session(sid, session):
        sessions[sid] = session

    async def get_session(sid):
        return sessions.get(sid, {})

    monkeypatch.setattr(gateway.sio, "emit", AsyncMock())
    monkeypatch.setattr(gateway.sio, "enter_room", AsyncMock())
    monkeypatch.setattr(gateway.sio, "leave_room", AsyncMock())
    monkeypatch.setattr(gateway.sio, "save_session", save_session)
    monkeypatch.setattr(gateway.sio, "get_session", get_session)
    presence.clear()
    yield gateway.sio
    presence.clear()


def _environ(query: str) -> dict:
    return {"asgi.scope": {"query_string": query.encode()}}


def test_extract_person_ref_prefers_query():
    assert gateway._extract_person_ref(_environ(f"userId={PERSON_A}&EIO=4"), {"userId": PERSON_B}) == PERSON_A


def test_extract_person_ref_falls_back_to_auth():
    assert gateway._extract_person_ref(_environ("EIO=4"), {"userId": PERSON_B}) == PERSON_B
    assert gateway._extract_person_ref(_environ(""), None) is None


@pytest.mark.asyncio
async def test_connect_registers_presence_and_personal_room(sio, monkeypatch):
    monkeypatch.setattr(gateway, "try_resolve_person_id", AsyncMock(return_value=PERSON_A))

    await gateway.connect("sid-1", _environ(f"userId={PERSON_A}"))

    sio.enter_room.assert_awaited_once_with("sid-1", f"user:{PERSON_A}")
    sio.emit.assert_awaited_once_with("presence:update", [PERSON_A])
    assert presence.is_online(PERSON_A)


@pytest.mark.asyncio
async def test_unresolved_socket_stays_connected_without_presence(sio, monkeypatch):
    monkeypatch.setattr(gateway, "try_resolve_person_id", AsyncMock(return_value=None))

    await gateway.connect("sid-1", _environ("userId=somebody"))
    await gateway.disconnect("sid-1")

    sio.enter_room.assert_not_awaited()
    sio.emit.assert_not_awaited()
    assert presence.online_ids() == []


@pytest.mark.asyncio
async def test_identity_lookup_error_does_not_refuse_connection(sio, monkeypatch):
    monkeypatch.setattr(gateway, "try_resolve_person_id", AsyncMock(side_effect=RuntimeError("db down")))

    await gateway.connect("sid-1", _environ(f"userId={PERSON_A}"))

    assert presence.online_ids() == []


@pytest.mark.asyncio
async def test_second_tab_keeps_person_online(sio, monkeypatch):
    monkeypatch.setattr(gateway, "try_resolve_person_id", AsyncMock(return_value=PERSON_A))

    await gateway.connect("sid-1", _environ(f"userId={PERSON_A}"))
    await gateway.connect("sid-2", _environ(f"userId={PERSON_A}"))
    await gateway.disconnect("sid-1")
    assert presence.is_online(PERSON_A)

    await gateway.disconnect("sid-2", "client disconnect")
    assert not presence.is_online(PERSON_A)
    sio.emit.assert_awaited_with("presence:update", [])


@pytest.mark.asyncio
async def test_join_and_leave_conversation_room(sio):
    await gateway.join("sid-1", {"conversationId": CONVERSATION_ID})
    await gateway.leave("sid-1", {"conversationId": CONVERSATION_ID})
    await gateway.join("sid-1", "garbage")

    sio.enter_room.assert_awaited_once_with("sid-1", CONVERSATION_ID)
    sio.leave_room.assert_awaited_once_with("sid-1", CONVERSATION_ID)


@pytest.mark.asyncio
async def test_typing_relayed_to_room_except_sender(sio):
    await gateway.typing("sid-1", {"conversationId": CONVERSATION_ID, "from": PERSON_A, "isTyping": True})

    sio.emit.assert_awaited_once_with(
        "typing",
        {"conversationId": CONVERSATION_ID, "from": PERSON_A, "isTyping": True},
        to=CONVERSATION_ID,
        skip_sid="sid-1",
    )


@pytest.mark.asyncio
async def test_chat_message_persisted_and_broadcast(sio, monkeypatch):
    saved = GlobalMessage(id="g1", sender="Sam", text="hi all", timestamp="10:00", created_at=utc())
    create = AsyncMock(return_value=saved)
    monkeypatch.setattr(gateway.GlobalMessageRepository, "create", create)

    await gateway.chat_message("sid-1", {"sender": "Sam", "text": "hi all", "timestamp": "10:00"})

    create.assert_awaited_once_with(sender="Sam", text="hi all", timestamp="10:00")
    event, payload = sio.emit.await_args.args
    assert event == "chat message"
    assert payload["sender"] == "Sam"
    assert payload["createdAt"].startswith("2024-05-01T12:00:00")


@pytest.mark.asyncio
async def test_chat_message_store_failure_is_swallowed(sio, monkeypatch):
    monkeypatch.setattr(gateway.GlobalMessageRepository, "create", AsyncMock(side_effect=RuntimeError("db down")))

    await gateway.chat_message("sid-1", {"text": "hello"})

    sio.emit.assert_not_awaited()


def _message() -> DirectMessage:
    return DirectMessage(
        id="m1",
        conversation_id=CONVERSATION_ID,
        sender_id=PERSON_A,
        recipient_id=PERSON_B,
        text="hey",
        created_at=utc(3),
    )


@pytest.mark.asyncio
async def test_publish_new_message_fans_out(sio):
    await gateway.publish_new_message(_message())

    thread_call, notify_call = sio.emit.await_args_list
    assert thread_call.args[0] == "message:new"
    assert thread_call.kwargs["to"] == CONVERSATION_ID
    assert thread_call.args[1]["from"] == PERSON_A
    assert thread_call.args[1]["to"] == PERSON_B
    assert thread_call.args[1]["conversationId"] == CONVERSATION_ID

    assert notify_call.args[0] == "notify:dm"
    assert notify_call.kwargs["to"] == f"user:{PERSON_B}"
    assert notify_call.args[1] == {
        "conversationId": CONVERSATION_ID,
        "from": PERSON_A,
        "text": "hey",
        "createdAt": utc(3).isoformat(),
    }


@pytest.mark.asyncio
async def test_publish_failure_does_not_raise(sio):
    sio.emit.side_effect = ConnectionError("no transport")

    await gateway.publish_new_message(_message())
