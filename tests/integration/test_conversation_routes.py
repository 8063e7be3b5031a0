from unittest.mock import AsyncMock

from peerpresence.errors import Forbidden, ValidationFailed
from peerpresence.models.domain.conversation_domain import (
    Conversation,
    ConversationSummary,
    DirectMessage,
    PeerDisplay,
)
from tests.support import CONVERSATION_ID, PERSON_A, PERSON_B, utc

CONVERSATIONS = "peerpresence.routes.conversations.conversation_service"
MESSAGES = "peerpresence.routes.messages.message_service"


def _conversation() -> Conversation:
    return Conversation(
        id=CONVERSATION_ID,
        participants=(PERSON_A, PERSON_B),
        participants_key=f"{PERSON_A}:{PERSON_B}",
        last_message_at=utc(),
        last_message_text="see you",
    )


def test_start_conversation(client, monkeypatch):
    start = AsyncMock(return_value=_conversation())
    monkeypatch.setattr(f"{CONVERSATIONS}.start_conversation", start)

    response = client.post("/api/conversations/start", json={"userId": PERSON_B})

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == CONVERSATION_ID
    assert body["participants"] == [PERSON_A, PERSON_B]
    assert body["lastMessageText"] == "see you"
    start.assert_awaited_once_with(PERSON_A, PERSON_B)


def test_start_conversation_without_peer(client, monkeypatch):
    monkeypatch.setattr(
        f"{CONVERSATIONS}.start_conversation", AsyncMock(side_effect=ValidationFailed("userId required"))
    )

    response = client.post("/api/conversations/start", json={})

    assert response.status_code == 400
    assert response.json() == {"message": "userId required"}


def test_start_conversation_requires_token(anonymous_client):
    response = anonymous_client.post("/api/conversations/start", json={"userId": PERSON_B})

    assert response.status_code == 401
    assert response.json() == {"message": "No token"}


def test_inbox(client, monkeypatch):
    summary = ConversationSummary(
        conversation=_conversation(), peer=PeerDisplay(id=PERSON_B, name="Dr. Bea", avatar="bea.png")
    )
    monkeypatch.setattr(f"{CONVERSATIONS}.list_for_person", AsyncMock(return_value=[summary]))

    response = client.get("/api/conversations/mine")

    assert response.status_code == 200
    [entry] = response.json()
    assert entry["peer"] == {"id": PERSON_B, "name": "Dr. Bea", "avatar": "bea.png"}
    assert entry["lastMessageAt"].startswith("2024-05-01T12:00:00")


def test_archive(client, monkeypatch):
    archive = AsyncMock()
    monkeypatch.setattr(f"{CONVERSATIONS}.archive", archive)

    response = client.delete(f"/api/conversations/{CONVERSATION_ID}")

    assert response.status_code == 200
    assert response.json()["ok"] is True
    archive.assert_awaited_once_with(CONVERSATION_ID, PERSON_A)


def test_archive_forbidden(client, monkeypatch):
    monkeypatch.setattr(
        f"{CONVERSATIONS}.archive", AsyncMock(side_effect=Forbidden("Not a participant in this conversation"))
    )

    response = client.delete(f"/api/conversations/{CONVERSATION_ID}")

    assert response.status_code == 403


def _message(text: str = "hello") -> DirectMessage:
    return DirectMessage(
        id="m1",
        conversation_id=CONVERSATION_ID,
        sender_id=PERSON_A,
        recipient_id=PERSON_B,
        text=text,
        created_at=utc(1),
    )


def test_send_message(client, monkeypatch):
    send = AsyncMock(return_value=_message())
    monkeypatch.setattr(f"{MESSAGES}.send_message", send)

    response = client.post(f"/api/messages/{CONVERSATION_ID}", json={"text": "hello"})

    assert response.status_code == 200
    body = response.json()
    assert body["from"] == PERSON_A
    assert body["to"] == PERSON_B
    assert body["conversationId"] == CONVERSATION_ID
    send.assert_awaited_once_with(CONVERSATION_ID, PERSON_A, "hello")


def test_send_message_missing_text_uses_domain_message(client, monkeypatch):
    monkeypatch.setattr(f"{MESSAGES}.send_message", AsyncMock(side_effect=ValidationFailed("text required")))

    response = client.post(f"/api/messages/{CONVERSATION_ID}", json={})

    assert response.status_code == 400
    assert response.json() == {"message": "text required"}


def test_message_history(client, monkeypatch):
    monkeypatch.setattr(
        f"{MESSAGES}.list_messages", AsyncMock(return_value=[_message("first"), _message("second")])
    )

    response = client.get(f"/api/messages/{CONVERSATION_ID}")

    assert [m["text"] for m in response.json()] == ["first", "second"]


def test_global_chat_log(client, monkeypatch):
    monkeypatch.setattr(
        "peerpresence.routes.chat.GlobalMessageRepository.list_all", AsyncMock(return_value=[])
    )

    response = client.get("/api/chat/messages")

    assert response.status_code == 200
    assert response.json() == []
