from unittest.mock import AsyncMock

from peerpresence.models.domain.conversation_domain import Conversation, DirectMessage
from tests.support import CONVERSATION_ID, PERSON_A, PERSON_B, utc

LIMITER = "peerpresence.middleware.rate_limit_dependencies.rate_limiter.check"


def _conversation() -> Conversation:
    return Conversation(
        id=CONVERSATION_ID,
        participants=(PERSON_A, PERSON_B),
        participants_key=f"{PERSON_A}:{PERSON_B}",
        last_message_at=utc(),
    )


def _message() -> DirectMessage:
    return DirectMessage(
        id="m1",
        conversation_id=CONVERSATION_ID,
        sender_id=PERSON_A,
        recipient_id=PERSON_B,
        text="hi",
        created_at=utc(),
    )


def test_allowed_request_carries_limit_headers(client, monkeypatch):
    monkeypatch.setattr(
        LIMITER,
        AsyncMock(return_value=(True, {"allowed": True, "limit": 120, "remaining": 119, "retry_after": None})),
    )
    monkeypatch.setattr(
        "peerpresence.routes.conversations.conversation_service.start_conversation",
        AsyncMock(return_value=_conversation()),
    )

    response = client.post("/api/conversations/start", json={"userId": PERSON_B})

    assert response.status_code == 200
    assert response.headers["X-RateLimit-Limit"] == "120"
    assert response.headers["X-RateLimit-Remaining"] == "119"
    assert "Retry-After" not in response.headers


def test_exceeded_limit_is_429_with_retry_after(client, monkeypatch):
    check = AsyncMock(return_value=(False, {"allowed": False, "limit": 30, "remaining": 0, "retry_after": 17}))
    send = AsyncMock()
    monkeypatch.setattr(LIMITER, check)
    monkeypatch.setattr("peerpresence.routes.messages.message_service.send_message", send)

    response = client.post(f"/api/messages/{CONVERSATION_ID}", json={"text": "spam"})

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "17"
    assert response.json() == {"message": "Too many requests. Try again in 17 seconds."}
    send.assert_not_awaited()


def test_message_budget_keyed_by_person(client, monkeypatch):
    check = AsyncMock(return_value=(True, {"allowed": True, "limit": 30, "remaining": 29, "retry_after": None}))
    monkeypatch.setattr(LIMITER, check)
    monkeypatch.setattr(
        "peerpresence.routes.messages.message_service.send_message", AsyncMock(return_value=_message())
    )

    client.post(f"/api/messages/{CONVERSATION_ID}", json={"text": "hi"})

    keys = [call.args[0] for call in check.await_args_list]
    assert f"messages:{PERSON_A}" in keys
    assert any(key.startswith("ip:") for key in keys)


def test_disabled_rate_limiting_skips_checks(client, monkeypatch):
    check = AsyncMock()
    monkeypatch.setattr(LIMITER, check)
    monkeypatch.setattr("peerpresence.middleware.rate_limit_dependencies.settings.RATE_LIMIT_ENABLED", False)
    monkeypatch.setattr(
        "peerpresence.routes.conversations.conversation_service.start_conversation",
        AsyncMock(return_value=_conversation()),
    )

    response = client.post("/api/conversations/start", json={"userId": PERSON_B})

    assert response.status_code == 200
    check.assert_not_awaited()
    assert "X-RateLimit-Limit" not in response.headers
