from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest

from peerpresence.errors import Forbidden, ValidationFailed
from peerpresence.models.domain.conversation_domain import DirectMessage
from peerpresence.repositories.message_repository import MessageRepository
from peerpresence.services import message_service
from peerpresence.services.conversation_service import start_or_get
from peerpresence.services.message_service import MAX_MESSAGE_LENGTH, normalize_text
from tests.support import PERSON_A, PERSON_B, PERSON_C, utc

SERVICE = "peerpresence.services.message_service"


def test_normalize_text_trims():
    assert normalize_text("  hi there \n") == "hi there"


@pytest.mark.parametrize("text", ["", "   ", None, "\n\t"])
def test_normalize_text_rejects_blank(text):
    with pytest.raises(ValidationFailed, match="text required"):
        normalize_text(text)


def test_normalize_text_truncates_to_limit():
    assert len(normalize_text("x" * (MAX_MESSAGE_LENGTH + 1))) == MAX_MESSAGE_LENGTH
    assert len(normalize_text("y" * MAX_MESSAGE_LENGTH)) == MAX_MESSAGE_LENGTH


def test_normalize_text_drops_nul_characters():
    assert normalize_text("hi\x00 there") == "hi there"
    with pytest.raises(ValidationFailed):
        normalize_text(" \x00 ")


def test_normalize_text_stringifies_non_strings():
    assert normalize_text(42) == "42"


@pytest.fixture
def wiring(conversation_store, monkeypatch):
    """Identity passthrough, recorded appends and a mocked realtime publish."""
    appended = []

    async def fake_append(conversation_id, sender_id, recipient_id, text):
        message = DirectMessage(
            id=f"m{len(appended)}",
            conversation_id=conversation_id,
            sender_id=sender_id,
            recipient_id=recipient_id,
            text=text,
            created_at=utc(len(appended)),
        )
        appended.append(message)
        return message

    publish = AsyncMock()
    monkeypatch.setattr(f"{SERVICE}.resolve_person_id", AsyncMock(side_effect=lambda ref: ref))
    monkeypatch.setattr(f"{SERVICE}.MessageRepository.append", fake_append)
    monkeypatch.setattr(f"{SERVICE}.gateway.publish_new_message", publish)
    return appended, publish


@pytest.mark.asyncio
async def test_send_message_persists_and_publishes(wiring):
    appended, publish = wiring
    conversation = await start_or_get(PERSON_A, PERSON_B)

    message = await message_service.send_message(conversation.id, PERSON_B, "  hello  ")

    assert message.text == "hello"
    assert message.sender_id == PERSON_B
    assert message.recipient_id == PERSON_A
    assert appended == [message]
    publish.assert_awaited_once_with(message)


@pytest.mark.asyncio
async def test_send_message_stores_truncated_text(wiring):
    appended, _ = wiring
    conversation = await start_or_get(PERSON_A, PERSON_B)

    await message_service.send_message(conversation.id, PERSON_A, "z" * 5000)

    assert len(appended[0].text) == MAX_MESSAGE_LENGTH


@pytest.mark.asyncio
async def test_outsider_cannot_send(wiring):
    appended, publish = wiring
    conversation = await start_or_get(PERSON_A, PERSON_B)

    with pytest.raises(Forbidden):
        await message_service.send_message(conversation.id, PERSON_C, "let me in")

    assert appended == []
    publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_blank_text_rejected_before_any_lookup(wiring, monkeypatch):
    appended, _ = wiring
    resolve = AsyncMock()
    monkeypatch.setattr(f"{SERVICE}.resolve_person_id", resolve)
    conversation = await start_or_get(PERSON_A, PERSON_B)

    with pytest.raises(ValidationFailed, match="text required"):
        await message_service.send_message(conversation.id, PERSON_A, "   ")

    resolve.assert_not_awaited()
    assert appended == []


@pytest.mark.asyncio
async def test_list_messages_requires_participation(wiring, monkeypatch):
    conversation = await start_or_get(PERSON_A, PERSON_B)
    listing = AsyncMock(return_value=[])
    monkeypatch.setattr(f"{SERVICE}.MessageRepository.list_for_conversation", listing)

    assert await message_service.list_messages(conversation.id, PERSON_A) == []
    listing.assert_awaited_once_with(conversation.id)

    with pytest.raises(Forbidden):
        await message_service.list_messages(conversation.id, PERSON_C)


@pytest.mark.asyncio
async def test_append_moves_activity_marker_in_same_transaction(monkeypatch):
    """The conversation update reuses the insert's connection and timestamp."""
    connection = object()
    row = {
        "id": "m1",
        "conversation_id": "c1",
        "sender_id": PERSON_A,
        "recipient_id": PERSON_B,
        "text": "hi",
        "created_at": utc(7),
    }

    @asynccontextmanager
    async def fake_transaction():
        yield connection

    fetch_one = AsyncMock(return_value=row)
    execute_query = AsyncMock(return_value=1)
    monkeypatch.setattr("peerpresence.repositories.message_repository.db_pool.transaction", fake_transaction)
    monkeypatch.setattr("peerpresence.repositories.message_repository.fetch_one", fetch_one)
    monkeypatch.setattr("peerpresence.repositories.message_repository.execute_query", execute_query)

    message = await MessageRepository.append("c1", PERSON_A, PERSON_B, "hi")

    assert message.created_at == utc(7)
    assert fetch_one.await_args.kwargs["connection"] is connection
    touch_query, params = execute_query.await_args.args
    assert "GREATEST(last_message_at" in touch_query
    assert "WHEN last_message_at IS NULL OR %(created_at)s >= last_message_at" in touch_query
    assert params == {"created_at": utc(7), "text": "hi", "conversation_id": "c1"}
    assert execute_query.await_args.kwargs["connection"] is connection
