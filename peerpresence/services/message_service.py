"""
Direct message service: validation, persistence and realtime fan-out.
"""

from peerpresence.errors import ValidationFailed
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.conversation_domain import DirectMessage
from peerpresence.realtime import gateway
from peerpresence.repositories.message_repository import MessageRepository
from peerpresence.services.conversation_service import get_for_participant
from peerpresence.services.identity_service import parse_id, resolve_person_id

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 4000


def normalize_text(text) -> str:
    """Drop NUL characters, trim, reject empty, cut anything past MAX_MESSAGE_LENGTH."""
    cleaned = str(text or "").replace("\x00", "").strip()
    if not cleaned:
        raise ValidationFailed("text required")
    return cleaned[:MAX_MESSAGE_LENGTH]


async def send_message(conversation_id: str, sender_ref: str, text) -> DirectMessage:
    conversation_id = parse_id(conversation_id, "Invalid conversation id")
    body = normalize_text(text)

    sender_id = await resolve_person_id(sender_ref)
    conversation = await get_for_participant(conversation_id, sender_id)
    recipient_id = conversation.other_participant(sender_id)

    message = await MessageRepository.append(conversation.id, sender_id, recipient_id, body)
    await gateway.publish_new_message(message)
    return message


async def list_messages(conversation_id: str, requester_ref: str) -> list[DirectMessage]:
    conversation_id = parse_id(conversation_id, "Invalid conversation id")

    requester_id = await resolve_person_id(requester_ref)
    conversation = await get_for_participant(conversation_id, requester_id)
    return await MessageRepository.list_for_conversation(conversation.id)
