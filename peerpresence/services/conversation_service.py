"""
Conversation service.

One conversation per unordered pair of persons. Callers may pass raw
references (Person or TutorListing ids); everything stored is a Person id.
"""

from peerpresence.errors import Forbidden, NotFound, ValidationFailed
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.domain.conversation_domain import (
    Conversation,
    ConversationSummary,
    PeerDisplay,
)
from peerpresence.repositories.conversation_repository import ConversationRepository
from peerpresence.repositories.person_repository import PersonRepository
from peerpresence.repositories.tutor_repository import TutorRepository
from peerpresence.services.identity_service import parse_id, resolve_person_id

logger = get_logger(__name__)


def participants_key(person_a: str, person_b: str) -> str:
    """Order-independent key for a pair of distinct person ids."""
    if person_a == person_b:
        raise ValidationFailed("Conversation must have exactly two distinct participants.")
    low, high = sorted((person_a, person_b))
    return f"{low}:{high}"


async def start_or_get(person_a: str, person_b: str) -> Conversation:
    """
    Return the pair's conversation, creating it if needed.

    Safe under concurrency: the insert is conflict-tolerant, and a caller
    that loses the race reads the winner's row.
    """
    key = participants_key(person_a, person_b)

    existing = await ConversationRepository.get_by_key(key)
    if existing:
        return existing

    low, high = sorted((person_a, person_b))
    created = await ConversationRepository.insert_if_absent(low, high, key)
    if created:
        return created

    existing = await ConversationRepository.get_by_key(key)
    if existing is None:
        # Row vanished between the conflict and the read (participant deleted)
        raise NotFound("Conversation not found")
    return existing


async def start_conversation(requester_ref: str, peer_ref) -> Conversation:
    if not peer_ref:
        raise ValidationFailed("userId required")

    me = await resolve_person_id(requester_ref)
    peer = await resolve_person_id(peer_ref)
    conversation = await start_or_get(me, peer)

    logger.info("Conversation started", conversation_id=conversation.id, person_id=me, peer_id=peer)
    return conversation


async def list_for_person(person_id: str) -> list[ConversationSummary]:
    """
    Inbox for a person: one entry per peer, most recently active first.

    The peer is displayed with its tutor listing branding when one is linked,
    otherwise with the person's own profile.
    """
    conversations = await ConversationRepository.list_for_person(person_id)
    conversations.sort(key=lambda c: c.last_message_at, reverse=True)

    by_peer: dict[str, Conversation] = {}
    for conversation in conversations:
        peer_id = conversation.other_participant(person_id)
        if peer_id not in by_peer:
            by_peer[peer_id] = conversation

    people = await PersonRepository.get_many(by_peer.keys())
    listings = await TutorRepository.find_by_person_ids(by_peer.keys())

    summaries = []
    for peer_id, conversation in by_peer.items():
        summaries.append(
            ConversationSummary(
                conversation=conversation,
                peer=_peer_display(peer_id, people.get(peer_id), listings.get(peer_id)),
            )
        )
    return summaries


def _peer_display(peer_id: str, person, listing) -> PeerDisplay:
    name = (listing and listing.name) or (person and person.name) or "User"
    avatar = (listing and listing.avatar) or (person and person.avatar_url) or ""
    return PeerDisplay(id=peer_id, name=name, avatar=avatar)


async def get_for_participant(conversation_id: str, person_id: str) -> Conversation:
    """Load a conversation the person takes part in."""
    conversation_id = parse_id(conversation_id, "Invalid conversation id")

    conversation = await ConversationRepository.get(conversation_id)
    if conversation is None:
        raise NotFound("Conversation not found")
    if not conversation.has_participant(person_id):
        raise Forbidden("Not a participant in this conversation")
    return conversation


async def archive(conversation_id: str, person_id: str) -> None:
    """Hide the conversation from the person's inbox until the next message."""
    conversation = await get_for_participant(conversation_id, person_id)
    changed = await ConversationRepository.archive(conversation.id, person_id)
    logger.info(
        "Conversation archived",
        conversation_id=conversation.id,
        person_id=person_id,
        changed=changed,
    )
