import asyncio
from datetime import UTC, datetime, timedelta

from peerpresence.models.domain.conversation_domain import Conversation

PERSON_A = "11111111-1111-4111-8111-111111111111"
PERSON_B = "22222222-2222-4222-8222-222222222222"
PERSON_C = "33333333-3333-4333-8333-333333333333"
LISTING_ID = "44444444-4444-4444-8444-444444444444"
CONVERSATION_ID = "55555555-5555-4555-8555-555555555555"


def utc(minutes: int = 0) -> datetime:
    return datetime(2024, 5, 1, 12, 0, tzinfo=UTC) + timedelta(minutes=minutes)


class FakeConversationStore:
    """
    In-memory stand-in for ConversationRepository.

    Yields to the event loop between reads and writes so concurrent callers
    interleave, and enforces key uniqueness like the database constraint.
    """

    def __init__(self):
        self.rows: dict[str, Conversation] = {}
        self.inserts = 0

    async def get_by_key(self, participants_key: str) -> Conversation | None:
        await asyncio.sleep(0)
        return self.rows.get(participants_key)

    async def insert_if_absent(self, participant_a, participant_b, participants_key):
        await asyncio.sleep(0)
        if participants_key in self.rows:
            return None
        self.inserts += 1
        conversation = Conversation(
            id=f"00000000-0000-4000-8000-{self.inserts:012d}",
            participants=(participant_a, participant_b),
            participants_key=participants_key,
            last_message_at=utc(self.inserts),
        )
        self.rows[participants_key] = conversation
        return conversation

    async def get(self, conversation_id: str) -> Conversation | None:
        return next((c for c in self.rows.values() if c.id == conversation_id), None)

    async def list_for_person(self, person_id: str) -> list[Conversation]:
        return [
            c
            for c in self.rows.values()
            if c.has_participant(person_id) and person_id not in c.archived_by
        ]

    async def archive(self, conversation_id: str, person_id: str) -> bool:
        conversation = await self.get(conversation_id)
        if conversation is None or person_id in conversation.archived_by:
            return False
        conversation.archived_by.append(person_id)
        return True
