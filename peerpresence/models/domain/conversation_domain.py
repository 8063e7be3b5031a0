from datetime import datetime

from pydantic import BaseModel, Field


class Conversation(BaseModel):
    """
    Two-party dialogue between canonical person ids.

    ``participants`` is always stored sorted, and ``participants_key`` is the
    ``"min:max"`` join of it, which the database keeps unique.
    """

    id: str
    participants: tuple[str, str]
    participants_key: str
    last_message_at: datetime
    last_message_text: str = ""
    archived_by: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def has_participant(self, person_id: str) -> bool:
        return person_id in self.participants

    def other_participant(self, person_id: str) -> str:
        a, b = self.participants
        return b if a == person_id else a


class PeerDisplay(BaseModel):
    """How the other side of a conversation is shown in the inbox."""

    id: str
    name: str
    avatar: str = ""


class ConversationSummary(BaseModel):
    conversation: Conversation
    peer: PeerDisplay


class DirectMessage(BaseModel):
    """Immutable text message inside a conversation."""

    id: str
    conversation_id: str
    sender_id: str
    recipient_id: str
    text: str
    created_at: datetime


class GlobalMessage(BaseModel):
    """Entry of the legacy single-room chat log."""

    id: str
    sender: str
    text: str
    timestamp: str = ""
    created_at: datetime
