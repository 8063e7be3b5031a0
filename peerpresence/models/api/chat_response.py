"""
Conversation and message response models.
"""

from datetime import datetime

from pydantic import Field

from peerpresence.models.api.base import ApiModel
from peerpresence.models.domain.conversation_domain import (
    Conversation,
    ConversationSummary,
    DirectMessage,
    GlobalMessage,
)


class ConversationResponse(ApiModel):
    id: str
    participants: list[str]
    last_message_at: datetime
    last_message_text: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, conversation: Conversation) -> "ConversationResponse":
        return cls(
            id=conversation.id,
            participants=list(conversation.participants),
            last_message_at=conversation.last_message_at,
            last_message_text=conversation.last_message_text,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )


class PeerResponse(ApiModel):
    id: str
    name: str
    avatar: str = ""


class ConversationSummaryResponse(ConversationResponse):
    peer: PeerResponse

    @classmethod
    def from_summary(cls, summary: ConversationSummary) -> "ConversationSummaryResponse":
        base = ConversationResponse.from_domain(summary.conversation)
        return cls(
            **base.model_dump(),
            peer=PeerResponse(**summary.peer.model_dump()),
        )


class MessageResponse(ApiModel):
    id: str
    conversation_id: str
    sender: str = Field(alias="from")
    recipient: str = Field(alias="to")
    text: str
    created_at: datetime

    @classmethod
    def from_domain(cls, message: DirectMessage) -> "MessageResponse":
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            sender=message.sender_id,
            recipient=message.recipient_id,
            text=message.text,
            created_at=message.created_at,
        )


class GlobalMessageResponse(ApiModel):
    id: str
    sender: str
    text: str
    timestamp: str = ""
    created_at: datetime

    @classmethod
    def from_domain(cls, message: GlobalMessage) -> "GlobalMessageResponse":
        return cls(**message.model_dump())
