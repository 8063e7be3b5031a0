"""
Conversation and message request models.
"""

from typing import Any

from pydantic import Field

from peerpresence.models.api.base import ApiModel


class StartConversationRequest(ApiModel):
    """Peer may be a Person id or a TutorListing id."""

    user_id: str | None = Field(default=None, description="Peer reference")


class SendMessageRequest(ApiModel):
    # Kept loose so an empty or missing text gets the domain error message
    text: Any = Field(default=None, description="Message body, trimmed and capped")
