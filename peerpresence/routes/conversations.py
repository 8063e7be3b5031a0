"""
conversations.py
----------------
Direct-message threads for the authenticated person.

Usage:
    1. POST /api/conversations/start - start or reopen a thread with a peer
       (peer may be a Person id or a TutorListing id)
    2. GET /api/conversations/mine - inbox, one entry per peer
    3. DELETE /api/conversations/{id} - hide a thread until the next message
"""

from fastapi import APIRouter, Depends

from peerpresence.auth.verify import get_current_person_id
from peerpresence.middleware.rate_limit_dependencies import rate_limit_person
from peerpresence.models.api.base import OkResponse
from peerpresence.models.api.chat_request import StartConversationRequest
from peerpresence.models.api.chat_response import (
    ConversationResponse,
    ConversationSummaryResponse,
)
from peerpresence.services import conversation_service

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.post("/start", response_model=ConversationResponse)
async def start_conversation(
    request: StartConversationRequest,
    person_id: str = Depends(get_current_person_id),
    _rate: None = Depends(rate_limit_person),
):
    conversation = await conversation_service.start_conversation(person_id, request.user_id)
    return ConversationResponse.from_domain(conversation)


@router.get("/mine", response_model=list[ConversationSummaryResponse])
async def my_conversations(person_id: str = Depends(get_current_person_id)):
    summaries = await conversation_service.list_for_person(person_id)
    return [ConversationSummaryResponse.from_summary(summary) for summary in summaries]


@router.delete("/{conversation_id}", response_model=OkResponse)
async def archive_conversation(conversation_id: str, person_id: str = Depends(get_current_person_id)):
    await conversation_service.archive(conversation_id, person_id)
    return OkResponse()
