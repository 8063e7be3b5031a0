"""
messages.py
-----------
Message history and sending for a conversation. Sending also pushes the
message to connected sockets.
"""

from fastapi import APIRouter, Depends

from peerpresence.auth.verify import get_current_person_id
from peerpresence.middleware.rate_limit_dependencies import rate_limit_messages
from peerpresence.models.api.chat_request import SendMessageRequest
from peerpresence.models.api.chat_response import MessageResponse
from peerpresence.services import message_service

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/{conversation_id}", response_model=list[MessageResponse])
async def list_messages(conversation_id: str, person_id: str = Depends(get_current_person_id)):
    messages = await message_service.list_messages(conversation_id, person_id)
    return [MessageResponse.from_domain(message) for message in messages]


@router.post("/{conversation_id}", response_model=MessageResponse)
async def send_message(
    conversation_id: str,
    request: SendMessageRequest,
    person_id: str = Depends(get_current_person_id),
    _rate: None = Depends(rate_limit_messages),
):
    message = await message_service.send_message(conversation_id, person_id, request.text)
    return MessageResponse.from_domain(message)
