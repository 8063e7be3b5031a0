from fastapi import APIRouter

from peerpresence.models.api.chat_response import GlobalMessageResponse
from peerpresence.repositories.message_repository import GlobalMessageRepository

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/messages", response_model=list[GlobalMessageResponse])
async def global_messages():
    """Legacy single-room chat log, oldest first."""
    return [GlobalMessageResponse.from_domain(m) for m in await GlobalMessageRepository.list_all()]
