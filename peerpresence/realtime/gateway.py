"""Socket.IO gateway for direct messaging.

Client conventions:
- Socket.IO path: settings.SOCKETIO_PATH (default /socket.io)
- Identity: `query.userId` (Person or TutorListing id), `auth.userId` as fallback
- Rooms: `user:<personId>` for notifications, `<conversationId>` for a thread

A socket whose reference does not resolve stays connected but gets no
presence entry and no personal room. Room joins are not checked against
conversation membership.
"""

from typing import Any
from urllib.parse import parse_qs

import socketio

from peerpresence.config import settings
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.models.api.chat_response import GlobalMessageResponse, MessageResponse
from peerpresence.models.domain.conversation_domain import DirectMessage
from peerpresence.realtime.presence import presence
from peerpresence.repositories.message_repository import GlobalMessageRepository
from peerpresence.services.identity_service import try_resolve_person_id

logger = get_logger(__name__)


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=settings.CORS_ALLOWED_ORIGINS,
    logger=False,
    engineio_logger=False,
)


def room_for_person(person_id: str) -> str:
    return f"user:{person_id}"


def _extract_person_ref(environ: dict[str, Any], auth: Any | None) -> str | None:
    scope: Any = environ
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            scope = inner

    query_string: str | bytes = ""
    if isinstance(scope, dict) and "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif isinstance(scope, dict) and "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    ref = parse_qs(str(query_string)).get("userId", [None])[0]
    if isinstance(ref, str) and ref:
        return ref

    if isinstance(auth, dict):
        auth_ref = auth.get("userId")
        if isinstance(auth_ref, str) and auth_ref:
            return auth_ref

    return None


def _conversation_room(data: Any) -> str | None:
    if isinstance(data, dict) and data.get("conversationId"):
        return str(data["conversationId"])
    return None


async def _broadcast_presence() -> None:
    await sio.emit("presence:update", presence.online_ids())


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
    raw_ref = _extract_person_ref(environ, auth)

    person_id = None
    if raw_ref:
        try:
            person_id = await try_resolve_person_id(raw_ref)
        except Exception:
            logger.exception("Socket identity lookup failed", sid=sid)

    await sio.save_session(sid, {"person_id": person_id})
    logger.info("Socket connected", sid=sid, person_id=person_id)

    if person_id is None:
        return

    presence.add(person_id)
    await sio.enter_room(sid, room_for_person(person_id))
    await _broadcast_presence()


@sio.event
async def join(sid: str, data: Any):
    room = _conversation_room(data)
    if room:
        await sio.enter_room(sid, room)


@sio.event
async def leave(sid: str, data: Any):
    room = _conversation_room(data)
    if room:
        await sio.leave_room(sid, room)


@sio.event
async def typing(sid: str, data: Any):
    room = _conversation_room(data)
    if not room:
        return

    payload = {
        "conversationId": data.get("conversationId"),
        "from": data.get("from"),
        "isTyping": data.get("isTyping"),
    }
    await sio.emit("typing", payload, to=room, skip_sid=sid)


@sio.on("chat message")
async def chat_message(sid: str, data: Any):
    """Legacy single-room chat: persist, then broadcast to every socket."""
    payload = data if isinstance(data, dict) else {}
    try:
        saved = await GlobalMessageRepository.create(
            sender=payload.get("sender") or "User",
            text=payload.get("text") or "",
            timestamp=payload.get("timestamp") or "",
        )
        await sio.emit(
            "chat message",
            GlobalMessageResponse.from_domain(saved).model_dump(mode="json", by_alias=True),
        )
    except Exception as e:
        logger.warning("Error saving live-chat message", sid=sid, error=str(e))


@sio.event
async def disconnect(sid: str, reason: Any = None):
    session = await sio.get_session(sid)
    person_id = session.get("person_id") if isinstance(session, dict) else None
    logger.info("Socket disconnected", sid=sid, person_id=person_id)

    if person_id is None:
        return

    presence.remove(person_id)
    await _broadcast_presence()


async def publish_new_message(message: DirectMessage) -> None:
    """Fan a stored message out to its thread and to the recipient's personal room."""
    try:
        await sio.emit(
            "message:new",
            MessageResponse.from_domain(message).model_dump(mode="json", by_alias=True),
            to=message.conversation_id,
        )
        await sio.emit(
            "notify:dm",
            {
                "conversationId": message.conversation_id,
                "from": message.sender_id,
                "text": message.text,
                "createdAt": message.created_at.isoformat(),
            },
            to=room_for_person(message.recipient_id),
        )
    except Exception as e:
        logger.warning(
            "Realtime fan-out failed",
            message_id=message.id,
            conversation_id=message.conversation_id,
            error=str(e),
        )
