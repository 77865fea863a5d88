"""
SkillSwap Backend — Chat Routes (REST + WebSocket)
====================================================

What:  Direct messaging between users.
How:   Messages are always committed first; pushing them to an online
       recipient through the presence registry is best-effort on top, so
       a recipient never sees a message that is later rolled back.

Route Inventory:
    POST /api/chat/send        store a message (201), push to recipient if online
    GET  /api/chat/{userId}    conversation with a user, oldest first
    WS   /ws/chat?token=<jwt>  live channel

WebSocket protocol:
    client → server  {"recipientId": "<uuid>", "content": "hi"}
    server → both    {"event": "chat_message", "data": <message>}
    server → sender  {"event": "error", "error": "Failed to send message"}

    The token travels in the query string because browsers cannot set an
    Authorization header on a WebSocket handshake. An invalid token closes
    the socket with 1008 (policy violation) before it is accepted.
"""

import logging
from typing import Any, Callable, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.database import async_session_factory, get_db_session
from skillswap.dependencies import get_current_user, load_user_from_token
from skillswap.exceptions import AuthenticationError, SkillSwapError
from skillswap.models.user import User
from skillswap.schemas.common import ErrorResponse
from skillswap.schemas.message import ChatMessageResponse, MessageCreate
from skillswap.services.message_service import message_service
from skillswap.services.presence import DeliveryHandle, presence_registry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])

CHAT_MESSAGE_EVENT = "chat_message"
CHAT_ERROR_EVENT = "error"


def chat_event(message: ChatMessageResponse) -> dict:
    return {
        "event": CHAT_MESSAGE_EVENT,
        "data": message.model_dump(mode="json", by_alias=True),
    }


# ── REST ──────────────────────────────────────────────────────────────────

@router.post(
    "/api/chat/send",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Blank content or message to self", "model": ErrorResponse},
        404: {"description": "Recipient not found", "model": ErrorResponse},
    },
)
async def send_message(
    payload: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ChatMessageResponse:
    message = await message_service.send_message(
        db, current_user, payload.recipient_id, payload.content
    )
    response = ChatMessageResponse.model_validate(message)
    # Push only once the row is durable
    await db.commit()
    await presence_registry.deliver(payload.recipient_id, chat_event(response))
    return response


@router.get("/api/chat/{user_id}", response_model=List[ChatMessageResponse])
async def get_conversation(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ChatMessageResponse]:
    messages = await message_service.get_conversation(db, current_user.id, user_id)
    return [ChatMessageResponse.model_validate(m) for m in messages]


# ── WebSocket ─────────────────────────────────────────────────────────────

async def handle_chat_frame(
    socket: DeliveryHandle,
    sender_id: UUID,
    frame: Any,
    session_factory: Optional[Callable[[], AsyncSession]] = None,
) -> bool:
    """
    Persist one incoming frame and fan it out. Returns whether it was stored.

    Each frame gets its own session and transaction; a bad frame only
    produces an error event for the sender and the socket stays open.
    """
    try:
        payload = MessageCreate.model_validate(frame)
        async with (session_factory or async_session_factory)() as db:
            sender = await db.get(User, sender_id)
            if sender is None:
                raise AuthenticationError(message="User not found")
            message = await message_service.send_message(
                db, sender, payload.recipient_id, payload.content
            )
            response = ChatMessageResponse.model_validate(message)
            await db.commit()
    except (SchemaValidationError, SkillSwapError) as exc:
        logger.info("Chat frame from %s rejected: %s", sender_id, type(exc).__name__)
        await socket.send_json({"event": CHAT_ERROR_EVENT, "error": "Failed to send message"})
        return False
    except SQLAlchemyError as exc:
        logger.error("Chat frame from %s failed to persist: %s", sender_id, str(exc))
        await socket.send_json({"event": CHAT_ERROR_EVENT, "error": "Failed to send message"})
        return False

    event = chat_event(response)
    await presence_registry.deliver(payload.recipient_id, event)
    await socket.send_json(event)
    return True


@router.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket, token: str = Query(default="")) -> None:
    async with async_session_factory() as db:
        try:
            user = await load_user_from_token(db, token)
        except AuthenticationError:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        user_id = user.id

    await websocket.accept()
    presence_registry.register(user_id, websocket)
    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except ValueError:
                await websocket.send_json(
                    {"event": CHAT_ERROR_EVENT, "error": "Failed to send message"}
                )
                continue
            await handle_chat_frame(websocket, user_id, frame)
    except WebSocketDisconnect:
        pass
    finally:
        presence_registry.unregister(user_id, websocket)
