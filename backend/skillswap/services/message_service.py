"""
SkillSwap Backend — Message Service
=====================================

What:  Stores direct messages and reads back a conversation between two users.
Why:   The message table is the source of truth for chat; real-time delivery
       (services/presence.py) is a best-effort notification layered on top.
Who:   Called by the /api/chat REST routes and the /ws/chat socket handler.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.exceptions import NotFoundError, ValidationError
from skillswap.models.message import Message
from skillswap.models.user import User

logger = logging.getLogger(__name__)


class MessageService:

    async def send_message(
        self,
        db: AsyncSession,
        sender: User,
        recipient_id: UUID,
        content: str,
    ) -> Message:
        """
        Persist a message from `sender` to `recipient_id`.

        Raises:
            ValidationError: blank content, or a message to oneself
            NotFoundError:   recipient does not exist
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError(message="Message content is required", field="content")

        if recipient_id == sender.id:
            raise ValidationError(message="Cannot send message to yourself", field="recipientId")

        recipient = await db.get(User, recipient_id)
        if recipient is None:
            raise NotFoundError(resource="user", resource_id=str(recipient_id))

        message = Message(
            sender_id=sender.id,
            recipient_id=recipient.id,
            sender=sender,
            recipient=recipient,
            content=content,
            read=False,
        )
        db.add(message)
        await db.flush()

        logger.info("Message %s stored: %s -> %s", message.id, sender.id, recipient.id)
        return message

    async def get_conversation(
        self, db: AsyncSession, user_id: UUID, other_user_id: UUID
    ) -> List[Message]:
        """Messages exchanged between the two users in either direction, oldest first."""
        result = await db.execute(
            select(Message)
            .where(
                or_(
                    and_(Message.sender_id == user_id, Message.recipient_id == other_user_id),
                    and_(Message.sender_id == other_user_id, Message.recipient_id == user_id),
                )
            )
            .order_by(Message.created_at.asc(), Message.id)
        )
        return list(result.scalars().all())


# Singleton instance
message_service = MessageService()
