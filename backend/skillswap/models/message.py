"""
SkillSwap Backend — Message SQLAlchemy Model
==============================================

What:  ORM model for the `messages` table (direct messages between users).
Why:   Durable chat history; real-time delivery is best-effort on top of it.
Who:   Used by MessageService.

Messages are immutable: never updated or deleted once stored.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skillswap.database import Base
from skillswap.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    sender: Mapped[User] = relationship(foreign_keys=[sender_id], lazy="selectin")
    recipient: Mapped[User] = relationship(foreign_keys=[recipient_id], lazy="selectin")

    # Conversation lookups filter on the (sender, recipient) pair in both
    # directions, then order by time
    __table_args__ = (
        Index("idx_messages_pair_created_at", "sender_id", "recipient_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, {self.sender_id} -> {self.recipient_id})>"
