"""
SkillSwap Backend — Connection SQLAlchemy Model
=================================================

What:  ORM model for the `connections` table (requests between two users).
Why:   Persists the connection state machine.
Who:   Used by connection_queries and ConnectionService.

Lifecycle:
    none → pending → accepted | rejected
    pending  → cancelled by requester (row deleted)
    accepted → removed by either party (row deleted)
    rejected is retained; `blocked` is a defined value no operation sets.

One row per unordered pair:
    requester/recipient keep the direction of the request. user_low_id and
    user_high_id hold the same two ids sorted, and carry a UNIQUE constraint,
    so B→A cannot be inserted while A→B exists even under concurrent requests.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skillswap.database import Base
from skillswap.models.user import User


CONNECTION_MESSAGE_MAX_LENGTH = 500


class ConnectionStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    BLOCKED = "blocked"


def ordered_pair(a: uuid.UUID, b: uuid.UUID) -> Tuple[uuid.UUID, uuid.UUID]:
    """The two ids in canonical (string) order, independent of direction."""
    return (a, b) if str(a) <= str(b) else (b, a)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Connection(Base):
    """A connection request between two users and its current status."""

    __tablename__ = "connections"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    status: Mapped[ConnectionStatus] = mapped_column(
        Enum(
            ConnectionStatus,
            name="connection_status",
            values_callable=lambda e: [member.value for member in e],
            native_enum=False,
            length=20,
        ),
        nullable=False,
        default=ConnectionStatus.PENDING,
    )

    message: Mapped[Optional[str]] = mapped_column(
        String(CONNECTION_MESSAGE_MAX_LENGTH), nullable=True
    )

    user_low_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    user_high_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    requester: Mapped[User] = relationship(foreign_keys=[requester_id], lazy="selectin")
    recipient: Mapped[User] = relationship(foreign_keys=[recipient_id], lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_connections_pair"),
        CheckConstraint("requester_id <> recipient_id", name="ck_connections_not_self"),
        Index("idx_connections_created_at", "created_at"),
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.requester_id is not None and self.recipient_id is not None:
            self.user_low_id, self.user_high_id = ordered_pair(
                self.requester_id, self.recipient_id
            )

    def involves(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.requester_id, self.recipient_id)

    def __repr__(self) -> str:
        return (
            f"<Connection(id={self.id}, {self.requester_id} -> {self.recipient_id}, "
            f"status='{self.status.value if self.status else None}')>"
        )
