"""
SkillSwap Backend — Skill SQLAlchemy Model
============================================

What:  ORM model representing the `skills` table.
Why:   The canonical taxonomy users reference from their teach/learn sets.
Who:   Used by the skill resolver, SkillService and UserService.

Table Design Rationale:
    - name: Trimmed, stored with the case the first creator typed
    - name_key: Case-folded name with a UNIQUE constraint. Case-insensitive
      uniqueness has to hold at the store level, otherwise two concurrent
      creations of "Python" and "python" both succeed.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from skillswap.database import Base


SKILL_NAME_MAX_LENGTH = 100


def skill_name_key(name: str) -> str:
    """Lookup key for a skill name: trimmed and case-folded."""
    return name.strip().casefold()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Skill(Base):
    """A single teachable/learnable skill."""

    __tablename__ = "skills"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(
        String(SKILL_NAME_MAX_LENGTH),
        nullable=False,
        comment="Display name, trimmed, original case",
    )

    name_key: Mapped[str] = mapped_column(
        String(SKILL_NAME_MAX_LENGTH),
        nullable=False,
        unique=True,
        comment="Case-folded name used for lookups and uniqueness",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def rename(self, name: str) -> None:
        self.name = name.strip()
        self.name_key = skill_name_key(name)

    def __repr__(self) -> str:
        return f"<Skill(id={self.id}, name='{self.name}')>"
