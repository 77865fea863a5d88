"""
SkillSwap Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table plus the two skill-set association tables.
Why:   Users own their profile, point balance and the skills they teach/learn.
Who:   Used by UserService, AuthService, the Auth Gate, and as the referenced
       party of connections and messages.

Table Design Rationale:
    - email: Stored trimmed and lower-cased, UNIQUE
    - password_hash / oauth_provider: Exactly one of the two is set. A password
      account has no provider; an OAuth account has no password. Enforced by
      a CHECK constraint so no code path can produce a hybrid.
    - Skill sets: Two association tables keyed by (user_id, skill_id). The
      composite primary key gives set semantics for free: adding a skill twice
      is a no-op, never a duplicate row.
    - Users are never hard-deleted.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skillswap.database import Base
from skillswap.models.skill import Skill


OAUTH_PROVIDERS = ("google", "facebook", "linkedin")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Skill Set Association Tables ──────────────────────────────────────────
user_teach_skills = Table(
    "user_teach_skills",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", Uuid, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)

user_learn_skills = Table(
    "user_learn_skills",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", Uuid, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """
    A platform member.

    Lifecycle:
        1. Created by password registration or first OAuth login
        2. Mutated by profile updates and skill add/remove
        3. Never deleted
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    # bcrypt hash; NULL for OAuth accounts
    password_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    photo_url: Mapped[str] = mapped_column(String(2048), nullable=False)

    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    has_received_free_points: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    # One of OAUTH_PROVIDERS; NULL for password accounts
    oauth_provider: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # selectin: collections are loaded eagerly in one extra query, since lazy
    # loading is not available on an AsyncSession
    skills_to_teach: Mapped[List[Skill]] = relationship(
        secondary=user_teach_skills, lazy="selectin", order_by=Skill.name
    )
    skills_to_learn: Mapped[List[Skill]] = relationship(
        secondary=user_learn_skills, lazy="selectin", order_by=Skill.name
    )

    __table_args__ = (
        CheckConstraint(
            "(password_hash IS NULL) <> (oauth_provider IS NULL)",
            name="ck_users_password_xor_oauth",
        ),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
