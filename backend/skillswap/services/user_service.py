"""
SkillSwap Backend — User Service
==================================

What:  Profile reads and updates plus teach/learn skill-set membership.
Why:   Keeps the resolver, ownership checks and email uniqueness out of routes.
How:   Skill tokens go through the skill resolver and are then loaded as Skill
       rows, so a stale id fails with NotFoundError instead of a foreign key
       error at commit time.

Ownership:
    A user may only modify their own profile and skill sets. Guards run in
    the order existence (404) → ownership (403) → input (400).

Skill sets:
    Backed by association tables with composite primary keys. Adding a skill
    that is already present is a no-op; removing one that is absent is too.
"""

import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from skillswap.models.skill import Skill
from skillswap.models.user import User
from skillswap.schemas.user import SkillKind, UserUpdate
from skillswap.services.skill_resolver import resolve_skill, resolve_skills

logger = logging.getLogger(__name__)


def reject_empty_skill_list(tokens: Optional[Sequence[str]], kind: SkillKind) -> None:
    """A provided-but-empty skill list is an error; an absent one is not."""
    if tokens is not None and len(tokens) == 0:
        raise ValidationError(
            message=f"At least one skill to {kind} is required.",
            field=f"skillsTo{kind.capitalize()}",
        )


def skill_set(user: User, kind: SkillKind) -> List[Skill]:
    return user.skills_to_teach if kind == "teach" else user.skills_to_learn


class UserService:
    """
    Responsibilities:
        - list_users() / get_user() / find_by_email()
        - update_user():     Partial profile update (self only)
        - add_skill():       Resolve a token and add it to teach/learn (self only)
        - remove_skill():    Drop a skill id from teach/learn (self only)
        - search_by_skill(): Users whose teach/learn set contains a skill
        - load_skills():     Canonical ids → Skill rows (shared with AuthService)
    """

    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def get_user(self, db: AsyncSession, user_id: UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def load_skills(self, db: AsyncSession, skill_ids: Sequence[UUID]) -> List[Skill]:
        """Load skills in the given order; any unknown id is a NotFoundError."""
        if not skill_ids:
            return []
        result = await db.execute(select(Skill).where(Skill.id.in_(skill_ids)))
        by_id = {skill.id: skill for skill in result.scalars().all()}
        missing = [str(skill_id) for skill_id in skill_ids if skill_id not in by_id]
        if missing:
            raise NotFoundError(resource="skill", resource_id=missing[0])
        return [by_id[skill_id] for skill_id in skill_ids]

    async def resolve_skill_set(self, db: AsyncSession, tokens: Sequence[str]) -> List[Skill]:
        return await self.load_skills(db, await resolve_skills(db, tokens))

    async def _get_owned_user(self, db: AsyncSession, acting_user: User, user_id: UUID) -> User:
        user = await self.get_user(db, user_id)
        if user.id != acting_user.id:
            raise ForbiddenError(message="You can only modify your own profile")
        return user

    async def update_user(
        self,
        db: AsyncSession,
        acting_user: User,
        user_id: UUID,
        changes: UserUpdate,
    ) -> User:
        user = await self._get_owned_user(db, acting_user, user_id)

        reject_empty_skill_list(changes.skills_to_teach, "teach")
        reject_empty_skill_list(changes.skills_to_learn, "learn")

        if changes.name is not None:
            user.name = changes.name.strip()
        if changes.photo_url is not None:
            user.photo_url = changes.photo_url
        if changes.points is not None:
            user.points = changes.points
        if changes.skills_to_teach is not None:
            user.skills_to_teach = await self.resolve_skill_set(db, changes.skills_to_teach)
        if changes.skills_to_learn is not None:
            user.skills_to_learn = await self.resolve_skill_set(db, changes.skills_to_learn)

        if changes.email is not None and changes.email != user.email:
            other = await self.find_by_email(db, changes.email)
            if other is not None:
                raise ConflictError(message="Email is already in use")
            user.email = changes.email

        try:
            async with db.begin_nested():
                await db.flush()
        except IntegrityError as exc:
            raise ConflictError(message="Email is already in use") from exc

        logger.info("User %s updated profile fields: %s", user.id, sorted(changes.model_fields_set))
        return user

    async def add_skill(
        self,
        db: AsyncSession,
        acting_user: User,
        user_id: UUID,
        kind: SkillKind,
        token: str,
    ) -> User:
        user = await self._get_owned_user(db, acting_user, user_id)

        skill_id = await resolve_skill(db, token)
        (skill,) = await self.load_skills(db, [skill_id])

        skills = skill_set(user, kind)
        if skill not in skills:
            skills.append(skill)
            await db.flush()
            logger.info("User %s added skill %s to %s", user.id, skill.id, kind)
        return user

    async def remove_skill(
        self,
        db: AsyncSession,
        acting_user: User,
        user_id: UUID,
        kind: SkillKind,
        skill_id: UUID,
    ) -> User:
        user = await self._get_owned_user(db, acting_user, user_id)

        skills = skill_set(user, kind)
        for skill in list(skills):
            if skill.id == skill_id:
                skills.remove(skill)
                await db.flush()
                logger.info("User %s removed skill %s from %s", user.id, skill_id, kind)
        return user

    async def search_by_skill(
        self, db: AsyncSession, skill_id: UUID, kind: SkillKind = "learn"
    ) -> List[User]:
        relation = User.skills_to_teach if kind == "teach" else User.skills_to_learn
        result = await db.execute(
            select(User)
            .where(relation.any(Skill.id == skill_id))
            .order_by(User.created_at.desc())
        )
        return list(result.scalars().all())


# Singleton instance — stateless, safe to share
user_service = UserService()
