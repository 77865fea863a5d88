"""
SkillSwap Backend — Skill Service
===================================

What:  Explicit CRUD over the skill taxonomy (/api/skills).
Why:   Admin-style management of the names the resolver creates implicitly.
How:   Same name rules as the resolver (trimmed, case-insensitive unique).
       Inserts and renames run inside a SAVEPOINT so a concurrent duplicate
       surfaces as ConflictError without poisoning the request transaction.

Differences from the resolver:
    Creating a name that already exists is a ConflictError here. The resolver
    would have returned the existing id instead.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.exceptions import ConflictError, NotFoundError
from skillswap.models.skill import Skill, skill_name_key
from skillswap.models.user import user_learn_skills, user_teach_skills
from skillswap.services.skill_resolver import find_skill_by_name, normalize_skill_name

logger = logging.getLogger(__name__)


class SkillService:
    """
    Responsibilities:
        - create_skill(): New skill, rejecting case-insensitive duplicates
        - list_skills():  All skills by name
        - get_skill():    Single skill or NotFoundError
        - rename_skill(): Change display name (case-only changes allowed)
        - delete_skill(): Remove from every user's skill sets, then delete
    """

    async def create_skill(self, db: AsyncSession, raw_name: str) -> Skill:
        name = normalize_skill_name(raw_name)
        if await find_skill_by_name(db, name) is not None:
            raise ConflictError(message="Skill already exists", context={"name": name})

        skill = Skill(name=name, name_key=skill_name_key(name))
        try:
            async with db.begin_nested():
                db.add(skill)
                await db.flush()
        except IntegrityError as exc:
            raise ConflictError(message="Skill already exists", context={"name": name}) from exc

        logger.info("Skill %s created", skill.id)
        return skill

    async def list_skills(self, db: AsyncSession) -> List[Skill]:
        result = await db.execute(select(Skill).order_by(Skill.name, Skill.id))
        return list(result.scalars().all())

    async def get_skill(self, db: AsyncSession, skill_id: UUID) -> Skill:
        skill = await db.get(Skill, skill_id)
        if skill is None:
            raise NotFoundError(resource="skill", resource_id=str(skill_id))
        return skill

    async def rename_skill(self, db: AsyncSession, skill_id: UUID, raw_name: str) -> Skill:
        name = normalize_skill_name(raw_name)
        skill = await self.get_skill(db, skill_id)

        clash = await find_skill_by_name(db, name)
        if clash is not None and clash.id != skill.id:
            raise ConflictError(message="Skill already exists", context={"name": name})

        try:
            async with db.begin_nested():
                skill.rename(name)
                await db.flush()
        except IntegrityError as exc:
            raise ConflictError(message="Skill already exists", context={"name": name}) from exc

        logger.info("Skill %s renamed", skill.id)
        return skill

    async def delete_skill(self, db: AsyncSession, skill_id: UUID) -> None:
        skill = await self.get_skill(db, skill_id)

        await db.execute(delete(user_teach_skills).where(user_teach_skills.c.skill_id == skill.id))
        await db.execute(delete(user_learn_skills).where(user_learn_skills.c.skill_id == skill.id))
        await db.delete(skill)
        await db.flush()

        logger.info("Skill %s deleted", skill_id)


# Singleton instance — stateless, safe to share
skill_service = SkillService()
