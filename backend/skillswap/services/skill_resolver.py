"""
SkillSwap Backend — Skill Resolver
====================================

What:  Maps a user-supplied skill token (a skill UUID or a free-text name) to
       a canonical skill id, creating the skill on first use.
Why:   Users type skill names ("javascript", "  JavaScript  "); profiles store
       canonical ids. Every skill-membership write goes through here.
How:
    1. Token parses as a UUID → returned unchanged (existence is checked by
       the caller, which needs the row anyway)
    2. Otherwise trim, look up case-insensitively on skills.name_key
    3. Found → existing id. Not found → INSERT inside a SAVEPOINT
    4. Lost race (another request inserted the same name_key first) → the
       UNIQUE violation rolls back only the savepoint and tenacity retries;
       the retry's lookup returns the winner's id

Race handling:
    The UNIQUE constraint on name_key is what actually decides races. Without
    the savepoint, the IntegrityError would poison the whole request
    transaction and the caller's profile update would be lost with it.
    This is the only failure in the service that is absorbed silently.
"""

import logging
import uuid
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
)

from skillswap.config import settings
from skillswap.exceptions import ConflictError, ValidationError
from skillswap.models.skill import SKILL_NAME_MAX_LENGTH, Skill, skill_name_key

logger = logging.getLogger(__name__)


class SkillCreateRace(Exception):
    """Internal signal: another transaction created the same skill name first."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name


def parse_skill_id(token: str) -> Optional[uuid.UUID]:
    """Return the token as a UUID if it is one, else None."""
    try:
        return uuid.UUID(str(token).strip())
    except ValueError:
        return None


def normalize_skill_name(raw: str) -> str:
    """
    Trim a skill name, rejecting blank and over-long names.

    Case folding can lengthen a name ("ß" folds to "ss"), so the lookup key
    is held to the same column limit as the name itself.
    """
    name = (raw or "").strip()
    if not name:
        raise ValidationError(message="Skill name is required", field="name")
    if len(name) > SKILL_NAME_MAX_LENGTH or len(skill_name_key(name)) > SKILL_NAME_MAX_LENGTH:
        raise ValidationError(
            message=f"Skill name must be at most {SKILL_NAME_MAX_LENGTH} characters",
            field="name",
        )
    return name


async def find_skill_by_name(db: AsyncSession, name: str) -> Optional[Skill]:
    """Case-insensitive lookup by name."""
    result = await db.execute(select(Skill).where(Skill.name_key == skill_name_key(name)))
    return result.scalar_one_or_none()


async def _find_or_create(db: AsyncSession, name: str) -> uuid.UUID:
    existing = await find_skill_by_name(db, name)
    if existing is not None:
        return existing.id

    skill = Skill(name=name, name_key=skill_name_key(name))
    try:
        async with db.begin_nested():
            db.add(skill)
            await db.flush()
    except IntegrityError as exc:
        raise SkillCreateRace(name) from exc

    logger.info("Created skill %s on demand", skill.id)
    return skill.id


async def resolve_skill(db: AsyncSession, token: str) -> uuid.UUID:
    """
    Resolve one skill token to a canonical skill id.

    Idempotent: "javascript", "JavaScript" and "  JavaScript  " all yield the
    same id, and only the first call creates a row.

    Raises:
        ValidationError: blank name
        ConflictError:   still losing the create race after
                         settings.resolver_max_attempts attempts
    """
    skill_id = parse_skill_id(token)
    if skill_id is not None:
        return skill_id

    name = normalize_skill_name(token)

    try:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(SkillCreateRace),
            stop=stop_after_attempt(settings.resolver_max_attempts),
            before_sleep=before_sleep_log(logger, logging.INFO),
        ):
            with attempt:
                skill_id = await _find_or_create(db, name)
    except RetryError as exc:
        logger.error(
            "Skill resolution for a contested name gave up after %d attempts",
            settings.resolver_max_attempts,
        )
        raise ConflictError(
            message=f"Skill '{name}' could not be resolved, please retry",
            context={"attempts": settings.resolver_max_attempts},
        ) from exc

    return skill_id


async def resolve_skills(db: AsyncSession, tokens: Iterable[str]) -> List[uuid.UUID]:
    """
    Resolve a list of tokens; duplicates collapse, first occurrence order kept.

    All-or-nothing: the first failing element raises and the request
    transaction rolls back every skill created before it. Elements are resolved
    one after another because an AsyncSession must not be used concurrently.
    """
    resolved: List[uuid.UUID] = []
    for token in tokens:
        skill_id = await resolve_skill(db, token)
        if skill_id not in resolved:
            resolved.append(skill_id)
    return resolved
