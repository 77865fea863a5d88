"""
SkillSwap Backend — Skill Resolver Unit Tests
===============================================

What:  Tests for resolving skill tokens (ids or names) to canonical ids.
How:   Real in-memory SQLite; the lost-race path is forced by making the
       pre-insert lookup miss once.

What we test:
    ✅ Names are trimmed and matched case-insensitively; only one row is created
    ✅ UUID tokens pass through unchanged
    ✅ Blank and over-long names are rejected, including names whose folded key is too long
    ✅ A lost insert race returns the winner's id and keeps the transaction usable
    ✅ Persistent losing gives up with ConflictError
    ✅ resolve_skills() dedupes while keeping first-occurrence order
"""

import uuid

import pytest
from sqlalchemy import func, select

from skillswap.exceptions import ConflictError, ValidationError
from skillswap.models.skill import Skill, skill_name_key
from skillswap.services import skill_resolver
from skillswap.services.skill_resolver import (
    parse_skill_id,
    resolve_skill,
    resolve_skills,
)


async def _skill_count(db) -> int:
    return (await db.execute(select(func.count()).select_from(Skill))).scalar_one()


class TestParseSkillId:

    def test_uuid_string(self):
        skill_id = uuid.uuid4()
        assert parse_skill_id(f"  {skill_id}  ") == skill_id

    def test_name_is_not_an_id(self):
        assert parse_skill_id("JavaScript") is None


class TestResolveSkill:

    @pytest.mark.asyncio
    async def test_creates_once_and_is_case_insensitive(self, db_session):
        first = await resolve_skill(db_session, "JavaScript")
        second = await resolve_skill(db_session, "  javascript  ")
        third = await resolve_skill(db_session, "JAVASCRIPT")

        assert first == second == third
        assert await _skill_count(db_session) == 1

        skill = await db_session.get(Skill, first)
        # Display name keeps the case of the first creation
        assert skill.name == "JavaScript"
        assert skill.name_key == "javascript"

    @pytest.mark.asyncio
    async def test_uuid_token_passes_through(self, db_session):
        skill_id = uuid.uuid4()
        assert await resolve_skill(db_session, str(skill_id)) == skill_id
        assert await _skill_count(db_session) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["", "   "])
    async def test_blank_name_rejected(self, db_session, token):
        with pytest.raises(ValidationError):
            await resolve_skill(db_session, token)

    @pytest.mark.asyncio
    async def test_overlong_name_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await resolve_skill(db_session, "x" * 101)

    @pytest.mark.asyncio
    async def test_name_whose_folded_key_is_too_long_rejected(self, db_session):
        # 60 characters, but "ß" case-folds to "ss": a 120-character key
        with pytest.raises(ValidationError):
            await resolve_skill(db_session, "ß" * 60)

        count = (await db_session.execute(select(func.count()).select_from(Skill))).scalar_one()
        assert count == 0


    @pytest.mark.asyncio
    async def test_lost_race_returns_winner(self, db_session, monkeypatch):
        """The first lookup misses a row that another transaction already inserted."""
        winner = Skill(name="Python", name_key=skill_name_key("Python"))
        db_session.add(winner)
        await db_session.flush()

        real_lookup = skill_resolver.find_skill_by_name
        calls = {"n": 0}

        async def stale_then_real(db, name):
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return await real_lookup(db, name)

        monkeypatch.setattr(skill_resolver, "find_skill_by_name", stale_then_real)

        resolved = await resolve_skill(db_session, "python")

        assert resolved == winner.id
        assert calls["n"] == 2
        # The savepoint kept the surrounding transaction alive
        assert await _skill_count(db_session) == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, db_session, monkeypatch):
        db_session.add(Skill(name="Rust", name_key="rust"))
        await db_session.flush()

        async def always_stale(db, name):
            return None

        monkeypatch.setattr(skill_resolver, "find_skill_by_name", always_stale)

        with pytest.raises(ConflictError):
            await resolve_skill(db_session, "rust")


class TestResolveSkills:

    @pytest.mark.asyncio
    async def test_dedupes_in_order(self, db_session):
        ids = await resolve_skills(db_session, ["Go", "python", "go", "Python", "SQL"])

        assert len(ids) == 3
        names = [(await db_session.get(Skill, skill_id)).name for skill_id in ids]
        assert names == ["Go", "python", "SQL"]

    @pytest.mark.asyncio
    async def test_first_failure_raises(self, db_session):
        with pytest.raises(ValidationError):
            await resolve_skills(db_session, ["Go", "  "])
