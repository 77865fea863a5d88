"""
SkillSwap Backend — Skill Schemas
===================================

Request and response shapes for /api/skills.
"""

import uuid
from datetime import datetime

from pydantic import Field

from skillswap.models.skill import SKILL_NAME_MAX_LENGTH
from skillswap.schemas.common import ApiModel


class SkillCreate(ApiModel):
    # Blank-after-trim is a business rule (400), checked in SkillService
    name: str = Field(max_length=SKILL_NAME_MAX_LENGTH)


class SkillUpdate(ApiModel):
    name: str = Field(max_length=SKILL_NAME_MAX_LENGTH)


class SkillResponse(ApiModel):
    id: uuid.UUID
    name: str
    created_at: datetime
    updated_at: datetime


class SkillRef(ApiModel):
    """Compact skill embedded in user profiles."""
    id: uuid.UUID
    name: str
