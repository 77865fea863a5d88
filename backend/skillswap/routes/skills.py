"""
SkillSwap Backend — Skill Route Handlers
==========================================

What:  /api/skills CRUD. All routes require a bearer token.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.database import get_db_session
from skillswap.dependencies import get_current_user
from skillswap.models.skill import Skill
from skillswap.schemas.common import ErrorResponse, MessageResponse
from skillswap.schemas.skill import SkillCreate, SkillResponse, SkillUpdate
from skillswap.services.skill_service import skill_service

router = APIRouter(
    prefix="/api/skills",
    tags=["Skills"],
    dependencies=[Depends(get_current_user)],
)

_not_found = {404: {"description": "Skill not found", "model": ErrorResponse}}


@router.post(
    "",
    response_model=SkillResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Blank or duplicate name", "model": ErrorResponse}},
)
async def create_skill(
    payload: SkillCreate,
    db: AsyncSession = Depends(get_db_session),
) -> Skill:
    return await skill_service.create_skill(db, payload.name)


@router.get("", response_model=List[SkillResponse], summary="All skills, by name")
async def list_skills(db: AsyncSession = Depends(get_db_session)) -> List[Skill]:
    return await skill_service.list_skills(db)


@router.get("/{skill_id}", response_model=SkillResponse, responses=_not_found)
async def get_skill(skill_id: UUID, db: AsyncSession = Depends(get_db_session)) -> Skill:
    return await skill_service.get_skill(db, skill_id)


@router.put("/{skill_id}", response_model=SkillResponse, responses=_not_found)
async def rename_skill(
    skill_id: UUID,
    payload: SkillUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> Skill:
    return await skill_service.rename_skill(db, skill_id, payload.name)


@router.delete("/{skill_id}", response_model=MessageResponse, responses=_not_found)
async def delete_skill(
    skill_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """Also removes the skill from every user's teach/learn sets."""
    await skill_service.delete_skill(db, skill_id)
    return MessageResponse(message="Skill deleted")
