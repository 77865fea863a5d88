"""
SkillSwap Backend — User & Auth Route Handlers
================================================

What:  /api/users — registration, logins, profiles and skill-set membership.
How:   Thin handlers: parse the body, call AuthService / OAuthService /
       UserService, return the schema. Ownership checks live in the service.

Route Inventory:
    POST   /api/users/register                     (public, 201)
    POST   /api/users/login                        (public)
    POST   /api/users/google-login                 (public)
    POST   /api/users/facebook-login               (public)
    POST   /api/users/linkedin-login               (public)
    GET    /api/users                              (auth)
    GET    /api/users/search/by-skill?skillId&kind (auth)
    GET    /api/users/{id}                         (auth)
    PUT    /api/users/{id}                         (auth, self only)
    POST   /api/users/{id}/skills/teach|learn      (auth, self only)
    DELETE /api/users/{id}/skills/teach|learn/{skillId} (auth, self only)

Static paths (/search/by-skill) are declared before /{user_id} so they are
not captured as an id.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.database import get_db_session
from skillswap.dependencies import get_current_user
from skillswap.models.user import User
from skillswap.schemas.common import ErrorResponse
from skillswap.schemas.user import (
    AuthResponse,
    FacebookLoginRequest,
    GoogleLoginRequest,
    LinkedInLoginRequest,
    LoginRequest,
    RegisterRequest,
    SkillKind,
    SkillTokenRequest,
    UserResponse,
    UserUpdate,
)
from skillswap.services.auth_service import auth_service
from skillswap.services.oauth_service import oauth_service
from skillswap.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])

_auth_errors = {
    400: {"description": "Invalid input or user already exists", "model": ErrorResponse},
    401: {"description": "Invalid credentials", "model": ErrorResponse},
}
_owner_errors = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Not your profile", "model": ErrorResponse},
    404: {"description": "User or skill not found", "model": ErrorResponse},
}


# ── Auth ──────────────────────────────────────────────────────────────────

@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_auth_errors,
    summary="Register a password account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    """Skill entries may be skill ids or names; unknown names are created."""
    return await auth_service.register(db, payload)


@router.post("/login", response_model=AuthResponse, responses=_auth_errors, summary="Password login")
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.login(db, payload.email, payload.password)


@router.post(
    "/google-login",
    response_model=AuthResponse,
    responses={**_auth_errors, 502: {"description": "Google certificates unreachable", "model": ErrorResponse}},
)
async def google_login(
    payload: GoogleLoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    profile = await oauth_service.google_profile(payload)
    return await auth_service.login_oauth(db, profile)


@router.post(
    "/facebook-login",
    response_model=AuthResponse,
    responses={**_auth_errors, 502: {"description": "Facebook unreachable", "model": ErrorResponse}},
)
async def facebook_login(
    payload: FacebookLoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    profile = await oauth_service.facebook_profile(payload)
    return await auth_service.login_oauth(db, profile)


@router.post(
    "/linkedin-login",
    response_model=AuthResponse,
    responses={**_auth_errors, 502: {"description": "LinkedIn unreachable", "model": ErrorResponse}},
)
async def linkedin_login(
    payload: LinkedInLoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    profile = await oauth_service.linkedin_profile(payload)
    return await auth_service.login_oauth(db, profile)


# ── Profiles ──────────────────────────────────────────────────────────────

@router.get("", response_model=List[UserResponse], summary="List all users, newest first")
async def list_users(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[User]:
    return await user_service.list_users(db)


@router.get(
    "/search/by-skill",
    response_model=List[UserResponse],
    summary="Users who want to learn (or can teach) a skill",
)
async def search_users_by_skill(
    skill_id: UUID = Query(alias="skillId"),
    kind: SkillKind = Query(default="learn"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[User]:
    return await user_service.search_by_skill(db, skill_id, kind)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
)
async def get_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await user_service.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserResponse, responses=_owner_errors)
async def update_user(
    user_id: UUID,
    changes: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await user_service.update_user(db, current_user, user_id, changes)


# ── Skill Sets ────────────────────────────────────────────────────────────

@router.post("/{user_id}/skills/teach", response_model=UserResponse, responses=_owner_errors)
async def add_skill_to_teach(
    user_id: UUID,
    payload: SkillTokenRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await user_service.add_skill(db, current_user, user_id, "teach", payload.skill_id)


@router.post("/{user_id}/skills/learn", response_model=UserResponse, responses=_owner_errors)
async def add_skill_to_learn(
    user_id: UUID,
    payload: SkillTokenRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await user_service.add_skill(db, current_user, user_id, "learn", payload.skill_id)


@router.delete(
    "/{user_id}/skills/teach/{skill_id}", response_model=UserResponse, responses=_owner_errors
)
async def remove_skill_from_teach(
    user_id: UUID,
    skill_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await user_service.remove_skill(db, current_user, user_id, "teach", skill_id)


@router.delete(
    "/{user_id}/skills/learn/{skill_id}", response_model=UserResponse, responses=_owner_errors
)
async def remove_skill_from_learn(
    user_id: UUID,
    skill_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await user_service.remove_skill(db, current_user, user_id, "learn", skill_id)
