"""
SkillSwap Backend — User & Auth Schemas
=========================================

What:  Request/response contracts for /api/users (profiles, auth, skill sets).

Skill lists in requests are "tokens": each element is either a skill UUID or
a free-text skill name. The skill resolver turns them into canonical ids; in
responses skills always come back as {id, name} objects.

Explicitly empty skill lists (`"skillsToTeach": []`) are rejected by the
services, so these fields are Optional with None meaning "not provided".
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AliasChoices, Field, field_validator

from skillswap.schemas.common import ApiModel
from skillswap.schemas.skill import SkillRef


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValueError("Invalid email address")
    return value


# bcrypt only reads the first 72 bytes of its input and refuses longer ones
PASSWORD_MAX_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return value


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserSummary(ApiModel):
    """Compact user embedded in connections and messages."""
    id: uuid.UUID
    name: str
    email: str
    photo_url: str


class UserResponse(ApiModel):
    """
    Full public profile. `password_hash` is deliberately absent.
    """
    id: uuid.UUID
    name: str
    email: str
    photo_url: str
    points: int
    has_received_free_points: bool
    oauth_provider: Optional[str] = None
    skills_to_teach: List[SkillRef] = Field(default_factory=list)
    skills_to_learn: List[SkillRef] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class AuthResponse(ApiModel):
    """Returned by register and every login flavour."""
    token: str
    user: UserResponse


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255)
    password: str = Field(min_length=6, max_length=128)
    skills_to_teach: Optional[List[str]] = None
    skills_to_learn: Optional[List[str]] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password_bytes(v)


class LoginRequest(ApiModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return v.strip().lower()


class GoogleLoginRequest(ApiModel):
    """The ID token (JWT) issued to the frontend by Google Sign-In."""
    id_token: str = Field(
        min_length=1,
        validation_alias=AliasChoices("idToken", "credential", "id_token"),
    )


class FacebookLoginRequest(ApiModel):
    access_token: str = Field(min_length=1)
    user_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("userID", "userId", "user_id"),
    )


class LinkedInLoginRequest(ApiModel):
    code: str = Field(min_length=1)
    redirect_uri: str = Field(min_length=1)


class UserUpdate(ApiModel):
    """Partial profile update. Only fields present in the body are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    photo_url: Optional[str] = Field(
        default=None,
        max_length=2048,
        validation_alias=AliasChoices("photoUrl", "photoURL", "photo_url"),
    )
    points: Optional[int] = Field(default=None, ge=0)
    skills_to_teach: Optional[List[str]] = None
    skills_to_learn: Optional[List[str]] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_email(v) if v is not None else v


class SkillTokenRequest(ApiModel):
    """Body of POST /api/users/{id}/skills/teach|learn: a skill id or a name."""
    skill_id: str = Field(min_length=1, max_length=100)


SkillKind = Literal["teach", "learn"]
