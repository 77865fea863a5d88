"""
SkillSwap Backend — Auth Service
==================================

What:  Password registration/login and find-or-create for OAuth identities.
Why:   One place that decides how accounts come into existence and how a
       token is issued for them.
Who:   Called by the /api/users auth routes; OAuth profile fetching lives in
       oauth_service and hands a verified OAuthProfile to login_oauth().

Account kinds:
    Password account: password_hash set, oauth_provider NULL
    OAuth account:    oauth_provider set, password_hash NULL
    An email belongs to one sign-in method. An OAuth login only signs into
    an existing account created by the same provider; an email held by a
    password account or by another provider is refused, as is a password
    login for an OAuth account.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.config import settings
from skillswap.exceptions import AuthenticationError, ConflictError
from skillswap.models.user import User
from skillswap.schemas.user import AuthResponse, RegisterRequest, UserResponse
from skillswap.security import create_access_token, hash_password, verify_password
from skillswap.services.user_service import reject_empty_skill_list, user_service

logger = logging.getLogger(__name__)


@dataclass
class OAuthProfile:
    """Identity returned by a provider after verification."""
    provider: str
    email: str
    name: str
    photo_url: Optional[str] = None


def issue_auth_response(user: User) -> AuthResponse:
    token = create_access_token(user.id, user.email, user.name)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


class AuthService:

    async def _insert_user(self, db: AsyncSession, user: User) -> User:
        try:
            async with db.begin_nested():
                db.add(user)
                await db.flush()
        except IntegrityError as exc:
            raise ConflictError(message="User already exists") from exc
        return user

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> AuthResponse:
        """
        Create a password account and sign it in.

        Skills listed at registration are resolved (and created on demand) in
        the same transaction as the user row.
        """
        reject_empty_skill_list(payload.skills_to_teach, "teach")
        reject_empty_skill_list(payload.skills_to_learn, "learn")

        if await user_service.find_by_email(db, payload.email) is not None:
            raise ConflictError(message="User already exists")

        teach = await user_service.resolve_skill_set(db, payload.skills_to_teach or [])
        learn = await user_service.resolve_skill_set(db, payload.skills_to_learn or [])

        user = User(
            name=payload.name.strip(),
            email=payload.email,
            password_hash=hash_password(payload.password),
            photo_url=settings.default_photo_url,
            oauth_provider=None,
            points=0,
            has_received_free_points=False,
            skills_to_teach=teach,
            skills_to_learn=learn,
        )
        await self._insert_user(db, user)

        logger.info("Registered user %s", user.id)
        return issue_auth_response(user)

    async def login(self, db: AsyncSession, email: str, password: str) -> AuthResponse:
        user = await user_service.find_by_email(db, email)
        # Same message for unknown email, OAuth-only account and bad password
        if user is None or user.oauth_provider or not verify_password(password, user.password_hash):
            raise AuthenticationError(message="Invalid credentials")

        logger.info("User %s logged in", user.id)
        return issue_auth_response(user)

    async def login_oauth(self, db: AsyncSession, profile: OAuthProfile) -> AuthResponse:
        user = await user_service.find_by_email(db, profile.email)
        if user is None:
            user = User(
                name=profile.name.strip() or profile.email,
                email=profile.email.strip().lower(),
                password_hash=None,
                photo_url=profile.photo_url or settings.default_photo_url,
                oauth_provider=profile.provider,
                points=0,
                has_received_free_points=False,
                skills_to_teach=[],
                skills_to_learn=[],
            )
            await self._insert_user(db, user)
            logger.info("Created %s account %s", profile.provider, user.id)
        elif user.oauth_provider != profile.provider:
            logger.warning(
                "Refused %s login for user %s (signs in with %s)",
                profile.provider,
                user.id,
                user.oauth_provider or "password",
            )
            raise AuthenticationError(
                message="This email is registered with a different sign-in method"
            )
        else:
            logger.info("User %s logged in via %s", user.id, profile.provider)

        return issue_auth_response(user)


# Singleton instance
auth_service = AuthService()
