"""
SkillSwap Backend — Shared Route Dependencies (Auth Gate)
===========================================================

What:  Resolves the `Authorization: Bearer <jwt>` header to a User row.
Why:   Every protected route needs the acting user before reaching a service.
How:   HTTPBearer(auto_error=False) extracts the credentials so that a missing
       header is reported through our own AuthenticationError (consistent JSON
       body) instead of FastAPI's default 403.
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.database import get_db_session
from skillswap.exceptions import AuthenticationError
from skillswap.models.user import User
from skillswap.security import user_id_from_token

bearer_scheme = HTTPBearer(auto_error=False)


async def load_user_from_token(db: AsyncSession, token: str) -> User:
    """Shared by the HTTP Auth Gate and the chat WebSocket handshake."""
    user_id = user_id_from_token(token)
    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError(message="User not found")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Access token required")
    return await load_user_from_token(db, credentials.credentials)
