"""
SkillSwap Backend — Password Hashing & Access Tokens
======================================================

What:  bcrypt password hashing and JWT issue/verify helpers.
Why:   Every password login and every authenticated request goes through here.
How:   bcrypt for hashes (salt embedded in the hash string); python-jose for
       HS256 tokens signed with settings.jwt_secret.
Who:   AuthService (hash/verify/issue), the Auth Gate dependency and the chat
       WebSocket (decode).

Token claims:
    sub:   user id (string UUID)
    email: user email at issue time
    name:  user name at issue time
    exp:   expiry (default 7 days)

Tokens are never logged.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from skillswap.config import settings
from skillswap.exceptions import AuthenticationError


# ── Passwords ─────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """
    Check `password` against a stored bcrypt hash.

    OAuth accounts have no hash; they never match.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# ── Tokens ────────────────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    email: str,
    name: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": str(user_id),
        "email": email,
        "name": name,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise AuthenticationError(message="Token expired") from exc
    except JWTError as exc:
        raise AuthenticationError(message="Invalid token") from exc


def user_id_from_token(token: str) -> uuid.UUID:
    """Decode a token and return its subject as a UUID."""
    payload = decode_access_token(token)
    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError(message="Invalid token payload")
    try:
        return uuid.UUID(str(subject))
    except ValueError as exc:
        raise AuthenticationError(message="Invalid token subject") from exc
