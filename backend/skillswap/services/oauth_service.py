"""
SkillSwap Backend — OAuth Provider Client
===========================================

What:  Turns what the frontend posts after a social login into an OAuthProfile.
Why:   Each provider hands the frontend something different (a profile, an
       access token, an authorization code); AuthService only wants an email
       and a name.
How:   httpx.AsyncClient calls to the provider APIs, bounded by
       settings.oauth_timeout_seconds.

Providers:
    google:   The frontend posts the ID token from Google Sign-In; its
              signature, audience (settings.google_client_id) and expiry are
              checked with google-auth, and the profile comes from its claims
    facebook: GET {graph}/{userID}?fields=id,name,email,picture.type(large)
    linkedin: POST accessToken (authorization_code grant), then GET /me and
              GET /emailAddress with the bearer token

Failure mapping:
    Provider unreachable / timeout / 5xx → ExternalServiceError (502)
    Provider rejects the credentials, or returns no email → AuthenticationError (401)
    Google ID token invalid, expired or for an unverified email → AuthenticationError (401)
    Provider tokens are never logged.
"""

import logging
from typing import Any, Callable, Dict, Optional

import httpx
from fastapi.concurrency import run_in_threadpool
from google.auth.exceptions import GoogleAuthError, TransportError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from skillswap.config import settings
from skillswap.exceptions import AuthenticationError, ExternalServiceError
from skillswap.schemas.user import (
    FacebookLoginRequest,
    GoogleLoginRequest,
    LinkedInLoginRequest,
)
from skillswap.services.auth_service import OAuthProfile

logger = logging.getLogger(__name__)

GoogleVerifier = Callable[[str, str], Dict[str, Any]]


def verify_google_id_token(token: str, audience: str) -> Dict[str, Any]:
    """
    Return the claims of a Google-signed ID token issued for `audience`.

    Blocking: google-auth fetches Google's signing certificates with requests.
    Raises ValueError for a bad signature, audience, issuer or expiry.
    """
    return google_id_token.verify_oauth2_token(token, google_requests.Request(), audience)


class OAuthService:
    """
    Args:
        transport:       Optional httpx transport; tests pass httpx.MockTransport
                         so no request leaves the process.
        google_verifier: Callable(token, audience) -> claims. Defaults to
                         verify_google_id_token; tests pass a stub.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        google_verifier: Optional[GoogleVerifier] = None,
    ):
        self._transport = transport
        self._google_verifier = google_verifier or verify_google_id_token

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=settings.oauth_timeout_seconds,
            transport=self._transport,
        )

    async def _send(
        self, client: httpx.AsyncClient, provider: str, method: str, url: str, **kwargs: Any
    ) -> Dict[str, Any]:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s API unreachable: %s", provider, type(exc).__name__)
            raise ExternalServiceError(
                message=f"{provider.capitalize()} login is temporarily unavailable",
                context={"provider": provider},
            ) from exc

        if response.status_code >= 500:
            logger.warning("%s API returned %d", provider, response.status_code)
            raise ExternalServiceError(
                message=f"{provider.capitalize()} login is temporarily unavailable",
                context={"provider": provider, "status": response.status_code},
            )
        if response.status_code >= 400:
            raise AuthenticationError(message=f"{provider.capitalize()} login failed")

        try:
            return response.json()
        except ValueError as exc:
            raise ExternalServiceError(
                message=f"{provider.capitalize()} returned an unreadable response",
                context={"provider": provider},
            ) from exc

    # ── Providers ─────────────────────────────────────────────────────────

    async def google_profile(self, payload: GoogleLoginRequest) -> OAuthProfile:
        if not settings.google_client_id:
            raise AuthenticationError(message="Google login is not configured")

        try:
            claims = await run_in_threadpool(
                self._google_verifier, payload.id_token, settings.google_client_id
            )
        except TransportError as exc:
            logger.warning("google certificates unreachable: %s", type(exc).__name__)
            raise ExternalServiceError(
                message="Google login is temporarily unavailable",
                context={"provider": "google"},
            ) from exc
        except (ValueError, GoogleAuthError) as exc:
            raise AuthenticationError(message="Google login failed") from exc

        email = claims.get("email")
        if not email or claims.get("email_verified") is not True:
            raise AuthenticationError(message="Google account has no verified email address")

        return OAuthProfile(
            provider="google",
            email=email,
            name=claims.get("name") or email,
            photo_url=claims.get("picture"),
        )

    async def facebook_profile(self, payload: FacebookLoginRequest) -> OAuthProfile:
        async with self._client() as client:
            data = await self._send(
                client,
                "facebook",
                "GET",
                f"{settings.facebook_graph_url}/{payload.user_id}",
                params={
                    "fields": "id,name,email,picture.type(large)",
                    "access_token": payload.access_token,
                },
            )

        email = data.get("email")
        if not email:
            raise AuthenticationError(message="Facebook account has no email address")

        photo_url = ((data.get("picture") or {}).get("data") or {}).get("url")
        return OAuthProfile(
            provider="facebook",
            email=email,
            name=data.get("name") or email,
            photo_url=photo_url,
        )

    async def linkedin_profile(self, payload: LinkedInLoginRequest) -> OAuthProfile:
        async with self._client() as client:
            token_data = await self._send(
                client,
                "linkedin",
                "POST",
                settings.linkedin_token_url,
                data={
                    "grant_type": "authorization_code",
                    "code": payload.code,
                    "redirect_uri": payload.redirect_uri,
                    "client_id": settings.linkedin_client_id,
                    "client_secret": settings.linkedin_client_secret,
                },
            )
            access_token = token_data.get("access_token")
            if not access_token:
                raise AuthenticationError(message="Linkedin login failed")

            headers = {"Authorization": f"Bearer {access_token}"}
            profile = await self._send(
                client, "linkedin", "GET", f"{settings.linkedin_api_url}/me", headers=headers
            )
            email_data = await self._send(
                client,
                "linkedin",
                "GET",
                f"{settings.linkedin_api_url}/emailAddress",
                params={"q": "members", "projection": "(elements*(handle~))"},
                headers=headers,
            )

        try:
            email = email_data["elements"][0]["handle~"]["emailAddress"]
        except (KeyError, IndexError, TypeError) as exc:
            raise AuthenticationError(message="Linkedin account has no email address") from exc

        name = " ".join(
            part
            for part in (profile.get("localizedFirstName"), profile.get("localizedLastName"))
            if part
        )
        return OAuthProfile(provider="linkedin", email=email, name=name or email)


# Singleton instance
oauth_service = OAuthService()
