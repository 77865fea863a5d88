"""
SkillSwap Backend — OAuth Provider Client Tests
=================================================

What:  Tests for turning Google / Facebook / LinkedIn credentials into an OAuthProfile.
How:   httpx.MockTransport stands in for the provider APIs and a stub
       verifier for google-auth, so no request leaves the process.

What we test:
    ✅ Facebook profile + photo extraction and the Graph query sent
    ✅ LinkedIn code exchange, /me and /emailAddress
    ✅ 4xx → AuthenticationError, 5xx / network failure → ExternalServiceError
    ✅ Missing email → AuthenticationError
    ✅ Google claims are used only after verification against the client id
    ✅ The facebook-login route creates an account from the fetched profile
    ✅ A Facebook login for an email held by a Google account is refused
"""

import httpx
import pytest
from google.auth.exceptions import TransportError

from skillswap.config import settings
from skillswap.exceptions import AuthenticationError, ExternalServiceError
from skillswap.schemas.user import FacebookLoginRequest, GoogleLoginRequest, LinkedInLoginRequest
from skillswap.services.oauth_service import OAuthService

FACEBOOK_PROFILE = {
    "id": "fb-1",
    "name": "Fay Book",
    "email": "fay@example.com",
    "picture": {"data": {"url": "https://fb/photo.jpg"}},
}


def _service(handler) -> OAuthService:
    return OAuthService(transport=httpx.MockTransport(handler))


class TestFacebookProfile:

    @pytest.mark.asyncio
    async def test_profile(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=FACEBOOK_PROFILE)

        profile = await _service(handler).facebook_profile(
            FacebookLoginRequest(access_token="fb-token", user_id="fb-1")
        )

        assert profile.provider == "facebook"
        assert profile.email == "fay@example.com"
        assert profile.name == "Fay Book"
        assert profile.photo_url == "https://fb/photo.jpg"
        assert seen["path"].endswith("/fb-1")
        assert seen["params"]["access_token"] == "fb-token"
        assert "email" in seen["params"]["fields"]

    @pytest.mark.asyncio
    async def test_rejected_token(self):
        service = _service(lambda request: httpx.Response(400, json={"error": "bad token"}))
        with pytest.raises(AuthenticationError):
            await service.facebook_profile(FacebookLoginRequest(access_token="x", user_id="1"))

    @pytest.mark.asyncio
    async def test_provider_down(self):
        service = _service(lambda request: httpx.Response(503))
        with pytest.raises(ExternalServiceError):
            await service.facebook_profile(FacebookLoginRequest(access_token="x", user_id="1"))

    @pytest.mark.asyncio
    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalServiceError):
            await _service(handler).facebook_profile(
                FacebookLoginRequest(access_token="x", user_id="1")
            )

    @pytest.mark.asyncio
    async def test_profile_without_email(self):
        service = _service(lambda request: httpx.Response(200, json={"id": "1", "name": "No Mail"}))
        with pytest.raises(AuthenticationError):
            await service.facebook_profile(FacebookLoginRequest(access_token="x", user_id="1"))

class TestGoogleProfile:

    CLAIMS = {
        "iss": "https://accounts.google.com",
        "email": "gina@example.com",
        "email_verified": True,
        "name": "Gina",
        "picture": "https://p/g.png",
    }

    @pytest.fixture(autouse=True)
    def _client_id(self, monkeypatch):
        monkeypatch.setattr(settings, "google_client_id", "web-client-id")

    @pytest.mark.asyncio
    async def test_profile_from_verified_claims(self):
        seen = {}

        def verifier(token, audience):
            seen.update(token=token, audience=audience)
            return dict(self.CLAIMS)

        profile = await OAuthService(google_verifier=verifier).google_profile(
            GoogleLoginRequest(id_token="id-token")
        )

        assert seen == {"token": "id-token", "audience": "web-client-id"}
        assert profile.provider == "google"
        assert profile.email == "gina@example.com"
        assert profile.name == "Gina"
        assert profile.photo_url == "https://p/g.png"

    @pytest.mark.asyncio
    async def test_invalid_token(self):
        def verifier(token, audience):
            raise ValueError("Token expired")

        with pytest.raises(AuthenticationError):
            await OAuthService(google_verifier=verifier).google_profile(
                GoogleLoginRequest(id_token="expired")
            )

    @pytest.mark.asyncio
    async def test_unverified_email(self):
        claims = {**self.CLAIMS, "email_verified": False}
        service = OAuthService(google_verifier=lambda token, audience: claims)
        with pytest.raises(AuthenticationError, match="verified email"):
            await service.google_profile(GoogleLoginRequest(id_token="id-token"))

    @pytest.mark.asyncio
    async def test_certificates_unreachable(self):
        def verifier(token, audience):
            raise TransportError("connection refused")

        with pytest.raises(ExternalServiceError):
            await OAuthService(google_verifier=verifier).google_profile(
                GoogleLoginRequest(id_token="id-token")
            )

    @pytest.mark.asyncio
    async def test_refused_without_client_id(self, monkeypatch):
        monkeypatch.setattr(settings, "google_client_id", "")
        service = OAuthService(google_verifier=lambda token, audience: dict(self.CLAIMS))
        with pytest.raises(AuthenticationError, match="not configured"):
            await service.google_profile(GoogleLoginRequest(id_token="id-token"))



class TestLinkedInProfile:

    @pytest.mark.asyncio
    async def test_profile(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                assert b"grant_type=authorization_code" in request.content
                assert b"code=auth-code" in request.content
                return httpx.Response(200, json={"access_token": "li-token"})
            assert request.headers["Authorization"] == "Bearer li-token"
            if request.url.path.endswith("/me"):
                return httpx.Response(
                    200, json={"localizedFirstName": "Lin", "localizedLastName": "Kedin"}
                )
            return httpx.Response(
                200,
                json={"elements": [{"handle~": {"emailAddress": "lin@example.com"}}]},
            )

        profile = await _service(handler).linkedin_profile(
            LinkedInLoginRequest(code="auth-code", redirect_uri="http://localhost:3000/cb")
        )

        assert profile.provider == "linkedin"
        assert profile.email == "lin@example.com"
        assert profile.name == "Lin Kedin"

    @pytest.mark.asyncio
    async def test_code_exchange_without_token(self):
        service = _service(lambda request: httpx.Response(200, json={}))
        with pytest.raises(AuthenticationError):
            await service.linkedin_profile(
                LinkedInLoginRequest(code="c", redirect_uri="http://localhost/cb")
            )

    @pytest.mark.asyncio
    async def test_missing_email(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"access_token": "li-token"})
            if request.url.path.endswith("/me"):
                return httpx.Response(200, json={"localizedFirstName": "Lin"})
            return httpx.Response(200, json={"elements": []})

        with pytest.raises(AuthenticationError):
            await _service(handler).linkedin_profile(
                LinkedInLoginRequest(code="c", redirect_uri="http://localhost/cb")
            )


class TestFacebookLoginRoute:

    @pytest.mark.asyncio
    async def test_creates_account(self, test_client, monkeypatch):
        from skillswap.routes import users

        stub = _service(lambda request: httpx.Response(200, json=FACEBOOK_PROFILE))
        monkeypatch.setattr(users, "oauth_service", stub)

        response = await test_client.post(
            "/api/users/facebook-login", json={"accessToken": "fb-token", "userID": "fb-1"}
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["email"] == "fay@example.com"
        assert user["oauthProvider"] == "facebook"
        assert user["photoUrl"] == "https://fb/photo.jpg"

    @pytest.mark.asyncio
    async def test_refused_for_account_of_another_provider(self, test_client, monkeypatch):
        from skillswap.routes import users

        monkeypatch.setattr(settings, "google_client_id", "web-client-id")
        google_claims = {"email": "fay@example.com", "email_verified": True, "name": "Fay"}
        monkeypatch.setattr(
            users, "oauth_service", OAuthService(google_verifier=lambda token, audience: google_claims)
        )
        created = await test_client.post("/api/users/google-login", json={"idToken": "t"})
        assert created.status_code == 200

        stub = _service(lambda request: httpx.Response(200, json=FACEBOOK_PROFILE))
        monkeypatch.setattr(users, "oauth_service", stub)
        response = await test_client.post(
            "/api/users/facebook-login", json={"accessToken": "fb-token", "userID": "fb-1"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_provider_down_is_502(self, test_client, monkeypatch):
        from skillswap.routes import users

        monkeypatch.setattr(users, "oauth_service", _service(lambda request: httpx.Response(500)))

        response = await test_client.post(
            "/api/users/facebook-login", json={"accessToken": "fb-token", "userID": "fb-1"}
        )
        assert response.status_code == 502
        assert response.json()["error"] == "external_service_error"
