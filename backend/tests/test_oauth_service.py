"""
TIL Backend — Google OAuth Client Tests
=======================================

What:  GoogleOAuthService against httpx.MockTransport (no network).

What we test:
    ✅ Consent URL carries client id, callback, scopes and state
    ✅ Code exchange success and failure
    ✅ Userinfo: 200 → profile, 401 → None, other → OAuthProviderError
    ✅ Transport errors retried, then surfaced as OAuthProviderError
"""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from tilapp.exceptions import OAuthProviderError
from tilapp.services.oauth_service import GoogleOAuthService, GoogleUserInfo


def _service(handler) -> GoogleOAuthService:
    return GoogleOAuthService(
        client_id="client-id",
        client_secret="client-secret",
        callback_url="http://testserver/oauth/google",
        transport=httpx.MockTransport(handler),
    )


class TestAuthorizationUrl:

    def test_contains_expected_parameters(self):
        service = _service(lambda request: httpx.Response(500))

        url = urlparse(service.authorization_url("xyz"))
        params = parse_qs(url.query)

        assert url.netloc == "accounts.google.com"
        assert params["client_id"] == ["client-id"]
        assert params["redirect_uri"] == ["http://testserver/oauth/google"]
        assert params["response_type"] == ["code"]
        assert params["scope"] == ["profile email"]
        assert params["state"] == ["xyz"]

    def test_enabled_requires_both_credentials(self):
        assert GoogleOAuthService(client_id="id", client_secret="secret").enabled
        assert not GoogleOAuthService(client_id="id", client_secret="").enabled


class TestExchangeCode:

    @pytest.mark.asyncio
    async def test_success_returns_access_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"access_token": "access-123", "token_type": "Bearer"})

        token = await _service(handler).exchange_code("the-code")

        assert token == "access-123"
        assert seen["form"]["code"] == ["the-code"]
        assert seen["form"]["grant_type"] == ["authorization_code"]

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        service = _service(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

        with pytest.raises(OAuthProviderError) as exc_info:
            await service.exchange_code("bad-code")

        assert exc_info.value.context["status"] == 400

    @pytest.mark.asyncio
    async def test_missing_token_raises(self):
        service = _service(lambda request: httpx.Response(200, json={}))

        with pytest.raises(OAuthProviderError):
            await service.exchange_code("the-code")

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self):
        service = _service(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(OAuthProviderError) as exc_info:
            await service.exchange_code("the-code")

        assert exc_info.value.context["stage"] == "token"

    @pytest.mark.asyncio
    async def test_non_object_body_raises(self):
        service = _service(lambda request: httpx.Response(200, json=["access-123"]))

        with pytest.raises(OAuthProviderError) as exc_info:
            await service.exchange_code("the-code")

        assert exc_info.value.context["stage"] == "token"


class TestFetchUserInfo:

    @pytest.mark.asyncio
    async def test_success_returns_profile(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer access-123"
            return httpx.Response(
                200, json={"id": "42", "email": "ada@example.com", "name": "Ada", "picture": "x"}
            )

        info = await _service(handler).fetch_user_info("access-123")

        assert info == GoogleUserInfo(id="42", email="ada@example.com", name="Ada")

    @pytest.mark.asyncio
    async def test_unauthorized_returns_none(self):
        service = _service(lambda request: httpx.Response(401))

        assert await service.fetch_user_info("expired") is None

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        service = _service(lambda request: httpx.Response(502))

        with pytest.raises(OAuthProviderError):
            await service.fetch_user_info("access-123")

    @pytest.mark.asyncio
    async def test_incomplete_profile_raises(self):
        service = _service(lambda request: httpx.Response(200, json={"name": "No Id"}))

        with pytest.raises(OAuthProviderError):
            await service.fetch_user_info("access-123")


class TestRetries:

    @pytest.mark.asyncio
    async def test_transient_transport_error_is_retried(self):
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] < 3:
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(200, json={"access_token": "after-retry"})

        assert await _service(handler).exchange_code("code") == "after-retry"
        assert calls["count"] == 3

    @pytest.mark.asyncio
    async def test_persistent_transport_error_raises_provider_error(self):
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(OAuthProviderError) as exc_info:
            await _service(handler).exchange_code("code")

        assert calls["count"] == 3
        assert exc_info.value.context["error_type"] == "ConnectTimeout"

    @pytest.mark.asyncio
    async def test_http_error_status_is_not_retried(self):
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            return httpx.Response(503)

        with pytest.raises(OAuthProviderError):
            await _service(handler).exchange_code("code")

        assert calls["count"] == 1
