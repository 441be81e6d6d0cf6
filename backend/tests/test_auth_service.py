"""
TIL Backend — Auth Service Tests
================================

What:  Password hashing, the basic/bearer/session checks and the Google
       find-or-create flow.
"""

from uuid import uuid4

import httpx
import pytest

from tilapp.repositories import TokenRepository, UserRepository
from tilapp.services.auth_service import (
    INVALID_CREDENTIALS,
    MISSING_CREDENTIALS,
    NOT_LOGGED_IN,
    REAUTHORIZE,
    SESSION_USER_KEY,
    AuthService,
    csrf_token_matches,
    ensure_csrf_token,
    hash_password,
    log_in_session,
    log_out_session,
    verify_password,
)
from tilapp.services.oauth_service import GoogleOAuthService


class TestPasswordHashing:

    def test_hash_verifies(self):
        hashed = hash_password("correct horse")

        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_empty_hash_never_matches(self):
        assert not verify_password("", "")
        assert not verify_password("anything", "")

    def test_malformed_hash_does_not_raise(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")


class TestSessionHelpers:

    def test_csrf_token_is_stable_per_session(self):
        session = {}
        token = ensure_csrf_token(session)

        assert ensure_csrf_token(session) == token
        assert csrf_token_matches(session, token)
        assert not csrf_token_matches(session, "forged")
        assert not csrf_token_matches(session, None)
        assert not csrf_token_matches({}, token)

    def test_log_out_clears_user_and_csrf(self):
        session = {"csrf_token": "abc", SESSION_USER_KEY: str(uuid4()), "other": 1}

        log_out_session(session)

        assert session == {"other": 1}


class TestAuthenticate:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_basic_success(self, db_session):
        user = await self.service.register(db_session, name="Alice", username="alice", password="pw-12345")

        result = await self.service.authenticate_basic(db_session, "alice", "pw-12345")

        assert result.ok
        assert result.user.id == user.id

    @pytest.mark.asyncio
    async def test_basic_wrong_password(self, db_session):
        await self.service.register(db_session, name="Alice", username="alice", password="pw-12345")

        result = await self.service.authenticate_basic(db_session, "alice", "nope")

        assert not result.ok
        assert result.failure == INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_basic_unknown_user(self, db_session):
        result = await self.service.authenticate_basic(db_session, "ghost", "pw")

        assert result.failure == INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_basic_missing_credentials(self, db_session):
        result = await self.service.authenticate_basic(db_session, None, None)

        assert result.failure == MISSING_CREDENTIALS

    @pytest.mark.asyncio
    async def test_oauth_only_account_cannot_use_password(self, db_session):
        await UserRepository(db_session).create(
            name="G", username="g@example.com", password_hash="", external_identity="google:1"
        )

        result = await self.service.authenticate_basic(db_session, "g@example.com", "")

        assert not result.ok

    @pytest.mark.asyncio
    async def test_bearer_success_and_failure(self, db_session):
        user = await self.service.register(db_session, name="Alice", username="alice", password="pw-12345")
        token = await self.service.issue_token(db_session, user)

        assert (await self.service.authenticate_bearer(db_session, token.value)).user.id == user.id
        assert (await self.service.authenticate_bearer(db_session, "bogus")).failure == INVALID_CREDENTIALS
        assert (await self.service.authenticate_bearer(db_session, None)).failure == MISSING_CREDENTIALS

    @pytest.mark.asyncio
    async def test_each_login_issues_a_new_token(self, db_session):
        user = await self.service.register(db_session, name="Alice", username="alice", password="pw-12345")

        first = await self.service.issue_token(db_session, user)
        second = await self.service.issue_token(db_session, user)

        assert first.value != second.value
        assert await TokenRepository(db_session).find_by_value(first.value) is not None

    @pytest.mark.asyncio
    async def test_session_resolution(self, db_session):
        user = await self.service.register(db_session, name="Alice", username="alice", password="pw-12345")
        session = {}
        log_in_session(session, user)

        assert (await self.service.authenticate_session(db_session, session)).user.id == user.id
        assert (await self.service.authenticate_session(db_session, {})).failure == NOT_LOGGED_IN

    @pytest.mark.asyncio
    async def test_session_with_stale_or_garbage_id_is_cleared(self, db_session):
        for raw in (str(uuid4()), "not-a-uuid"):
            session = {SESSION_USER_KEY: raw}

            result = await self.service.authenticate_session(db_session, session)

            assert result.failure == NOT_LOGGED_IN
            assert SESSION_USER_KEY not in session


def _google(profile_status=200, profile=None) -> GoogleOAuthService:
    profile = profile or {"id": "1001", "email": "ada@example.com", "name": "Ada Lovelace"}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/token"):
            return httpx.Response(200, json={"access_token": "access"})
        return httpx.Response(profile_status, json=profile)

    return GoogleOAuthService(
        client_id="id", client_secret="secret", transport=httpx.MockTransport(handler)
    )


class TestGoogleLogin:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_first_login_creates_passwordless_user(self, db_session):
        result = await self.service.login_with_google(db_session, _google(), "code")

        assert result.ok
        user = result.user
        assert user.username == "ada@example.com"
        assert user.name == "Ada Lovelace"
        assert user.password_hash == ""
        assert user.external_identity == "google:1001"

    @pytest.mark.asyncio
    async def test_second_login_finds_same_user(self, db_session):
        first = await self.service.login_with_google(db_session, _google(), "code")
        second = await self.service.login_with_google(db_session, _google(), "code")

        assert first.user.id == second.user.id
        assert len(await UserRepository(db_session).list_all()) == 1

    @pytest.mark.asyncio
    async def test_existing_username_is_linked(self, db_session):
        existing = await self.service.register(
            db_session, name="Ada", username="ada@example.com", password="pw-12345"
        )

        result = await self.service.login_with_google(db_session, _google(), "code")

        assert result.user.id == existing.id
        assert result.user.external_identity == "google:1001"

    @pytest.mark.asyncio
    async def test_rejected_access_token_asks_for_reauthorization(self, db_session):
        result = await self.service.login_with_google(db_session, _google(profile_status=401), "code")

        assert not result.ok
        assert result.failure == REAUTHORIZE
        assert await UserRepository(db_session).list_all() == []
