"""
TIL Backend — Authentication Service
====================================

What:  Password hashing plus the four ways a request can prove who it is:
       basic credentials, bearer token, website session, Google OAuth.
How:   Each authenticate_* call returns an AuthResult value. Callers decide
       what a failure means: the API turns it into a 401, the website
       redirects to the login page.
Who:   routes/deps.py (API and website dependencies), website login/OAuth
       handlers, users API (password hashing on create).

Session keys (Starlette SessionMiddleware, signed cookie):
    user_id      → id of the logged-in user
    csrf_token   → token echoed by create/edit forms
    oauth_state  → state sent to Google, checked on callback
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Any, MutableMapping, Optional
from uuid import UUID

import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from tilapp.config import settings
from tilapp.models.token import Token
from tilapp.models.user import User
from tilapp.repositories.token_repository import TokenRepository
from tilapp.repositories.user_repository import UserRepository
from tilapp.services.oauth_service import GoogleOAuthService

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"
SESSION_CSRF_KEY = "csrf_token"
SESSION_OAUTH_STATE_KEY = "oauth_state"

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


# ══════════════════════════════════════════════════════════════════════════
# Password Hashing
# ══════════════════════════════════════════════════════════════════════════

def hash_password(password: str) -> str:
    """Hash a password with bcrypt at the configured work factor."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a password against a stored bcrypt hash.

    An empty hash (accounts created through OAuth) never matches.
    """
    if not password_hash:
        return False
    try:
        return bool(
            bcrypt.checkpw(
                password.encode("utf-8")[:BCRYPT_MAX_BYTES],
                password_hash.encode("utf-8"),
            )
        )
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


# ══════════════════════════════════════════════════════════════════════════
# Results
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AuthResult:
    """Outcome of an authentication attempt."""
    user: Optional[User] = None
    failure: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.user is not None

    @classmethod
    def success(cls, user: User) -> "AuthResult":
        return cls(user=user)

    @classmethod
    def failed(cls, reason: str) -> "AuthResult":
        return cls(failure=reason)


# Failure reasons
MISSING_CREDENTIALS = "missing_credentials"
INVALID_CREDENTIALS = "invalid_credentials"
NOT_LOGGED_IN = "not_logged_in"
REAUTHORIZE = "reauthorize"


# ══════════════════════════════════════════════════════════════════════════
# Session Helpers
# ══════════════════════════════════════════════════════════════════════════

def ensure_csrf_token(session: MutableMapping[str, Any]) -> str:
    """Return the session's CSRF token, creating one on first use."""
    token = session.get(SESSION_CSRF_KEY)
    if not token:
        token = secrets.token_urlsafe(16)
        session[SESSION_CSRF_KEY] = token
    return token


def csrf_token_matches(session: MutableMapping[str, Any], submitted: Optional[str]) -> bool:
    expected = session.get(SESSION_CSRF_KEY)
    if not expected or not submitted:
        return False
    return secrets.compare_digest(expected, submitted)


def log_in_session(session: MutableMapping[str, Any], user: User) -> None:
    session[SESSION_USER_KEY] = str(user.id)


def log_out_session(session: MutableMapping[str, Any]) -> None:
    session.pop(SESSION_USER_KEY, None)
    session.pop(SESSION_CSRF_KEY, None)


def new_oauth_state(session: MutableMapping[str, Any]) -> str:
    state = secrets.token_urlsafe(16)
    session[SESSION_OAUTH_STATE_KEY] = state
    return state


def pop_oauth_state(session: MutableMapping[str, Any]) -> Optional[str]:
    return session.pop(SESSION_OAUTH_STATE_KEY, None)


# ══════════════════════════════════════════════════════════════════════════
# Authentication Service
# ══════════════════════════════════════════════════════════════════════════

class AuthService:
    """
    Stateless; every method receives the request's session.

    Password checks run in the threadpool so bcrypt does not block the
    event loop.
    """

    async def authenticate_basic(
        self, db: AsyncSession, username: Optional[str], password: Optional[str]
    ) -> AuthResult:
        if not username or password is None:
            return AuthResult.failed(MISSING_CREDENTIALS)

        user = await UserRepository(db).find_by_username(username)
        if user is None:
            logger.info("Login failed: unknown username '%s'", username)
            return AuthResult.failed(INVALID_CREDENTIALS)

        if not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.info("Login failed: wrong password for '%s'", username)
            return AuthResult.failed(INVALID_CREDENTIALS)

        return AuthResult.success(user)

    async def authenticate_bearer(self, db: AsyncSession, token_value: Optional[str]) -> AuthResult:
        if not token_value:
            return AuthResult.failed(MISSING_CREDENTIALS)

        token = await TokenRepository(db).find_by_value(token_value)
        if token is None or not token.is_valid:
            return AuthResult.failed(INVALID_CREDENTIALS)

        user = await UserRepository(db).get(token.user_id)
        if user is None:
            return AuthResult.failed(INVALID_CREDENTIALS)
        return AuthResult.success(user)

    async def authenticate_session(
        self, db: AsyncSession, session: MutableMapping[str, Any]
    ) -> AuthResult:
        raw_id = session.get(SESSION_USER_KEY)
        if not raw_id:
            return AuthResult.failed(NOT_LOGGED_IN)

        try:
            user_id = UUID(raw_id)
        except (TypeError, ValueError):
            session.pop(SESSION_USER_KEY, None)
            return AuthResult.failed(NOT_LOGGED_IN)

        user = await UserRepository(db).get(user_id)
        if user is None:
            # The account was deleted after login
            session.pop(SESSION_USER_KEY, None)
            return AuthResult.failed(NOT_LOGGED_IN)
        return AuthResult.success(user)

    async def issue_token(self, db: AsyncSession, user: User) -> Token:
        token = await TokenRepository(db).create_for_user(user)
        logger.info("Token issued for user %s", user.id)
        return token

    async def register(self, db: AsyncSession, name: str, username: str, password: str) -> User:
        """
        Create a password account.

        Raises:
            ConflictError: The username is taken.
        """
        password_hash = await run_in_threadpool(hash_password, password)
        return await UserRepository(db).create(
            name=name,
            username=username,
            password_hash=password_hash,
        )

    async def login_with_google(
        self, db: AsyncSession, oauth: GoogleOAuthService, code: str
    ) -> AuthResult:
        """
        Finish a Google login: exchange the code, read the profile and find
        or create the local user.

        Users are matched by external identity first, then by username ==
        e-mail. A first-time visitor gets an account with no password.

        Returns:
            AuthResult.failed(REAUTHORIZE) when Google rejects the access
            token; the caller should restart the OAuth flow.

        Raises:
            OAuthProviderError: Google could not be reached or answered
                with an unexpected status.
        """
        access_token = await oauth.exchange_code(code)
        info = await oauth.fetch_user_info(access_token)
        if info is None:
            return AuthResult.failed(REAUTHORIZE)

        identity = f"google:{info.id}"
        users = UserRepository(db)

        user = await users.find_by_external_identity(identity)
        if user is None:
            user = await users.find_by_username(info.email)
            if user is not None and user.external_identity is None:
                user.external_identity = identity
                await users.save(user)

        if user is None:
            user = await users.create(
                name=info.name or info.email,
                username=info.email,
                password_hash="",
                external_identity=identity,
            )
            logger.info("Created user %s from Google login", user.id)

        return AuthResult.success(user)


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
