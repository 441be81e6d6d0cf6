"""
TIL Backend — Route Dependencies
================================

What:  FastAPI dependencies that resolve "who is calling" for the API and the
       website, plus the per-request WebContext used by the HTML handlers.
How:   Every dependency delegates to AuthService and inspects the AuthResult.
       API dependencies raise AuthenticationError (→ 401 JSON). The website
       dependency never raises; handlers check `ctx.user` and redirect.

    API request ──HTTPBearer──▶ require_token_user ──▶ User | 401
    API login   ──HTTPBasic───▶ require_basic_user ──▶ User | 401
    HTML page   ──session─────▶ get_web_context    ──▶ WebContext(user | None)
"""

from dataclasses import dataclass
from typing import Any, Dict, MutableMapping, Optional

from fastapi import Depends, Request
from fastapi.responses import RedirectResponse
from fastapi.security import (
    HTTPAuthorizationCredentials,
    HTTPBasic,
    HTTPBasicCredentials,
    HTTPBearer,
)
from sqlalchemy.ext.asyncio import AsyncSession

from tilapp.database import get_db_session
from tilapp.exceptions import AuthenticationError, ForbiddenError
from tilapp.models.user import User
from tilapp.services.auth_service import (
    auth_service,
    csrf_token_matches,
    ensure_csrf_token,
)

# auto_error=False: missing credentials go through our own 401 handler
_bearer_scheme = HTTPBearer(auto_error=False)
_basic_scheme = HTTPBasic(auto_error=False)


# ══════════════════════════════════════════════════════════════════════════
# API
# ══════════════════════════════════════════════════════════════════════════

async def require_token_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """The user owning the bearer token, or 401."""
    token_value = credentials.credentials if credentials else None
    result = await auth_service.authenticate_bearer(db, token_value)
    if not result.ok:
        raise AuthenticationError(
            message="A valid bearer token is required",
            context={"reason": result.failure},
        )
    return result.user


async def require_basic_user(
    credentials: Optional[HTTPBasicCredentials] = Depends(_basic_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """The user matching HTTP Basic credentials, or 401."""
    username = credentials.username if credentials else None
    password = credentials.password if credentials else None
    result = await auth_service.authenticate_basic(db, username, password)
    if not result.ok:
        raise AuthenticationError(
            message="Invalid username or password",
            scheme="Basic",
            context={"reason": result.failure},
        )
    return result.user


# ══════════════════════════════════════════════════════════════════════════
# Website
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class WebContext:
    """
    What an HTML handler needs to know about the current visitor.

    Built once per request and passed explicitly; nothing about the visitor
    is stored on the request object.
    """
    session: MutableMapping[str, Any]
    user: Optional[User] = None

    @property
    def logged_in(self) -> bool:
        return self.user is not None

    @property
    def csrf_token(self) -> str:
        return ensure_csrf_token(self.session)

    def verify_csrf(self, submitted: Optional[str]) -> None:
        """
        Raises:
            ForbiddenError: The form's token does not match the session's.
        """
        if not csrf_token_matches(self.session, submitted):
            raise ForbiddenError(message="The form has expired. Please reload the page and try again.")

    def template_context(self, **values: Any) -> Dict[str, Any]:
        context = {"current_user": self.user, "logged_in": self.logged_in}
        context.update(values)
        return context


async def get_web_context(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> WebContext:
    result = await auth_service.authenticate_session(db, request.session)
    return WebContext(session=request.session, user=result.user)


def redirect_to(url: str) -> RedirectResponse:
    """303 so that a POST is followed by a GET."""
    return RedirectResponse(url=url, status_code=303)


def redirect_to_login() -> RedirectResponse:
    return redirect_to("/login")
