"""
TIL Backend — Google OAuth Client
=================================

What:  The three HTTP exchanges of a Google "authorization code" login:
       consent URL, code → access token, access token → profile.
How:   httpx.AsyncClient for the calls; tenacity retries transport-level
       failures (connection reset, timeouts) with exponential backoff.
       HTTP error statuses are not retried.
Who:   Website /login-google and /oauth/google handlers via AuthService.

Flow:
    Browser ──/login-google──▶ Google consent (state=<random>)
    Google  ──/oauth/google?code&state──▶ exchange_code ──▶ fetch_user_info
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tilapp.config import settings
from tilapp.exceptions import OAuthProviderError

logger = logging.getLogger(__name__)


class GoogleUserInfo(BaseModel):
    """Subset of https://www.googleapis.com/oauth2/v1/userinfo."""
    id: str
    email: str
    name: str = ""


class GoogleOAuthService:
    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v1/userinfo?alt=json"
    SCOPES = ("profile", "email")

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        callback_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            transport: Optional httpx transport; tests pass httpx.MockTransport
        """
        self.client_id = client_id if client_id is not None else settings.google_client_id
        self.client_secret = (
            client_secret if client_secret is not None else settings.google_client_secret
        )
        self.callback_url = callback_url or settings.google_callback_url
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, state: str) -> str:
        """Google consent page URL for this client and `state`."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.callback_url,
            "response_type": "code",
            "scope": " ".join(self.SCOPES),
            "state": state,
        }
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """
        Trade an authorization code for an access token.

        Raises:
            OAuthProviderError: Non-200 answer, missing token, or transport
                failure after retries.
        """
        response = await self._send(
            "POST",
            self.TOKEN_URL,
            data={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.callback_url,
                "grant_type": "authorization_code",
            },
        )
        if response.status_code != 200:
            logger.error("Google token exchange failed: HTTP %d", response.status_code)
            raise OAuthProviderError(
                message="Google login could not be completed. Please try again.",
                context={"stage": "token", "status": response.status_code},
            )

        try:
            body = response.json()
        except ValueError as e:
            raise OAuthProviderError(
                message="Google login could not be completed. Please try again.",
                context={"stage": "token", "error_type": type(e).__name__},
            ) from e

        access_token = body.get("access_token") if isinstance(body, dict) else None
        if not access_token:
            raise OAuthProviderError(
                message="Google login could not be completed. Please try again.",
                context={"stage": "token", "reason": "missing access_token"},
            )
        return access_token

    async def fetch_user_info(self, access_token: str) -> Optional[GoogleUserInfo]:
        """
        Read the signed-in Google profile.

        Returns:
            The profile, or None when Google answers 401 (the token was
            rejected and the user must authorize again).

        Raises:
            OAuthProviderError: Any other non-200 answer, an unusable body, or
                transport failure after retries.
        """
        response = await self._send(
            "GET",
            self.USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code == 401:
            logger.info("Google rejected the access token; re-authorization needed")
            return None
        if response.status_code != 200:
            logger.error("Google userinfo failed: HTTP %d", response.status_code)
            raise OAuthProviderError(context={"stage": "userinfo", "status": response.status_code})

        try:
            return GoogleUserInfo.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise OAuthProviderError(
                context={"stage": "userinfo", "error_type": type(e).__name__}
            ) from e

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._send_with_retry(method, url, **kwargs)
        except (RetryError, httpx.TransportError) as e:
            logger.error("Google unreachable at %s: %s", url, str(e))
            raise OAuthProviderError(
                context={"url": url, "error_type": type(e).__name__}
            ) from e

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential(multiplier=settings.retry_min_wait, max=settings.retry_max_wait),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _send_with_retry(self, method: str, url: str, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=settings.oauth_timeout,
            transport=self._transport,
        ) as client:
            return await client.request(method, url, **kwargs)


# ── Singleton Instance ────────────────────────────────────────────────────
google_oauth_service = GoogleOAuthService()
