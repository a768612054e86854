"""Staff authentication against a GoTrue-compatible identity provider.

The service never stores credentials. Sign-in exchanges email/password for an
access token, which is kept in the staff session cookie and checked against
the provider's user endpoint on every staff request.
"""

import logging
from urllib.parse import quote

import httpx
from fastapi import Request

from app.config import (
    AUTH_API_KEY,
    AUTH_PROVIDER_URL,
    AUTH_TIMEOUT_SECONDS,
    PUBLIC_BASE_URL,
    SESSION_COOKIE_NAME,
)
from app.models.auth import StaffUser

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT = "/patients"
INVALID_CREDENTIALS = "Invalid email or password. Please try again."


class AuthError(Exception):
    """The identity provider rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code


class StaffLoginRequired(Exception):
    """Raised by the staff guard; the app turns it into a login redirect."""

    def __init__(self, next_url: str):
        super().__init__(next_url)
        self.next_url = next_url

    @property
    def login_url(self) -> str:
        return f"/auth/login?next={quote(self.next_url, safe='/')}"


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=AUTH_PROVIDER_URL, timeout=AUTH_TIMEOUT_SECONDS)


def _headers(token: str | None = None) -> dict[str, str]:
    headers = {"apikey": AUTH_API_KEY, "Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def safe_redirect(next_url: str | None) -> str:
    """Only same-site absolute paths are honored as post-login targets."""
    if not next_url or not next_url.startswith("/") or next_url.startswith("//"):
        return DEFAULT_REDIRECT
    return next_url


async def sign_in_with_password(email: str, password: str) -> str:
    """Exchange credentials for an access token."""
    try:
        async with _client() as client:
            resp = await client.post(
                "/auth/v1/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
                headers=_headers(),
            )
    except httpx.HTTPError as e:
        logger.error("Identity provider unreachable during sign-in: %s", e)
        raise AuthError("Authentication service unavailable", status_code=502) from e

    if resp.status_code != 200:
        logger.info("Sign-in rejected for %s (status %d)", email, resp.status_code)
        raise AuthError(INVALID_CREDENTIALS)

    token = resp.json().get("access_token")
    if not token:
        raise AuthError(INVALID_CREDENTIALS)
    return token


async def get_user(token: str) -> StaffUser:
    try:
        async with _client() as client:
            resp = await client.get("/auth/v1/user", headers=_headers(token))
    except httpx.HTTPError as e:
        logger.error("Identity provider unreachable during session check: %s", e)
        raise AuthError("Authentication service unavailable", status_code=502) from e

    if resp.status_code != 200:
        raise AuthError("Session expired")

    data = resp.json()
    return StaffUser(id=str(data.get("id", "")), email=data.get("email"))


async def reset_password_for_email(email: str) -> None:
    """Ask the provider to email a reset link pointing back at this service."""
    try:
        async with _client() as client:
            resp = await client.post(
                "/auth/v1/recover",
                params={"redirect_to": f"{PUBLIC_BASE_URL}/reset-password"},
                json={"email": email},
                headers=_headers(),
            )
    except httpx.HTTPError as e:
        logger.error("Identity provider unreachable during password reset: %s", e)
        raise AuthError("Authentication service unavailable", status_code=502) from e

    if resp.status_code >= 500:
        raise AuthError("Authentication service unavailable", status_code=502)
    if resp.status_code >= 400:
        logger.warning("Password reset rejected (status %d)", resp.status_code)
        raise AuthError("Unable to send reset email", status_code=400)
    logger.info("Password reset requested")


async def update_password(token: str, new_password: str) -> None:
    """Set a new password using the recovery token from the reset link."""
    try:
        async with _client() as client:
            resp = await client.put(
                "/auth/v1/user",
                json={"password": new_password},
                headers=_headers(token),
            )
    except httpx.HTTPError as e:
        logger.error("Identity provider unreachable during password update: %s", e)
        raise AuthError("Authentication service unavailable", status_code=502) from e

    if resp.status_code >= 500:
        raise AuthError("Authentication service unavailable", status_code=502)
    if resp.status_code in (401, 403):
        raise AuthError("Reset link expired. Please request a new one.")
    if resp.status_code >= 400:
        logger.warning("Password update rejected (status %d)", resp.status_code)
        raise AuthError("Error updating password.", status_code=400)
    logger.info("Password updated through reset link")


def _token_from_request(request: Request) -> str | None:
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth[len("Bearer "):] or None
    return None


async def require_staff(request: Request) -> StaffUser:
    """Dependency for staff routes: a valid provider session or a login redirect."""
    next_url = request.url.path
    if request.url.query:
        next_url = f"{next_url}?{request.url.query}"

    token = _token_from_request(request)
    if not token:
        raise StaffLoginRequired(next_url)

    try:
        return await get_user(token)
    except AuthError as e:
        if e.status_code != 401:
            raise
        raise StaffLoginRequired(next_url) from None
