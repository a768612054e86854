import logging

from fastapi import APIRouter, HTTPException, Response

from app.config import MIN_PASSWORD_LENGTH, SESSION_COOKIE_NAME, SESSION_COOKIE_SECURE
from app.models.auth import (
    LoginPage,
    LoginRequest,
    LoginResponse,
    ResetPasswordPage,
    ResetPasswordRequest,
    ResetPasswordResponse,
    UpdatePasswordRequest,
    UpdatePasswordResponse,
)
from app.services.auth import (
    AuthError,
    reset_password_for_email,
    safe_redirect,
    sign_in_with_password,
    update_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
# Target of the emailed reset link, served at the site root
reset_link_router = APIRouter(tags=["auth"])


@router.get("/login", response_model=LoginPage)
async def login_page(next: str | None = None):
    return LoginPage(next=safe_redirect(next))


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, response: Response):
    """Sign in with the identity provider and start a staff session."""
    try:
        token = await sign_in_with_password(body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None

    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    logger.info("Staff session started for %s", body.email)
    return LoginResponse(redirect_to=safe_redirect(body.next))


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"logged_out": True}


@router.post("/reset-password", response_model=ResetPasswordResponse)
async def reset_password(body: ResetPasswordRequest):
    if not body.email.strip():
        raise HTTPException(status_code=400, detail="Please enter your email.")
    try:
        await reset_password_for_email(body.email.strip())
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    return ResetPasswordResponse()


@reset_link_router.get("/reset-password", response_model=ResetPasswordPage)
async def reset_password_page():
    return ResetPasswordPage(min_password_length=MIN_PASSWORD_LENGTH)


@router.post("/update-password", response_model=UpdatePasswordResponse)
async def update_password_route(body: UpdatePasswordRequest):
    """Finish a reset: set the new password with the link's recovery token."""
    if not body.access_token:
        raise HTTPException(status_code=401, detail="Reset link expired. Please request a new one.")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
        )
    try:
        await update_password(body.access_token, body.password)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from None
    return UpdatePasswordResponse()
