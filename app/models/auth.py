from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str
    next: str | None = None


class LoginResponse(BaseModel):
    redirect_to: str


class LoginPage(BaseModel):
    """What the login surface needs to render: where to go after sign-in."""

    next: str
    reset_password_url: str = "/auth/reset-password"


class ResetPasswordRequest(BaseModel):
    email: str


class ResetPasswordResponse(BaseModel):
    sent: bool = True
    message: str = "If that email is registered, a reset link has been sent."


class StaffUser(BaseModel):
    id: str
    email: str | None = None


class ResetPasswordPage(BaseModel):
    """Landing target of the emailed reset link.

    The provider appends the recovery access token to the link; the page posts
    it back with the new password to ``update_url``.
    """

    update_url: str = "/auth/update-password"
    min_password_length: int


class UpdatePasswordRequest(BaseModel):
    access_token: str
    password: str


class UpdatePasswordResponse(BaseModel):
    updated: bool = True
    redirect_to: str = "/auth/login"
    message: str = "Password updated. Please log in."
