from pydantic import BaseModel

# Request fields are optional so that missing values reach the account
# manager and come back as a failure envelope rather than a 422.


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class VerifyEmailRequest(BaseModel):
    otp: str | int | None = None


class SendResetOTPRequest(BaseModel):
    email: str | None = None


class ResetPasswordRequest(BaseModel):
    email: str | None = None
    otp: str | int | None = None
    newPassword: str | None = None


class AuthResponse(BaseModel):
    """Uniform result envelope."""

    ok: bool
    message: str | None = None


class UserData(BaseModel):
    name: str
    isAccountVerified: bool


class UserDataResponse(AuthResponse):
    userData: UserData | None = None
