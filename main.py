from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_utilities import repeat_every
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import clear_session_cookie, require_session, set_session_cookie
from config import CORS_ORIGINS, DEBUG, EXPIRED_OTP_CLEANUP_INTERVAL_SECONDS
from database import init_db
from dependencies import get_account_manager, get_account_store
from models import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SendResetOTPRequest,
    UserData,
    UserDataResponse,
    VerifyEmailRequest,
)
from services.account_service import (
    EMAIL_VERIFIED_MSG,
    LOGGED_OUT_MSG,
    PASSWORD_RESET_MSG,
    RESET_OTP_SENT_MSG,
    VERIFY_OTP_SENT_MSG,
    AccountManager,
)
from services.logs_service import configure_logging
from services.otp_service import utcnow
from services.response_guard import ResultSlot, guarded

# Config logging
logger = configure_logging(DEBUG)


# cron job to clear expired OTPs
@repeat_every(seconds=EXPIRED_OTP_CLEANUP_INTERVAL_SECONDS)
async def clear_expired_otps():
    rows = await get_account_store().clear_expired_otps(utcnow())
    if rows:
        logger.info(f"Expired OTP cleanup task completed, cleared {rows} entries")


# Initialize the account database
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up... Initializing database.")
    init_db()
    logger.info("Database initialized.")
    await clear_expired_otps()  # Initial cleanup on startup
    yield


app = FastAPI(
    title="Auth Service API",
    description="API for account registration, sessions, email verification and password reset",
    version="0.1.0",
    debug=DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "message": str(exc.detail)},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"ok": False, "message": "malformed request body"},
    )


# Create routers with /api prefix
router = APIRouter(prefix="/api/auth")
user_router = APIRouter(prefix="/api/user")


# Auth Routes
@router.post(
    "/register",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    tags=["Authentication"],
    summary="Register a new account",
    description="Create an account, start a session (token cookie) and send a welcome email. "
    "A failed welcome email does not fail the registration.",
)
async def register(
    request: RegisterRequest,
    response: Response,
    manager: AccountManager = Depends(get_account_manager),
):
    slot = ResultSlot()
    async with guarded(slot, "register"):
        session = await manager.register(request.name, request.email, request.password)
        set_session_cookie(response, manager.sessions, session)
        slot.set(AuthResponse(ok=True))
    return slot.result


@router.post(
    "/login",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    tags=["Authentication"],
    summary="Log in",
    description="Check the email and password and start a session (token cookie).",
)
async def login(
    request: LoginRequest,
    response: Response,
    manager: AccountManager = Depends(get_account_manager),
):
    slot = ResultSlot()
    async with guarded(slot, "login"):
        session = await manager.login(request.email, request.password)
        set_session_cookie(response, manager.sessions, session)
        slot.set(AuthResponse(ok=True))
    return slot.result


@router.post(
    "/logout",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    tags=["Authentication"],
    summary="Log out",
    description="Discard the session cookie. The token itself is not revoked server side.",
)
async def logout(
    response: Response,
    manager: AccountManager = Depends(get_account_manager),
):
    slot = ResultSlot()
    async with guarded(slot, "logout"):
        clear_session_cookie(response, manager.logout())
        slot.set(AuthResponse(ok=True, message=LOGGED_OUT_MSG))
    return slot.result


@router.post(
    "/send-verify-otp",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    tags=["Email Verification"],
    summary="Send verification OTP",
    description="Email a 6 digit verification code to the logged in account. Valid for 24 hours.",
)
async def send_verify_otp(
    account_id: str = Depends(require_session),
    manager: AccountManager = Depends(get_account_manager),
):
    slot = ResultSlot()
    async with guarded(slot, "send_verify_otp"):
        await manager.send_verify_otp(account_id)
        slot.set(AuthResponse(ok=True, message=VERIFY_OTP_SENT_MSG))
    return slot.result


@router.post(
    "/verify-account",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    tags=["Email Verification"],
    summary="Verify email",
    description="Consume the verification code and mark the account verified.",
)
async def verify_email(
    request: VerifyEmailRequest,
    account_id: str = Depends(require_session),
    manager: AccountManager = Depends(get_account_manager),
):
    slot = ResultSlot()
    async with guarded(slot, "verify_email"):
        await manager.verify_email(account_id, request.otp)
        slot.set(AuthResponse(ok=True, message=EMAIL_VERIFIED_MSG))
    return slot.result


@router.get(
    "/is-auth",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    tags=["Authentication"],
    summary="Check session",
    description="Succeeds when the request carries a valid session cookie.",
)
async def is_authenticated(
    account_id: str = Depends(require_session),
    manager: AccountManager = Depends(get_account_manager),
):
    slot = ResultSlot()
    async with guarded(slot, "is_authenticated"):
        await manager.is_authenticated(account_id)
        slot.set(AuthResponse(ok=True))
    return slot.result


@router.post(
    "/send-reset-otp",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    tags=["Password Reset"],
    summary="Send password reset OTP",
    description="Email a 6 digit password reset code. Valid for 15 minutes.",
)
async def send_reset_otp(
    request: SendResetOTPRequest,
    manager: AccountManager = Depends(get_account_manager),
):
    slot = ResultSlot()
    async with guarded(slot, "send_reset_otp"):
        await manager.send_reset_otp(request.email)
        slot.set(AuthResponse(ok=True, message=RESET_OTP_SENT_MSG))
    return slot.result


@router.post(
    "/reset-password",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    tags=["Password Reset"],
    summary="Reset password",
    description="Consume the reset code and replace the password.",
)
async def reset_password(
    request: ResetPasswordRequest,
    manager: AccountManager = Depends(get_account_manager),
):
    slot = ResultSlot()
    async with guarded(slot, "reset_password"):
        await manager.reset_password(request.email, request.otp, request.newPassword)
        slot.set(AuthResponse(ok=True, message=PASSWORD_RESET_MSG))
    return slot.result


# User Routes
@user_router.get(
    "/data",
    response_model=UserDataResponse,
    response_model_exclude_none=True,
    tags=["User"],
    summary="Get user data",
    description="Return the name and verification status of the logged in account.",
)
async def get_user_data(
    account_id: str = Depends(require_session),
    manager: AccountManager = Depends(get_account_manager),
):
    slot = ResultSlot()
    async with guarded(slot, "get_user_data"):
        account = await manager.get_profile(account_id)
        slot.set(
            UserDataResponse(
                ok=True,
                userData=UserData(name=account.name, isAccountVerified=account.is_verified),
            )
        )
    return slot.result


# Include routers in the app
app.include_router(router)
app.include_router(user_router)


def main():
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
