import logging
from datetime import datetime
from typing import Callable

from starlette.concurrency import run_in_threadpool

from accountmodel.account_model import Account, OTPPurpose
from config import Settings
from errors import (
    AuthError,
    ConflictError,
    DependencyError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)
from services.account_store import USER_EXISTS_MSG, AccountStore
from services.email_service import NotificationDispatcher
from services.otp_service import (
    generate_otp,
    is_expired,
    otp_expires_at,
    otp_matches,
    utcnow,
)
from services.password_service import SecretHasher
from services.session_service import SessionArtifact, SessionManager

logger = logging.getLogger("auth_service_api.account")

MISSING_DETAILS_MSG = "missing details"
LOGIN_REQUIRED_MSG = "email and password required"
EMAIL_REQUIRED_MSG = "email is required"
RESET_REQUIRED_MSG = "Email, OTP, and new password are required"
INVALID_EMAIL_MSG = "invalid email"
INVALID_PASSWORD_MSG = "invalid password"
USER_NOT_FOUND_MSG = "user not found"
ALREADY_VERIFIED_MSG = "Account already verified"
INVALID_OTP_MSG = "invalid OTP"
OTP_EXPIRED_MSG = "OTP expired"

LOGGED_OUT_MSG = "logged out"
VERIFY_OTP_SENT_MSG = "verification otp sent on email."
EMAIL_VERIFIED_MSG = "Email verified successfully"
RESET_OTP_SENT_MSG = "OTP sent to your email."
PASSWORD_RESET_MSG = "Password has been reset successfully"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountManager:
    """
    Owns the authentication state of each account and every transition of it:
    registration, login, and the verification and reset OTP workflows.
    """

    def __init__(
        self,
        store: AccountStore,
        hasher: SecretHasher,
        sessions: SessionManager,
        notifications: NotificationDispatcher,
        settings: Settings,
        otp_generator: Callable[[int], str] = generate_otp,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.hasher = hasher
        self.sessions = sessions
        self.notifications = notifications
        self.settings = settings
        self.otp_generator = otp_generator
        self.clock = clock

    async def register(self, name: str, email: str, password: str) -> SessionArtifact:
        if not name or not email or not password:
            raise ValidationError(MISSING_DETAILS_MSG)

        email = normalize_email(email)
        if await self.store.find_by_email(email):
            raise ConflictError(USER_EXISTS_MSG)

        digest = await run_in_threadpool(self.hasher.hash, password)
        account = await self.store.save(
            Account(name=name, email=email, password_digest=digest)
        )
        logger.info(f"Registered account id={account.id} email={email}")

        session = self.sessions.issue_session(account.id)

        # Welcome mail never blocks a successful registration
        try:
            await self.notifications.send_welcome(email)
        except DependencyError as e:
            logger.warning(f"Welcome email not delivered to {email}: {e.message}")

        return session

    async def login(self, email: str, password: str) -> SessionArtifact:
        if not email or not password:
            raise ValidationError(LOGIN_REQUIRED_MSG)

        account = await self.store.find_by_email(normalize_email(email))
        if not account:
            raise NotFoundError(INVALID_EMAIL_MSG)

        matched = await run_in_threadpool(
            self.hasher.verify, password, account.password_digest
        )
        if not matched:
            raise AuthError(INVALID_PASSWORD_MSG)

        logger.info(f"Login succeeded for account id={account.id}")
        return self.sessions.issue_session(account.id)

    def logout(self) -> dict:
        return self.sessions.revoke_session()

    async def is_authenticated(self, account_id: str) -> None:
        # The transport has already validated the session token.
        return None

    async def get_profile(self, account_id: str) -> Account:
        if not account_id:
            raise ValidationError(MISSING_DETAILS_MSG)

        account = await self.store.find_by_id(account_id)
        if not account:
            raise NotFoundError(USER_NOT_FOUND_MSG)
        return account

    async def send_verify_otp(self, account_id: str) -> None:
        if not account_id:
            raise ValidationError(MISSING_DETAILS_MSG)

        account = await self.store.find_by_id(account_id)
        if not account:
            raise NotFoundError(USER_NOT_FOUND_MSG)

        if account.is_verified:
            raise ConflictError(ALREADY_VERIFIED_MSG)

        otp = await self._issue_otp(account, "verify", self.settings.verify_otp_lifetime_minutes)
        await self.notifications.send_verify_otp(account.email, otp)

    async def verify_email(self, account_id: str, otp: str) -> None:
        if not account_id or not otp:
            raise ValidationError(MISSING_DETAILS_MSG)

        account = await self.store.find_by_id(account_id)
        if not account:
            raise NotFoundError(USER_NOT_FOUND_MSG)

        code = self._consume_otp(account, "verify", otp)
        account.is_verified = True
        await self._save_consumed(account, "verify", code)
        logger.info(f"Email verified for account id={account.id}")

    async def send_reset_otp(self, email: str) -> None:
        if not email:
            raise ValidationError(EMAIL_REQUIRED_MSG)

        account = await self.store.find_by_email(normalize_email(email))
        if not account:
            raise NotFoundError(USER_NOT_FOUND_MSG)

        otp = await self._issue_otp(account, "reset", self.settings.reset_otp_lifetime_minutes)
        await self.notifications.send_reset_otp(account.email, otp)

    async def reset_password(self, email: str, otp: str, new_password: str) -> None:
        if not email or not otp or not new_password:
            raise ValidationError(RESET_REQUIRED_MSG)

        # Hash first so that read, consume and write happen without yielding
        digest = await run_in_threadpool(self.hasher.hash, new_password)

        account = await self.store.find_by_email(normalize_email(email))
        if not account:
            raise NotFoundError(USER_NOT_FOUND_MSG)

        code = self._consume_otp(account, "reset", otp)
        account.password_digest = digest
        await self._save_consumed(account, "reset", code)
        logger.info(f"Password reset for account id={account.id}")

    async def _issue_otp(self, account: Account, purpose: OTPPurpose, lifetime_minutes: int) -> str:
        """Store a fresh OTP on the account and persist it before any mail goes out."""
        otp = self.otp_generator(self.settings.otp_length)
        account.issue_otp(purpose, otp, otp_expires_at(lifetime_minutes, self.clock()))
        await self.store.save(account)
        logger.info(f"Issued {purpose} OTP for account id={account.id}")
        return otp

    def _consume_otp(self, account: Account, purpose: OTPPurpose, submitted: str) -> str:
        """
            Check a submitted OTP and clear it on the in-memory account.
            A missing or wrong code is reported before expiry is looked at.
            Returns the consumed code so the write can be made conditional on it.
        """
        code, expires_at = account.pending_otp(purpose)

        if not otp_matches(code, str(submitted).strip()):
            logger.warning(f"{purpose} OTP mismatch for account id={account.id}")
            raise AuthError(INVALID_OTP_MSG)

        if is_expired(expires_at, self.clock()):
            logger.warning(f"{purpose} OTP expired for account id={account.id}")
            raise ExpiredError(OTP_EXPIRED_MSG)

        account.clear_otp(purpose)
        return code

    async def _save_consumed(self, account: Account, purpose: OTPPurpose, code: str) -> None:
        # Another request already spent this code
        if not await self.store.save_if_otp_unchanged(account, purpose, code):
            logger.warning(f"{purpose} OTP already consumed for account id={account.id}")
            raise AuthError(INVALID_OTP_MSG)
