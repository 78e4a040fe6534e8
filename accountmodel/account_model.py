from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from sqlmodel import Field, SQLModel

OTPPurpose = Literal["verify", "reset"]


class Account(SQLModel, table=True):
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    password_digest: str
    is_verified: bool = False

    # An empty code means no OTP is pending; the expiry is None in that case.
    verify_otp: str = ""
    verify_otp_expires_at: datetime | None = None
    reset_otp: str = ""
    reset_otp_expires_at: datetime | None = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def pending_otp(self, purpose: OTPPurpose) -> tuple[str, datetime | None]:
        """Return the stored (code, expiry) pair for the given workflow."""
        return getattr(self, f"{purpose}_otp"), getattr(self, f"{purpose}_otp_expires_at")

    def issue_otp(self, purpose: OTPPurpose, code: str, expires_at: datetime) -> None:
        setattr(self, f"{purpose}_otp", code)
        setattr(self, f"{purpose}_otp_expires_at", expires_at)

    def clear_otp(self, purpose: OTPPurpose) -> None:
        setattr(self, f"{purpose}_otp", "")
        setattr(self, f"{purpose}_otp_expires_at", None)
