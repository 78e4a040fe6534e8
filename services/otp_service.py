import secrets
from datetime import datetime, timedelta, timezone

from config import OTP_CHARACTER_LENGTH


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    # SQLite stores naive datetime, so replace tzinfo
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def generate_otp(length: int = OTP_CHARACTER_LENGTH) -> str:
    """Numeric code of exactly `length` digits, never starting with zero."""
    lowest = 10 ** (length - 1)
    return str(lowest + secrets.randbelow(9 * lowest))


def otp_expires_at(lifetime_minutes: int, now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(minutes=lifetime_minutes)


def otp_matches(stored: str, submitted: str) -> bool:
    if not stored or not submitted:
        return False
    return secrets.compare_digest(stored.encode(), submitted.encode())


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    if expires_at is None:
        return True
    return as_utc(expires_at) < now
