import logging

from argon2 import PasswordHasher
from argon2.exceptions import (
    InvalidHash,
    VerificationError,
    VerifyMismatchError,
)

from config import Settings

logger = logging.getLogger("auth_service_api.password")


class SecretHasher:
    """One-way salted hashing of passwords with argon2."""

    def __init__(self, settings: Settings):
        self.ph = PasswordHasher(
            time_cost=settings.password_time_cost,
            memory_cost=settings.password_memory_cost,
            parallelism=settings.password_parallelism,
        )

    def hash(self, plain: str) -> str:
        return self.ph.hash(plain)

    def verify(self, plain: str, digest: str) -> bool:
        """
            Check a password against a stored digest.
            Never raises: a mismatch or an unreadable digest is just False.
        """
        if not plain or not digest:
            return False

        try:
            return self.ph.verify(digest, plain)
        except VerifyMismatchError:
            return False
        except InvalidHash:
            logger.error("Password verification failed due to invalid stored digest")
            return False
        except VerificationError:
            logger.exception("General Argon2 verification error")
            return False
