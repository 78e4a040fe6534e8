from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel

from config import Settings


class TokenPayload(BaseModel):
    """JWT token payload structure."""

    id: str  # account id
    iat: datetime | None = None
    exp: datetime | None = None  # expiration time


class TokenIssuer:
    """Signs and checks time-limited session tokens."""

    def __init__(self, settings: Settings):
        self.secret = settings.jwt_secret_key
        self.algorithm = settings.jwt_algorithm
        self.lifetime = timedelta(days=settings.session_lifetime_days)

    def issue(
        self,
        subject: str,
        issued_at: datetime | None = None,
        lifetime: timedelta | None = None,
    ) -> str:
        """
        Create a signed token for an account.

        Args:
            subject: The account id
            issued_at: Issue time (defaults to now)
            lifetime: Validity window (defaults to the session lifetime)

        Returns:
            Encoded JWT token string
        """
        now = issued_at or datetime.now(timezone.utc)

        to_encode = {
            "id": subject,
            "iat": now,
            "exp": now + (lifetime or self.lifetime),
        }

        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> TokenPayload:
        """
        Decode and validate a token.

        Raises:
            jwt.InvalidTokenError: If the signature, expiry or claims are invalid
        """
        payload = jwt.decode(
            token,
            self.secret,
            algorithms=[self.algorithm],
            options={"require": ["id", "exp"]},
        )
        return TokenPayload(**payload)
