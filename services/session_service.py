import logging
from datetime import datetime, timezone

import jwt
from pydantic import BaseModel, ValidationError as PayloadError

from config import Settings
from errors import AuthError
from services.token_service import TokenIssuer

logger = logging.getLogger("auth_service_api.session")

NOT_AUTHORIZED_MSG = "Not authorized. Login again"


class SessionArtifact(BaseModel):
    """A signed session token plus the lifetime the transport should give it."""

    token: str
    expires_at: datetime
    max_age: int  # seconds


class SessionManager:
    def __init__(self, issuer: TokenIssuer, settings: Settings):
        self.issuer = issuer
        self.cookie_name = settings.session_cookie_name
        self.production = settings.production

    def cookie_attributes(self) -> dict:
        """Cookie flags shared by issuance and revocation so the browser matches them."""
        return {
            "httponly": True,
            "secure": self.production,
            "samesite": "none" if self.production else "strict",
        }

    def issue_session(self, account_id: str) -> SessionArtifact:
        issued_at = datetime.now(timezone.utc)
        token = self.issuer.issue(account_id, issued_at=issued_at)
        return SessionArtifact(
            token=token,
            expires_at=issued_at + self.issuer.lifetime,
            max_age=int(self.issuer.lifetime.total_seconds()),
        )

    def revoke_session(self) -> dict:
        """
        Instruction for the transport to discard the session cookie.

        Tokens are not blacklisted server side; a copied token stays valid until it expires.
        """
        return {"key": self.cookie_name, **self.cookie_attributes()}

    def authenticate(self, token: str) -> str:
        """Return the account id carried by a valid token."""
        if not token:
            raise AuthError(NOT_AUTHORIZED_MSG)

        try:
            payload = self.issuer.decode(token)
        except (jwt.InvalidTokenError, PayloadError):
            logger.warning("Rejected invalid or expired session token")
            raise AuthError(NOT_AUTHORIZED_MSG)

        return payload.id
