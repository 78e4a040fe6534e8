class AuthServiceError(Exception):
    """Base class for failures reported to the caller as a failure envelope."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AuthServiceError):
    """Raised when required input is missing or malformed."""


class ConflictError(AuthServiceError):
    """Raised for a duplicate account or an already verified account."""


class NotFoundError(AuthServiceError):
    """Raised when no account matches the lookup."""


class AuthError(AuthServiceError):
    """Raised for a wrong password, a wrong OTP, or an invalid session token."""


class ExpiredError(AuthServiceError):
    """Raised when a matching OTP is past its expiry."""


class DependencyError(AuthServiceError):
    """Raised when the account store or the mailer is unavailable."""
