from datetime import timedelta

from config import get_settings
from services.token_service import TokenIssuer


def generate_token(account_id: str, expiration_minutes: int = 525600, settings=None) -> str:
    """Generate a session token for use in development."""
    issuer = TokenIssuer(settings or get_settings())
    return issuer.issue(account_id, lifetime=timedelta(minutes=expiration_minutes))


if __name__ == "__main__":
    account_id = input("Enter the account id to generate a session token for: ")
    settings = get_settings()
    token = generate_token(account_id, settings=settings)

    print(
        f"\nGenerated session token for account {account_id}. "
        "To use the token in development, send it as this cookie:\n\n"
    )
    print(f"{settings.session_cookie_name}={token}")
