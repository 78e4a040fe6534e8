import os

from pydantic import BaseModel
from starlette.config import Config
from starlette.datastructures import CommaSeparatedStrings, Secret

# If APP_CONFIG is set, use that as the path to the .env file, or default to .env
env_file = os.getenv("APP_CONFIG", ".env")
if "APP_CONFIG" in os.environ and not os.path.isfile(env_file):
    raise FileNotFoundError(f"The configuration file specified in APP_CONFIG or the default .env does not exist: {env_file}")

config = Config(env_file)

# JWT / Session Configuration
JWT_SECRET_KEY: Secret = config("JWT_SECRET_KEY", cast=Secret)
JWT_ALGORITHM: str = config("JWT_ALGORITHM", default="HS256")
SESSION_LIFETIME_DAYS: int = config("SESSION_LIFETIME_DAYS", cast=int, default=7)
SESSION_COOKIE_NAME: str = config("SESSION_COOKIE_NAME", default="token")

# Application Configuration
ENVIRONMENT: str = config("ENVIRONMENT", default="development")
CORS_ORIGINS: CommaSeparatedStrings = config(
    "CORS_ORIGINS", cast=CommaSeparatedStrings, default=CommaSeparatedStrings([])
)
DEBUG: bool = config("DEBUG", cast=bool, default=False)
APP_NAME: str = config("APP_NAME", default="Auth Service")

# Password hashing (argon2 work factors)
PASSWORD_TIME_COST: int = config("PASSWORD_TIME_COST", cast=int, default=3)
PASSWORD_MEMORY_COST: int = config("PASSWORD_MEMORY_COST", cast=int, default=65536)
PASSWORD_PARALLELISM: int = config("PASSWORD_PARALLELISM", cast=int, default=4)

# AWS SES Configuration
AWS_REGION: str = config("AWS_REGION", default="us-east-2")
AWS_ACCESS_KEY: Secret = config("AWS_ACCESS_KEY", cast=Secret, default="")
AWS_SECRET_ACCESS_KEY: Secret = config("AWS_SECRET_ACCESS_KEY", cast=Secret, default="")
AWS_SES_SENDER_EMAIL: str = config("AWS_SES_SENDER_EMAIL", default="no-reply@example.com")

# OTP Configuration
OTP_CHARACTER_LENGTH: int = config("OTP_CHARACTER_LENGTH", cast=int, default=6)
VERIFY_OTP_LIFETIME_MINUTES: int = config("VERIFY_OTP_LIFETIME_MINUTES", cast=int, default=24 * 60)
RESET_OTP_LIFETIME_MINUTES: int = config("RESET_OTP_LIFETIME_MINUTES", cast=int, default=15)

# Database Configuration
DATABASE_URL: str = config("DATABASE_URL", default="sqlite:///./auth_database.db")

# Cron Job Configuration
EXPIRED_OTP_CLEANUP_INTERVAL_SECONDS: int = config(
    "EXPIRED_OTP_CLEANUP_INTERVAL_SECONDS", cast=int, default=60
)


class Settings(BaseModel):
    """Configuration handed to the hasher, token issuer, sessions and mailer."""

    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    session_lifetime_days: int = 7
    session_cookie_name: str = "token"
    production: bool = False
    app_name: str = "Auth Service"

    password_time_cost: int = 3
    password_memory_cost: int = 65536
    password_parallelism: int = 4

    otp_length: int = 6
    verify_otp_lifetime_minutes: int = 24 * 60
    reset_otp_lifetime_minutes: int = 15

    aws_region: str = "us-east-2"
    aws_access_key: str | None = None
    aws_secret_access_key: str | None = None
    sender_email: str = "no-reply@example.com"


def get_settings() -> Settings:
    """Build the settings object from the environment-backed constants above."""
    return Settings(
        jwt_secret_key=str(JWT_SECRET_KEY),
        jwt_algorithm=JWT_ALGORITHM,
        session_lifetime_days=SESSION_LIFETIME_DAYS,
        session_cookie_name=SESSION_COOKIE_NAME,
        production=ENVIRONMENT.lower() == "production",
        app_name=APP_NAME,
        password_time_cost=PASSWORD_TIME_COST,
        password_memory_cost=PASSWORD_MEMORY_COST,
        password_parallelism=PASSWORD_PARALLELISM,
        otp_length=OTP_CHARACTER_LENGTH,
        verify_otp_lifetime_minutes=VERIFY_OTP_LIFETIME_MINUTES,
        reset_otp_lifetime_minutes=RESET_OTP_LIFETIME_MINUTES,
        aws_region=AWS_REGION,
        aws_access_key=str(AWS_ACCESS_KEY) or None,
        aws_secret_access_key=str(AWS_SECRET_ACCESS_KEY) or None,
        sender_email=AWS_SES_SENDER_EMAIL,
    )
