import logging
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.concurrency import run_in_threadpool

from config import Settings
from errors import DependencyError

logger = logging.getLogger("auth_service_api.email")

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

# Set up Jinja env
env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html", "xml", "html.jinja"]),
)


def describe_minutes(minutes: int) -> str:
    """Human wording for an OTP lifetime, e.g. 15 -> '15 minutes', 1440 -> '24 hours'."""
    if minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


class NotificationDispatcher:
    """Formats account emails and hands them to AWS SES."""

    def __init__(self, settings: Settings, ses_client=None):
        self.settings = settings
        self.sender = settings.sender_email
        self.ses = ses_client or boto3.client(
            "ses",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key,
            aws_secret_access_key=settings.aws_secret_access_key,
        )

    async def send_welcome(self, email: str) -> str | None:
        app_name = self.settings.app_name
        text_body = (
            f"Welcome to {app_name}. "
            f"Your account has been created with email id: {email}"
        )
        return await self._send(email, f"Welcome to {app_name}", text_body)

    async def send_verify_otp(self, email: str, otp: str) -> str | None:
        lifetime = describe_minutes(self.settings.verify_otp_lifetime_minutes)
        html_body = env.get_template("email_verify_otp.html.jinja").render(
            otp=otp, email=email, lifetime=lifetime, app_name=self.settings.app_name
        )
        text_body = f"Your OTP is {otp}. Verify your account using this OTP. This code expires in {lifetime}."
        return await self._send(email, "Account verification OTP", text_body, html_body)

    async def send_reset_otp(self, email: str, otp: str) -> str | None:
        lifetime = describe_minutes(self.settings.reset_otp_lifetime_minutes)
        html_body = env.get_template("password_reset_otp.html.jinja").render(
            otp=otp, email=email, lifetime=lifetime, app_name=self.settings.app_name
        )
        text_body = (
            f"Your OTP for resetting your password is {otp}. "
            f"Use this OTP to proceed with resetting your password. This code expires in {lifetime}."
        )
        return await self._send(email, "Password Reset OTP", text_body, html_body)

    async def _send(
        self, email: str, subject: str, text_body: str, html_body: str | None = None
    ) -> str | None:
        body = {"Text": {"Data": text_body}}
        if html_body:
            body["Html"] = {"Data": html_body}

        try:
            resp = await run_in_threadpool(
                self.ses.send_email,
                Source=self.sender,
                Destination={"ToAddresses": [email]},
                Message={"Subject": {"Data": subject}, "Body": body},
            )
        except ClientError as e:
            code = e.response["Error"]["Code"]
            logger.exception(f"SES ClientError when sending '{subject}' to {email}: {code}")
            raise DependencyError(f"Email send failed: {code}") from e
        except BotoCoreError as e:
            logger.exception(f"SES unavailable when sending '{subject}' to {email}")
            raise DependencyError("email service unavailable") from e

        message_id = resp.get("MessageId")
        logger.info(f"Email '{subject}' sent successfully: {email}, Message ID: {message_id}")
        return message_id
