"""
NotificationDispatcher tests with a mocked SES client
"""
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from conftest import run
from errors import DependencyError
from services.email_service import describe_minutes


class TestNotificationDispatcher:
    def test_welcome_email_is_plain_text(self, notifications, ses_client):
        message_id = run(notifications.send_welcome("a@x.com"))

        assert message_id == "test-message-id"
        kwargs = ses_client.send_email.call_args.kwargs
        assert kwargs["Source"] == "no-reply@example.com"
        assert kwargs["Destination"] == {"ToAddresses": ["a@x.com"]}
        assert kwargs["Message"]["Subject"]["Data"] == "Welcome to Test App"
        assert "Html" not in kwargs["Message"]["Body"]

    def test_verify_otp_email(self, notifications, ses_client):
        run(notifications.send_verify_otp("a@x.com", "123456"))

        body = ses_client.send_email.call_args.kwargs["Message"]["Body"]
        assert "123456" in body["Text"]["Data"]
        assert "123456" in body["Html"]["Data"]
        assert "a@x.com" in body["Html"]["Data"]
        assert "24 hours" in body["Html"]["Data"]

    def test_reset_otp_email(self, notifications, ses_client):
        run(notifications.send_reset_otp("a@x.com", "654321"))

        message = ses_client.send_email.call_args.kwargs["Message"]
        assert message["Subject"]["Data"] == "Password Reset OTP"
        assert "654321" in message["Body"]["Html"]["Data"]
        assert "15 minutes" in message["Body"]["Text"]["Data"]

    def test_html_is_escaped(self, notifications, ses_client):
        run(notifications.send_verify_otp("<b>a@x.com</b>", "123456"))

        html = ses_client.send_email.call_args.kwargs["Message"]["Body"]["Html"]["Data"]
        assert "&lt;b&gt;a@x.com&lt;/b&gt;" in html

    def test_ses_client_error_becomes_dependency_error(self, notifications, ses_client):
        ses_client.send_email.side_effect = ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}},
            "SendEmail",
        )

        with pytest.raises(DependencyError) as exc:
            run(notifications.send_verify_otp("a@x.com", "123456"))
        assert exc.value.message == "Email send failed: MessageRejected"

    def test_unreachable_ses_becomes_dependency_error(self, notifications, ses_client):
        ses_client.send_email.side_effect = EndpointConnectionError(
            endpoint_url="https://email.us-east-2.amazonaws.com"
        )

        with pytest.raises(DependencyError) as exc:
            run(notifications.send_reset_otp("a@x.com", "123456"))
        assert exc.value.message == "email service unavailable"


@pytest.mark.parametrize(
    "minutes,expected",
    [(15, "15 minutes"), (1, "1 minute"), (60, "1 hour"), (1440, "24 hours"), (90, "90 minutes")],
)
def test_describe_minutes(minutes, expected):
    assert describe_minutes(minutes) == expected
