"""
Secret hasher, OTP generator and token issuer tests
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from config import Settings
from generate_token import generate_token
from services.otp_service import (
    as_utc,
    generate_otp,
    is_expired,
    otp_expires_at,
    otp_matches,
)
from services.password_service import SecretHasher
from services.token_service import TokenIssuer


class TestSecretHasher:
    def test_hash_then_verify(self, hasher):
        digest = hasher.hash("pw1")

        assert digest != "pw1"
        assert hasher.verify("pw1", digest) is True

    def test_other_password_does_not_verify(self, hasher):
        digest = hasher.hash("pw1")

        assert hasher.verify("pw2", digest) is False

    def test_hash_is_salted(self, hasher):
        assert hasher.hash("pw1") != hasher.hash("pw1")

    @pytest.mark.parametrize("digest", ["not-a-hash", "$argon2id$broken", "", None])
    def test_malformed_digest_fails_closed(self, hasher, digest):
        assert hasher.verify("pw1", digest) is False

    def test_empty_password_fails_closed(self, hasher):
        assert hasher.verify("", hasher.hash("pw1")) is False


class TestOTPGenerator:
    def test_codes_are_six_digits_in_range(self):
        for _ in range(500):
            otp = generate_otp(6)
            assert len(otp) == 6
            assert otp.isdigit()
            assert 100000 <= int(otp) <= 999999

    def test_custom_length(self):
        otp = generate_otp(4)
        assert len(otp) == 4
        assert 1000 <= int(otp) <= 9999

    def test_expiry_window(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert otp_expires_at(15, now) == now + timedelta(minutes=15)
        assert otp_expires_at(24 * 60, now) == now + timedelta(hours=24)

    def test_matches(self):
        assert otp_matches("123456", "123456")
        assert not otp_matches("123456", "123457")
        assert not otp_matches("", "")
        assert not otp_matches("", "123456")

    def test_expiry_is_strictly_before_now(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        one_ms = timedelta(milliseconds=1)

        assert not is_expired(now + one_ms, now)
        assert not is_expired(now, now)
        assert is_expired(now - one_ms, now)
        assert is_expired(None, now)

    def test_naive_timestamps_read_as_utc(self):
        naive = datetime(2026, 1, 1, 12, 0)
        assert as_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestTokenIssuer:
    def test_token_carries_account_id_and_seven_day_expiry(self, settings):
        issuer = TokenIssuer(settings)
        now = datetime.now(timezone.utc).replace(microsecond=0)

        payload = issuer.decode(issuer.issue("acct-1", issued_at=now))

        assert payload.id == "acct-1"
        assert payload.exp == now + timedelta(days=7)

    def test_expired_token_rejected(self, settings):
        issuer = TokenIssuer(settings)
        token = issuer.issue("acct-1", issued_at=datetime.now(timezone.utc) - timedelta(days=8))

        with pytest.raises(jwt.ExpiredSignatureError):
            issuer.decode(token)

    def test_token_from_other_secret_rejected(self, settings):
        other = TokenIssuer(Settings(jwt_secret_key="another-secret"))
        token = other.issue("acct-1")

        with pytest.raises(jwt.InvalidSignatureError):
            TokenIssuer(settings).decode(token)

    def test_token_without_account_id_rejected(self, settings):
        exp = datetime.now(timezone.utc) + timedelta(days=1)
        token = jwt.encode({"exp": exp}, settings.jwt_secret_key, algorithm="HS256")

        with pytest.raises(jwt.MissingRequiredClaimError):
            TokenIssuer(settings).decode(token)

    def test_generate_token_for_development(self, settings):
        token = generate_token("acct-1", expiration_minutes=5, settings=settings)

        payload = TokenIssuer(settings).decode(token)
        assert payload.id == "acct-1"
        assert payload.exp - payload.iat == timedelta(minutes=5)

    def test_lifetime_override_leaves_issuer_default(self, settings):
        issuer = TokenIssuer(settings)
        now = datetime.now(timezone.utc).replace(microsecond=0)

        short = issuer.decode(issuer.issue("acct-1", issued_at=now, lifetime=timedelta(minutes=5)))
        default = issuer.decode(issuer.issue("acct-1", issued_at=now))

        assert short.exp == now + timedelta(minutes=5)
        assert default.exp == now + timedelta(days=7)
        assert issuer.lifetime == timedelta(days=7)
