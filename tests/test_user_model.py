"""Tests for the User model helpers."""

from datetime import datetime, timedelta

from models import db
from models.user import User
from services import otp


def test_password_is_hashed(app):
    with app.app_context():
        user = User(email="hash@example.com", name="Hash")
        user.set_password("password123")

        assert user.password_hash != "password123"
        assert user.check_password("password123") is True
        assert user.check_password("wrong") is False


def test_verification_state_transitions(app):
    """The derived verification state follows the stored code and timestamp."""

    with app.app_context():
        user = User(email="helper@example.com", name="Helper")
        user.set_password("password123")
        db.session.add(user)
        db.session.commit()

        # No code and no timestamp: an account created before codes existed.
        state = user.verification_state()
        assert state.status == "verified"
        assert state.at is None
        assert user.email_verified is True

        now = datetime(2024, 1, 1, 12, 0, 0)
        code = otp.email_verification.issue(user, now=now)
        db.session.commit()

        pending = user.verification_state(now=now + timedelta(minutes=5))
        assert pending.status == "pending"
        assert pending.code == code
        assert pending.expires_at == now + otp.OTP_TTL

        expired = user.verification_state(now=now + timedelta(minutes=16))
        assert expired.status == "unverified"

        user.mark_verified(at=now)
        db.session.commit()
        db.session.refresh(user)

        state = user.verification_state()
        assert state.status == "verified"
        assert state.at == now
        assert user.email_verification_code is None
        assert user.email_verified is True


def test_email_verified_matches_column_rule(app):
    """emailVerified is true iff verified-at is set or both columns are empty."""

    now = datetime.utcnow()
    cases = [
        (None, None, True),
        (now, None, True),
        (None, "123456", False),
        (now, "123456", True),
    ]
    with app.app_context():
        for verified_at, code, expected in cases:
            user = User(
                email="rule@example.com",
                name="Rule",
                email_verified_at=verified_at,
                email_verification_code=code,
                email_verification_expires_at=now + timedelta(minutes=10) if code else None,
            )
            assert user.email_verified is expected
            assert user.to_dict()["emailVerified"] is expected
