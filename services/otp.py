"""One-time numeric codes for email verification and password reset.

Each flow stores a code and its expiry in two nullable columns on the user
row. A code moves from pending to consumed exactly once; expiry is checked
by comparing the stored timestamp when the code is presented.
"""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime, timedelta

from sqlalchemy import update
from werkzeug.exceptions import BadRequest

from models import db
from models.user import User

OTP_LENGTH = 6
OTP_TTL = timedelta(minutes=15)
OTP_PATTERN = re.compile(r"^\d{6}$")

INVALID_FORMAT_MESSAGE = "Please enter the 6-digit code from your email."
NOT_FOUND_MESSAGE = "Invalid or expired code. Request a new one if needed."
EXPIRED_MESSAGE = "This code has expired. Please request a new one."

_MAX_GENERATION_ATTEMPTS = 20


def generate_code() -> str:
    """Return six uniformly random decimal digits."""

    return "".join(secrets.choice(string.digits) for _ in range(OTP_LENGTH))


def normalize_code(raw: object) -> str | None:
    """Strip whitespace and return the code if it is exactly six digits."""

    if raw is None:
        return None
    text = re.sub(r"\s", "", str(raw))
    return text if OTP_PATTERN.match(text) else None


class OtpFlow:
    """A code flow backed by a pair of code/expiry columns on ``User``."""

    def __init__(self, name: str, code_attr: str, expires_attr: str):
        self.name = name
        self.code_attr = code_attr
        self.expires_attr = expires_attr

    @property
    def code_column(self):
        return getattr(User, self.code_attr)

    def _code_in_use(self, code: str, user_id: int | None) -> bool:
        query = User.query.filter(self.code_column == code)
        if user_id is not None:
            query = query.filter(User.id != user_id)
        return db.session.query(query.exists()).scalar()

    def issue(self, user: User, now: datetime | None = None) -> str:
        """Store a fresh code on ``user`` and return it. The caller commits.

        Codes are unique among users holding a code for the same flow, so a
        presented code always identifies a single account.
        """

        now = now or datetime.utcnow()
        for _ in range(_MAX_GENERATION_ATTEMPTS):
            code = generate_code()
            if not self._code_in_use(code, user.id):
                break
        else:  # pragma: no cover - needs a saturated code space
            raise RuntimeError(f"Could not allocate a unique {self.name} code.")

        setattr(user, self.code_attr, code)
        setattr(user, self.expires_attr, now + OTP_TTL)
        return code

    def find_holder(self, code: str) -> User | None:
        holders = User.query.filter(self.code_column == code).limit(2).all()
        if len(holders) != 1:
            return None
        return holders[0]

    def consume(self, raw_code: object, now: datetime | None = None, **changes) -> User:
        """Validate and clear a code, applying ``changes`` in the same statement.

        Raises ``BadRequest`` when the code is malformed, unknown or expired.
        """

        code = normalize_code(raw_code)
        if code is None:
            raise BadRequest(INVALID_FORMAT_MESSAGE)

        user = self.find_holder(code)
        if user is None:
            raise BadRequest(NOT_FOUND_MESSAGE)

        now = now or datetime.utcnow()
        expires_at = getattr(user, self.expires_attr)
        if expires_at is None or expires_at < now:
            raise BadRequest(EXPIRED_MESSAGE)

        values = {self.code_attr: None, self.expires_attr: None, **changes}
        result = db.session.execute(
            update(User)
            .where(User.id == user.id, self.code_column == code)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            raise BadRequest(NOT_FOUND_MESSAGE)

        db.session.commit()
        db.session.refresh(user)
        return user


email_verification = OtpFlow(
    "email verification",
    "email_verification_code",
    "email_verification_expires_at",
)
password_reset = OtpFlow(
    "password reset",
    "password_reset_code",
    "password_reset_expires_at",
)
