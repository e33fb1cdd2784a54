"""User model definition."""

from datetime import datetime
from typing import NamedTuple, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from . import db


USER_ROLES = ("user", "admin")


class VerificationState(NamedTuple):
    """Email verification state derived from the user's verification columns.

    ``status`` is one of ``verified``, ``pending`` or ``unverified``. A
    verified state with ``at`` unset belongs to an account created before
    codes were issued.
    """

    status: str
    at: Optional[datetime] = None
    code: Optional[str] = None
    expires_at: Optional[datetime] = None


class User(db.Model):
    """Represents a platform user."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.String(32),
        nullable=False,
        default="user",
        server_default=db.text("'user'"),
    )
    email_verified_at = db.Column(db.DateTime, nullable=True)
    email_verification_code = db.Column(db.String(6), nullable=True, index=True)
    email_verification_expires_at = db.Column(db.DateTime, nullable=True)
    password_reset_code = db.Column(db.String(6), nullable=True, index=True)
    password_reset_expires_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    classifieds = db.relationship(
        "Classified",
        back_populates="owner",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    def verification_state(self, now: Optional[datetime] = None) -> VerificationState:
        """Return the tagged verification state for this user."""

        if self.email_verified_at is not None:
            return VerificationState("verified", at=self.email_verified_at)
        if self.email_verification_code is None:
            return VerificationState("verified")

        now = now or datetime.utcnow()
        expires_at = self.email_verification_expires_at
        if expires_at is None or expires_at < now:
            return VerificationState(
                "unverified",
                code=self.email_verification_code,
                expires_at=expires_at,
            )
        return VerificationState(
            "pending",
            code=self.email_verification_code,
            expires_at=expires_at,
        )

    @property
    def email_verified(self) -> bool:
        return self.verification_state().status == "verified"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def mark_verified(self, at: Optional[datetime] = None) -> None:
        """Mark the email as verified and clear any pending code."""

        self.email_verified_at = at or datetime.utcnow()
        self.email_verification_code = None
        self.email_verification_expires_at = None

    def to_dict(self) -> dict:
        """Serialize the user for API responses."""

        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "emailVerified": self.email_verified,
        }

    def to_admin_dict(self) -> dict:
        data = self.to_dict()
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
