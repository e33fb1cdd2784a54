"""Authentication blueprint: accounts, email verification and password reset."""

from __future__ import annotations

from datetime import datetime
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import create_access_token, jwt_required
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import Conflict, InternalServerError, Unauthorized
from werkzeug.security import generate_password_hash

from models import db
from models.user import User
from services import otp
from services.mailer import (
    MailDeliveryError,
    send_password_reset_code,
    send_verification_code,
)
from utils.auth import get_current_user
from utils.request_validation import (
    ValidationError,
    clean_text,
    is_valid_email,
    normalize_email,
    parse_json_request,
)

MIN_PASSWORD_LENGTH = 6
FORGOT_PASSWORD_MESSAGE = "If that email is registered, a reset code has been sent."

auth_bp = Blueprint("auth", __name__)


def _password_errors(password: object) -> list[str]:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        return [f"Password must be at least {MIN_PASSWORD_LENGTH} characters."]
    return []


def _find_user_by_email(email: str) -> User | None:
    return User.query.filter(func.lower(User.email) == email).first()


def _issue_token(user: User) -> str:
    return create_access_token(identity=str(user.id))


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Register a new user and send an email verification code."""
    payload = parse_json_request(request)
    email = normalize_email(payload.get("email"))
    password = payload.get("password")
    name = clean_text(payload.get("name"))

    errors = []
    if not is_valid_email(email):
        errors.append("A valid email is required.")
    errors.extend(_password_errors(password))
    if not name:
        errors.append("Name is required.")
    if errors:
        raise ValidationError(errors)

    if _find_user_by_email(email) is not None:
        raise Conflict("Email already registered")

    user = User(email=email, name=name, role="user")
    user.set_password(password)
    code = otp.email_verification.issue(user)

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Email already registered")

    # Verification is best effort at signup; the user can ask for a new code.
    try:
        send_verification_code(user.email, user.name, code)
    except MailDeliveryError:
        current_app.logger.warning("Verification email for user %s was not sent", user.id)

    return (
        jsonify({"token": _issue_token(user), "user": user.to_dict()}),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a user and return a JWT access token."""
    payload = parse_json_request(request)
    email = normalize_email(payload.get("email"))
    password = payload.get("password")

    errors = []
    if not is_valid_email(email):
        errors.append("A valid email is required.")
    if not isinstance(password, str) or not password:
        errors.append("Password is required.")
    if errors:
        raise ValidationError(errors)

    user = _find_user_by_email(email)
    if user is None or not user.check_password(password):
        raise Unauthorized("Invalid email or password")

    return (
        jsonify({"token": _issue_token(user), "user": user.to_dict()}),
        HTTPStatus.OK,
    )


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    return jsonify({"user": get_current_user().to_dict()})


@auth_bp.route("/verify-email", methods=["POST"])
def verify_email():
    """Verify an email address with the six digit code that was sent to it."""
    payload = parse_json_request(request, allow_empty=True)
    otp.email_verification.consume(
        payload.get("code"), email_verified_at=datetime.utcnow()
    )
    return jsonify({"message": "Email verified successfully", "emailVerified": True})


@auth_bp.route("/resend-verification", methods=["POST"])
@jwt_required()
def resend_verification():
    """Issue a new verification code for the current user."""
    user = get_current_user()
    if user.email_verified:
        return jsonify({"message": "Email already verified", "emailVerified": True})

    code = otp.email_verification.issue(user)
    db.session.commit()

    try:
        send_verification_code(user.email, user.name, code)
    except MailDeliveryError:
        raise InternalServerError("Failed to send verification email. Try again later.")

    return jsonify({"message": "Verification code sent. Check your inbox."})


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    """Send a password reset code. The response never reveals whether the email exists."""
    payload = parse_json_request(request)
    email = normalize_email(payload.get("email"))
    if not is_valid_email(email):
        raise ValidationError(["A valid email is required."])

    user = _find_user_by_email(email)
    if user is not None:
        code = otp.password_reset.issue(user)
        db.session.commit()
        try:
            send_password_reset_code(user.email, user.name, code)
        except MailDeliveryError:
            raise InternalServerError("Failed to send reset email. Try again later.")

    return jsonify({"message": FORGOT_PASSWORD_MESSAGE})


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    """Set a new password using a reset code."""
    payload = parse_json_request(request)
    password = payload.get("password")

    errors = _password_errors(password)
    if errors:
        raise ValidationError(errors)

    otp.password_reset.consume(
        payload.get("code"), password_hash=generate_password_hash(password)
    )
    return jsonify({"message": "Password has been reset. You can now log in."})
