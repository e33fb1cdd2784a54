"""Access helpers layered on Flask-JWT-Extended."""

from __future__ import annotations

from functools import wraps

from flask_jwt_extended import current_user, jwt_required
from werkzeug.exceptions import Forbidden

from models.user import User

VERIFY_EMAIL_MESSAGE = "Please verify your email to post or manage classifieds."


def get_current_user() -> User:
    """Return the user loaded for the verified token of this request."""

    return current_user._get_current_object()


def verified_email_required(view):
    """Require a valid token whose user has verified their email."""

    @wraps(view)
    @jwt_required()
    def wrapper(*args, **kwargs):
        if not get_current_user().email_verified:
            raise Forbidden(VERIFY_EMAIL_MESSAGE)
        return view(*args, **kwargs)

    return wrapper

