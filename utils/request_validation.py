"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

import json
import re
from typing import Iterable

from flask import Request
from werkzeug.exceptions import BadRequest

FORM_MIMETYPES = {"multipart/form-data", "application/x-www-form-urlencoded"}
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(BadRequest):
    """A batch of field validation failures, rendered as ``{"errors": [...]}``."""

    def __init__(self, errors: Iterable[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if not data.get(key)]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(
                    ", ".join(sorted(missing))
                )
            )

    return data


def parse_payload(req: Request, *, allow_empty: bool = False) -> tuple[dict, bool]:
    """Return the body of a JSON or form request and whether it was a form."""

    if req.mimetype in FORM_MIMETYPES:
        data = req.form.to_dict()
        if not data and not req.files and not allow_empty:
            raise BadRequest("Request body must not be empty.")
        return data, True
    if req.is_json:
        return parse_json_request(req, allow_empty=allow_empty), False
    raise BadRequest(
        "Request content type must be application/json or multipart/form-data."
    )


def parse_id_list(value: object, field: str, *, from_form: bool) -> list[int] | None:
    """Parse a list of integer ids.

    JSON bodies carry a native array; form fields carry a JSON encoded array.
    Any other shape is rejected.
    """

    if value is None:
        return None
    if from_form:
        if not isinstance(value, str):
            raise ValidationError([f"{field} must be a JSON encoded array of ids"])
        if not value.strip():
            return []
        try:
            value = json.loads(value)
        except ValueError:
            raise ValidationError([f"{field} must be a JSON encoded array of ids"])

    if not isinstance(value, list) or not all(
        isinstance(item, int) and not isinstance(item, bool) for item in value
    ):
        raise ValidationError([f"{field} must be an array of integer ids"])
    return list(dict.fromkeys(value))


def clean_text(value: object) -> str | None:
    """Strip a string value; anything that is not a string becomes ``None``."""

    if not isinstance(value, str):
        return None
    return value.strip()


def normalize_email(raw_email: object) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""

    return (clean_text(raw_email) or "").lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))
