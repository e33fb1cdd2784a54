"""Classifieds blueprint: public listing and owner CRUD."""

from __future__ import annotations

from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest, NotFound

from models import db
from models.classified import STATUSES, VISIBILITIES, Classified
from realtime import notifier
from services import classifieds as service
from utils.auth import get_current_user, verified_email_required
from utils.request_validation import (
    ValidationError,
    clean_text,
    parse_id_list,
    parse_payload,
)

MAX_TITLE_LENGTH = 500
REQUIRED_TEXT_FIELDS = ("title", "description", "category")
OPTIONAL_TEXT_FIELDS = ("contact_email", "contact_phone")
NOT_FOUND_OR_DENIED = "Classified not found or access denied"

classifieds_bp = Blueprint("classifieds", __name__)


def _validate_fields(data: dict, partial: bool = False) -> tuple[dict, list[str]]:
    """Return the cleaned classified fields present in ``data`` and any errors."""

    errors = []
    fields = {}

    for field in REQUIRED_TEXT_FIELDS:
        if partial and field not in data:
            continue
        value = clean_text(data.get(field))
        if not value:
            errors.append(f"{field} is required")
            continue
        fields[field] = value
    if len(fields.get("title", "")) > MAX_TITLE_LENGTH:
        errors.append(f"title must be at most {MAX_TITLE_LENGTH} characters")

    for field in OPTIONAL_TEXT_FIELDS:
        if field in data:
            fields[field] = clean_text(data.get(field)) or None

    if "visibility" in data:
        if data.get("visibility") not in VISIBILITIES:
            errors.append("visibility must be one of all_cities, selected_cities")
        else:
            fields["visibility"] = data["visibility"]

    if partial and "status" in data:
        if data.get("status") not in STATUSES:
            errors.append("status must be one of draft, published")
        else:
            fields["status"] = data["status"]

    return fields, errors


def _parse_city_ids(data: dict, is_form: bool, errors: list[str]):
    try:
        city_ids = parse_id_list(data.get("cityIds"), "cityIds", from_form=is_form) or []
    except ValidationError as exc:
        errors.extend(exc.errors)
        return []

    cities, missing = service.load_cities(city_ids)
    if missing:
        errors.append(
            "Unknown city ids: {}".format(", ".join(str(city_id) for city_id in missing))
        )
    return cities


def _get_owned_or_404(classified_id: int) -> Classified:
    classified = Classified.query.filter_by(
        id=classified_id, user_id=get_current_user().id
    ).first()
    if classified is None:
        raise NotFound(NOT_FOUND_OR_DENIED)
    return classified


@classifieds_bp.route("", methods=["GET"])
def list_classifieds():
    """Return published classifieds with optional city, category and search filters."""

    city_id = None
    raw_city = request.args.get("cityId")
    if raw_city:
        try:
            city_id = int(raw_city)
        except ValueError:
            raise BadRequest("cityId must be an integer.")

    query = service.published_query(
        city_id=city_id,
        category=(request.args.get("category") or "").strip() or None,
        search=(request.args.get("search") or "").strip() or None,
    )
    return jsonify([classified.to_dict() for classified in query.all()])


@classifieds_bp.route("/my", methods=["GET"])
@jwt_required()
def my_classifieds():
    query = Classified.query.filter(Classified.user_id == get_current_user().id)
    query = service.newest_first(service.with_embeds(query))
    return jsonify([classified.to_dict(include_author=False) for classified in query.all()])


@classifieds_bp.route("/<int:classified_id>", methods=["GET"])
def get_classified(classified_id: int):
    classified = service.with_embeds(
        Classified.query.filter_by(id=classified_id, status="published")
    ).first()
    if classified is None:
        raise NotFound("Classified not found")
    return jsonify(classified.to_dict())


@classifieds_bp.route("", methods=["POST"])
@verified_email_required
def create_classified():
    """Create a draft classified, optionally scoped to cities and with images."""

    user = get_current_user()
    data, is_form = parse_payload(request)
    fields, errors = _validate_fields(data)
    cities = _parse_city_ids(data, is_form, errors)
    files = request.files.getlist("images")
    errors.extend(service.image_errors(files))
    if errors:
        raise ValidationError(errors)

    classified = Classified(
        owner=user,
        status="draft",
        visibility=fields.pop("visibility", "all_cities"),
        **fields,
    )
    db.session.add(classified)
    db.session.flush()

    service.apply_city_links(classified, cities)
    service.store_images(classified, files)
    db.session.commit()

    notifier.classifieds_changed()
    return jsonify(classified.to_dict()), 201


@classifieds_bp.route("/<int:classified_id>", methods=["PUT", "PATCH"])
@verified_email_required
def update_classified(classified_id: int):
    """Apply a partial update; supplying visibility replaces the city links."""

    classified = _get_owned_or_404(classified_id)
    data, is_form = parse_payload(request, allow_empty=True)
    fields, errors = _validate_fields(data, partial=True)
    cities = _parse_city_ids(data, is_form, errors)
    try:
        remove_ids = (
            parse_id_list(data.get("removeImageIds"), "removeImageIds", from_form=is_form)
            or []
        )
    except ValidationError as exc:
        errors.extend(exc.errors)
        remove_ids = []
    files = request.files.getlist("images")
    errors.extend(service.image_errors(files))
    if errors:
        raise ValidationError(errors)

    for field, value in fields.items():
        setattr(classified, field, value)
    if "visibility" in fields:
        service.apply_city_links(classified, cities)

    removed = service.detach_images(classified, remove_ids)
    service.store_images(classified, files)
    classified.updated_at = datetime.utcnow()
    db.session.commit()

    service.delete_stored_files(removed)
    notifier.classifieds_changed()
    return jsonify(classified.to_dict())


@classifieds_bp.route("/<int:classified_id>", methods=["DELETE"])
@verified_email_required
def delete_classified(classified_id: int):
    classified = _get_owned_or_404(classified_id)
    service.delete_classified(classified)
    notifier.classifieds_changed()
    return jsonify({"message": "Classified deleted successfully"})
