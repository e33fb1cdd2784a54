"""Admin blueprint: moderation, city management and role changes."""

from __future__ import annotations

from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_jwt_extended import verify_jwt_in_request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import BadRequest, Conflict, Forbidden, NotFound

from models import db
from models.city import City
from models.classified import STATUSES, Classified
from models.user import USER_ROLES, User
from realtime import notifier
from services import classifieds as service
from utils.auth import get_current_user
from utils.request_validation import ValidationError, clean_text, parse_json_request

admin_bp = Blueprint("admin", __name__)


@admin_bp.before_request
def _require_admin() -> None:
    if request.method == "OPTIONS":
        return
    verify_jwt_in_request()
    if not get_current_user().is_admin:
        raise Forbidden("Admin access required")


def _get_classified_or_404(classified_id: int) -> Classified:
    classified = db.session.get(Classified, classified_id)
    if classified is None:
        raise NotFound("Classified not found")
    return classified


@admin_bp.route("/stats", methods=["GET"])
def stats():
    return jsonify(
        {
            "totalUsers": User.query.count(),
            "totalClassifieds": Classified.query.count(),
            "publishedClassifieds": Classified.query.filter_by(status="published").count(),
            "totalCities": City.query.count(),
        }
    )


@admin_bp.route("/users", methods=["GET"])
def list_users():
    users = User.query.order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify([user.to_admin_dict() for user in users])


@admin_bp.route("/classifieds", methods=["GET"])
def list_classifieds():
    """Return every classified regardless of status or owner."""

    query = service.newest_first(service.with_embeds(Classified.query))
    return jsonify([classified.to_dict() for classified in query.all()])


@admin_bp.route("/classifieds/<int:classified_id>/status", methods=["PUT"])
def update_classified_status(classified_id: int):
    payload = parse_json_request(request)
    status = payload.get("status")
    if status not in STATUSES:
        raise BadRequest("Invalid status")

    classified = _get_classified_or_404(classified_id)
    classified.status = status
    classified.updated_at = datetime.utcnow()
    db.session.commit()

    notifier.classifieds_changed()
    notifier.admin_changed()
    return jsonify(classified.to_dict())


@admin_bp.route("/classifieds/<int:classified_id>", methods=["DELETE"])
def delete_classified(classified_id: int):
    classified = _get_classified_or_404(classified_id)
    service.delete_classified(classified)

    notifier.classifieds_changed()
    notifier.admin_changed()
    return jsonify({"message": "Classified deleted successfully"})


@admin_bp.route("/cities", methods=["POST"])
def create_city():
    payload = parse_json_request(request)
    name = clean_text(payload.get("name"))
    state = clean_text(payload.get("state"))

    errors = []
    if not name:
        errors.append("name is required")
    if not state:
        errors.append("state is required")
    if errors:
        raise ValidationError(errors)

    city = City(name=name, state=state)
    db.session.add(city)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("City already exists")

    notifier.admin_changed()
    return jsonify(city.to_dict()), 201


@admin_bp.route("/cities/<int:city_id>", methods=["DELETE"])
def delete_city(city_id: int):
    city = db.session.get(City, city_id)
    if city is None:
        raise NotFound("City not found")

    db.session.delete(city)
    db.session.commit()

    notifier.admin_changed()
    return jsonify({"message": "City deleted successfully"})


@admin_bp.route("/users/<int:user_id>/role", methods=["PUT"])
def update_user_role(user_id: int):
    payload = parse_json_request(request)
    role = payload.get("role")
    if role not in USER_ROLES:
        raise BadRequest("Invalid role")

    if user_id == get_current_user().id and role != "admin":
        raise BadRequest("Cannot demote yourself")

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    user.role = role
    db.session.commit()

    notifier.admin_changed()
    return jsonify({"id": user.id, "email": user.email, "name": user.name, "role": user.role})
