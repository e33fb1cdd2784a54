"""Public city reference data."""

from flask import Blueprint, jsonify

from models.city import City

cities_bp = Blueprint("cities", __name__)


@cities_bp.route("", methods=["GET"])
def list_cities():
    cities = City.query.order_by(City.state, City.name).all()
    return jsonify([city.to_dict() for city in cities])
