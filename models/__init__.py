"""Database initialization and model exports."""

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .city import City  # noqa: E402,F401
from .classified import Classified, ClassifiedImage, classified_cities  # noqa: E402,F401

__all__ = [
    "db",
    "User",
    "City",
    "Classified",
    "ClassifiedImage",
    "classified_cities",
]
