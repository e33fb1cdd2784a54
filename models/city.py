"""City reference data."""

from datetime import datetime

from . import db


class City(db.Model):
    """A city that classifieds can be scoped to."""

    __tablename__ = "cities"
    __table_args__ = (db.UniqueConstraint("name", "state", name="uq_cities_name_state"),)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    state = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "state": self.state}

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<City {self.name}, {self.state}>"
