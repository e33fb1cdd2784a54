"""Classified ad, its city links and its images."""

from datetime import datetime

from sqlalchemy import or_

from storage import display_url

from . import db
from .city import City

VISIBILITIES = ("all_cities", "selected_cities")
STATUSES = ("draft", "published")


classified_cities = db.Table(
    "classified_cities",
    db.Column(
        "classified_id",
        db.Integer,
        db.ForeignKey("classifieds.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    db.Column(
        "city_id",
        db.Integer,
        db.ForeignKey("cities.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Classified(db.Model):
    """Represents a classified ad posted by a user."""

    __tablename__ = "classifieds"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(120), nullable=False)
    contact_email = db.Column(db.String(255), nullable=True)
    contact_phone = db.Column(db.String(64), nullable=True)
    visibility = db.Column(
        db.Enum(*VISIBILITIES, name="classified_visibility_enum"),
        nullable=False,
        default="all_cities",
    )
    status = db.Column(
        db.Enum(*STATUSES, name="classified_status_enum"),
        nullable=False,
        default="draft",
        index=True,
    )
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    owner = db.relationship("User", back_populates="classifieds")
    cities = db.relationship(
        "City",
        secondary=classified_cities,
        order_by=(City.state, City.name),
        backref="classifieds",
    )
    images = db.relationship(
        "ClassifiedImage",
        back_populates="classified",
        cascade="all, delete-orphan",
        order_by="ClassifiedImage.sort_order",
    )

    def to_dict(self, include_author: bool = True) -> dict:
        """Serialize the classified with its linked cities and images."""

        data = {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "contact_email": self.contact_email,
            "contact_phone": self.contact_phone,
            "visibility": self.visibility,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "selected_cities": [city.to_dict() for city in self.cities],
            "images": [image.to_dict() for image in self.images],
        }
        if include_author and self.owner is not None:
            data["author_name"] = self.owner.name
            data["author_email"] = self.owner.email
        return data

    @staticmethod
    def visible_filter(query, city_id: int | None = None):
        """Restrict a query to classifieds visible in ``city_id``.

        Without a city, a ``selected_cities`` classified is visible only when
        it links to at least one city.
        """

        if city_id is None:
            linked = Classified.cities.any()
        else:
            linked = Classified.cities.any(City.id == city_id)
        return query.filter(or_(Classified.visibility == "all_cities", linked))

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Classified {self.id} {self.title!r}>"


class ClassifiedImage(db.Model):
    """An image attached to a classified, stored locally or as a public URL."""

    __tablename__ = "classified_images"

    id = db.Column(db.Integer, primary_key=True)
    classified_id = db.Column(
        db.Integer,
        db.ForeignKey("classifieds.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_path = db.Column(db.String(1024), nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    classified = db.relationship("Classified", back_populates="images")

    def to_dict(self) -> dict:
        return {"id": self.id, "url": display_url(self.file_path)}
