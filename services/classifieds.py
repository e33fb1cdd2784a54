"""Classified persistence helpers shared by the owner and admin blueprints."""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Iterable

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.orm import joinedload, selectinload
from werkzeug.datastructures import FileStorage

from models import db
from models.city import City
from models.classified import Classified, ClassifiedImage
from storage import AbstractStorage

DEFAULT_IMAGE_TYPES = "jpeg,jpg,png,gif,webp"
DEFAULT_IMAGE_EXTENSION = ".jpg"


def get_storage() -> AbstractStorage:
    return current_app.extensions["image_storage"]


def image_directory(classified_id: int) -> str:
    return f"classifieds/{classified_id}"


def with_embeds(query):
    """Eager load the relations serialized with every classified."""

    return query.options(
        joinedload(Classified.owner),
        selectinload(Classified.cities),
        selectinload(Classified.images),
    )


def newest_first(query):
    return query.order_by(Classified.created_at.desc(), Classified.id.desc())


def published_query(
    city_id: int | None = None,
    category: str | None = None,
    search: str | None = None,
):
    """Published classifieds visible in ``city_id`` matching the text filters."""

    query = Classified.query.filter(Classified.status == "published")
    query = Classified.visible_filter(query, city_id)

    if category:
        query = query.filter(func.lower(Classified.category).like(f"%{category.lower()}%"))

    if search:
        like = f"%{search.lower()}%"
        query = query.filter(
            or_(
                func.lower(Classified.title).like(like),
                func.lower(Classified.description).like(like),
            )
        )

    return newest_first(with_embeds(query))


def load_cities(city_ids: Iterable[int]) -> tuple[list[City], list[int]]:
    """Return the cities for ``city_ids`` and the ids that do not exist."""

    wanted = list(city_ids)
    if not wanted:
        return [], []
    found = {city.id: city for city in City.query.filter(City.id.in_(wanted)).all()}
    missing = [city_id for city_id in wanted if city_id not in found]
    return [found[city_id] for city_id in wanted if city_id in found], missing


def apply_city_links(classified: Classified, cities: list[City]) -> None:
    """Make the classified's city links equal ``cities``.

    Only ``selected_cities`` classifieds keep links. The collection is
    replaced in the session, so the flush deletes removed links and inserts
    new ones inside the current transaction.
    """

    if classified.visibility != "selected_cities":
        cities = []
    current = {city.id for city in classified.cities}
    target = {city.id for city in cities}
    if current == target:
        return
    for city in list(classified.cities):
        if city.id not in target:
            classified.cities.remove(city)
    for city in cities:
        if city.id not in current:
            classified.cities.append(city)


def image_errors(files: list[FileStorage]) -> list[str]:
    """Validate uploaded images against the configured count, type and size limits."""

    errors = []
    max_count = int(current_app.config.get("MAX_IMAGES_PER_REQUEST", 10))
    if len(files) > max_count:
        errors.append(f"At most {max_count} images can be uploaded at once.")

    max_size = int(current_app.config.get("MAX_UPLOAD_SIZE", 10 * 1024 * 1024))
    allowed = {
        kind.strip().lower()
        for kind in current_app.config.get("ALLOWED_IMAGE_TYPES", DEFAULT_IMAGE_TYPES).split(",")
        if kind.strip()
    }
    for file in files:
        if not file.filename:
            errors.append("Every image must have a filename.")
            continue
        main_type, _, subtype = (file.mimetype or "").partition("/")
        if main_type != "image" or subtype.lower() not in allowed:
            errors.append(
                f"{file.filename}: only images (JPEG, PNG, GIF, WebP) are allowed."
            )
            continue
        file.stream.seek(0, os.SEEK_END)
        size = file.stream.tell()
        file.stream.seek(0)
        if size > max_size:
            errors.append(f"{file.filename}: exceeds the maximum upload size.")
    return errors


def _unique_filename(original: str) -> str:
    suffix = Path(original).suffix.lower() or DEFAULT_IMAGE_EXTENSION
    return f"{uuid.uuid4().hex}{suffix}"


def store_images(classified: Classified, files: list[FileStorage]) -> list[ClassifiedImage]:
    """Save files under the classified's namespace, appended after existing images."""

    if not files:
        return []

    storage = get_storage()
    next_order = max((image.sort_order for image in classified.images), default=-1) + 1
    created = []
    for file in files:
        reference = storage.save(
            file, image_directory(classified.id), _unique_filename(file.filename or "")
        )
        image = ClassifiedImage(file_path=reference, sort_order=next_order)
        classified.images.append(image)
        created.append(image)
        next_order += 1
    return created


def detach_images(classified: Classified, image_ids: Iterable[int]) -> list[str]:
    """Remove the given images from the classified and return their stored references.

    Ids that do not belong to the classified are ignored.
    """

    wanted = set(image_ids)
    references = []
    for image in list(classified.images):
        if image.id in wanted:
            references.append(image.file_path)
            classified.images.remove(image)
    return references


def delete_stored_files(references: Iterable[str]) -> None:
    storage = get_storage()
    for reference in references:
        storage.delete(reference)


def delete_classified(classified: Classified) -> None:
    """Delete the classified, its image rows and the stored files."""

    classified_id = classified.id
    references = [image.file_path for image in classified.images]
    db.session.delete(classified)
    db.session.commit()

    delete_stored_files(references)
    get_storage().delete_directory(image_directory(classified_id))
