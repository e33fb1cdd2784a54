"""Seed the default city list."""

from app import create_app
from models import db
from models.city import City

DEFAULT_CITIES = (
    ("New York", "NY"),
    ("Los Angeles", "CA"),
    ("Chicago", "IL"),
    ("Houston", "TX"),
    ("Phoenix", "AZ"),
    ("Philadelphia", "PA"),
    ("San Antonio", "TX"),
    ("San Diego", "CA"),
    ("Dallas", "TX"),
    ("San Jose", "CA"),
    ("Austin", "TX"),
    ("Jacksonville", "FL"),
)


def seed_cities() -> int:
    """Insert missing default cities and return how many were added."""

    existing = {(city.name, city.state) for city in City.query.all()}
    added = 0
    for name, state in DEFAULT_CITIES:
        if (name, state) in existing:
            continue
        db.session.add(City(name=name, state=state))
        added += 1
    db.session.commit()
    return added


def main() -> None:
    app = create_app()
    with app.app_context():
        added = seed_cities()
        print(f"{added} cities seeded ({len(DEFAULT_CITIES)} total)")


if __name__ == "__main__":
    main()
