import os
import sys

# Address lookups in tests go through the in-memory stub lookup
os.environ["GEOCODER_LOOKUP"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from geonear.db.database import Base, get_db
from geonear.geo.lookups import test_lookup
from geonear.geo.registry import registry
from geonear.main import app
from geonear.models.color import Color
from geonear.models.venue import Venue

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Test database URL - using SQLite for tests is simpler
SQLALCHEMY_DATABASE_TEST_URL = "sqlite:///:memory:"

test_engine = create_engine(
    SQLALCHEMY_DATABASE_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine
)

COLOR_FIXTURES = ["red", "green", "yellow", "black"]

VENUE_FIXTURES = {
    "forum": {
        "name": "The Great Western Forum",
        "address": "3900 W Manchester Blvd, Inglewood, CA",
        "latitude": 33.9580,
        "longitude": -118.3417,
        "color": "green",
    },
    "beacon": {
        "name": "Beacon Theatre",
        "address": "2124 Broadway, New York, NY",
        "latitude": 40.7803,
        "longitude": -73.9811,
        "color": "red",
    },
    "nikon": {
        "name": "Nikon at Jones Beach Theater",
        "address": "1000 Ocean Pkwy, Wantagh, NY",
        "latitude": 40.6000,
        "longitude": -73.5200,
        "color": None,
    },
    "riverside": {
        "name": "Fox Performing Arts Center",
        "address": "3801 Mission Inn Ave, Riverside, CA",
        "latitude": 33.9816,
        "longitude": -117.3755,
        "color": "yellow",
    },
    "red_rocks": {
        "name": "Red Rocks Amphitheatre",
        "address": "18300 W Alameda Pkwy, Morrison, CO",
        "latitude": 39.6654,
        "longitude": -105.2057,
        "color": "black",
    },
    "grand_sierra": {
        "name": "Grand Sierra Theatre",
        "address": "2500 E 2nd St, Reno, NV",
        "latitude": 39.5259,
        "longitude": -119.7817,
        "color": None,
    },
}


@pytest.fixture(autouse=True)
def reset_geocoding():
    """Start every test with fresh config resolution and no lookup stubs."""
    registry.reset()
    test_lookup.reset()
    yield
    registry.reset()
    test_lookup.reset()


@pytest.fixture(scope="function")
def db():
    # Create all tables
    Base.metadata.create_all(bind=test_engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def colors(db: Session):
    """Color fixtures keyed by name."""
    created = {name: Color(name=name) for name in COLOR_FIXTURES}
    db.add_all(created.values())
    db.commit()
    return created


@pytest.fixture(scope="function")
def venues(db: Session, colors):
    """Venue fixtures keyed by short name."""
    created = {}
    for key, data in VENUE_FIXTURES.items():
        color = colors[data["color"]] if data["color"] else None
        created[key] = Venue(
            name=data["name"],
            address=data["address"],
            latitude=data["latitude"],
            longitude=data["longitude"],
            color_id=color.id if color else None,
        )
    db.add_all(created.values())
    db.commit()
    return created


@pytest.fixture(scope="function")
def client(db):
    """Provides a FastAPI test client with test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass  # Cleanup handled by db fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    # Clean up overrides after test
    app.dependency_overrides.clear()
