"""
Shared fixtures: an in-process mongomock database, the facade built on it,
and a TestClient whose database dependency points at the same mock.
"""
import mongomock
import pytest
from fastapi.testclient import TestClient

from database import get_db
from main import app
from search import BookingFacade

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def db():
    """A fresh database for every test."""
    return mongomock.MongoClient()["hotel_booking_test"]


@pytest.fixture
def facade(db) -> BookingFacade:
    return BookingFacade.from_database(db)


@pytest.fixture
def client(db, monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", ADMIN_TOKEN)
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def hotel_data():
    """Factory for valid hotel payloads."""

    def make(**overrides):
        data = {
            "name": "Hotel Lumiere",
            "type": "hotel",
            "city": "Paris",
            "address": "12 Rue de Rivoli",
            "distance": "500m",
            "photos": ["https://example.com/lumiere.jpg"],
            "title": "Boutique stay near the Louvre",
            "desc": "Quiet rooms a short walk from the river.",
            "rating": 4.5,
            "cheapestPrice": 120,
            "featured": False,
        }
        data.update(overrides)
        return data

    return make


@pytest.fixture
def room_data():
    """Factory for valid room payloads."""

    def make(**overrides):
        data = {
            "title": "Double Room",
            "price": 140,
            "maxPeople": 2,
            "desc": "Queen bed, city view.",
            "roomNumbers": [{"number": 101}, {"number": 102}],
        }
        data.update(overrides)
        return data

    return make
