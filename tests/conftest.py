import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_booking_service
from app.main import app
from app.services.booking_service import BookingService
from app.services.catalog_service import Catalog
from app.services.ledger import BookingLedger, never_occupied


@pytest.fixture
def catalog():
    return Catalog.from_file("data/catalog.json")


@pytest.fixture
def ledger():
    # Fresh store per test, no simulated occupancy
    return BookingLedger(occupancy=never_occupied)


@pytest.fixture
def booking_service(catalog, ledger):
    return BookingService(catalog, ledger, user_id="USER-001")


@pytest.fixture
def client(booking_service):
    app.dependency_overrides[get_booking_service] = lambda: booking_service
    yield TestClient(app)
    app.dependency_overrides.clear()
