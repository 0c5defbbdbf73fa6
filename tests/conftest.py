import pytest
from fastapi.testclient import TestClient

from tests.fakes import LOOKUP_TABLES, FakeLookupRepository, FakeShipmentRepository, FakeTextGenerator


@pytest.fixture
def app():
    from expohub.main import app as application

    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client_factory(app):
    """Builds a TestClient with fakes injected and the database flagged as configured."""
    from expohub.services import dependencies

    def _build(shipments=None, lookups=None, generator=None, db_ready: bool = True) -> TestClient:
        repo = shipments or FakeShipmentRepository()
        lookup_repo = lookups or FakeLookupRepository(LOOKUP_TABLES)
        text_generator = generator or FakeTextGenerator()
        app.dependency_overrides[dependencies.get_shipment_repository] = lambda: repo
        app.dependency_overrides[dependencies.get_lookup_repository] = lambda: lookup_repo
        app.dependency_overrides[dependencies.get_generator] = lambda: text_generator
        app.dependency_overrides[dependencies.database_configured] = lambda: db_ready
        if db_ready:
            app.dependency_overrides[dependencies.require_database] = lambda: None
        return TestClient(app)

    return _build
