import pytest # type: ignore
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.config import Settings
from src.database.connection import build_engine, create_session_factory
from src.database.models import Base, DataType
from src.database.store import append_measurement

API_KEY = "test-api-key"

@pytest.fixture
def engine():
    # Fresh in-memory database per test
    engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)

@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()

@pytest.fixture
def measure(db):
    """Append a measurement captured `days_ago` days before now."""
    def _measure(outlet_id, days_ago, rating=None, data_type=DataType.AUTHORITY, **fields):
        measurement = {
            "data_type": data_type,
            "data_captured_at": datetime.now(timezone.utc) - timedelta(days=days_ago),
            "raw_data": {"dr": rating},
            "authority_domain_rating": rating,
            **fields,
        }
        return append_measurement(db, outlet_id, measurement)
    return _measure

@pytest.fixture
def outlets_client():
    return MagicMock()

@pytest.fixture
def client(engine, outlets_client):
    settings = Settings()
    settings.API_KEY = API_KEY
    app = create_app(settings, engine=engine, outlets_client=outlets_client)
    return TestClient(app)

@pytest.fixture
def auth():
    return {"x-api-key": API_KEY}
