from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from happytrails.main import create_app
from happytrails.services.auth_service import LocalAuthProvider, VisitorSession
from happytrails.services.booking_service import LocalBookingStore
from happytrails.services.db_service import SupabaseService
from happytrails.services.local_storage import LocalStorage


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "local_storage.json"))

@pytest.fixture
def auth(storage):
    return LocalAuthProvider(storage)

@pytest.fixture
def store(storage):
    return LocalBookingStore(storage)

@pytest.fixture
def visitor():
    """A fresh browser: empty cookie session."""
    return VisitorSession({})

@pytest.fixture
def app(auth, store):
    return create_app(auth, store)

@pytest.fixture
def client(app):
    # Entering the context runs the lifespan (backend wiring)
    with TestClient(app) as c:
        yield c

@pytest.fixture
def signed_in_client(client):
    response = client.post("/login", data={
        "mode": "signup",
        "email": "walker@example.com",
        "name": "Fido's human",
        "password": "password123",
    }, follow_redirects=False)
    assert response.status_code == 303
    return client

@pytest.fixture
def booking_form():
    return {
        "service": "Walk",
        "date": "2024-06-01",
        "time": "09:00",
        "duration_mins": "30",
        "pets": "1",
        "notes": "",
    }

@pytest.fixture
def supabase_client():
    """MagicMock shaped like supabase.AsyncClient: sync builders, awaited execute()."""
    fake = MagicMock()
    fake.auth.sign_up = AsyncMock()
    fake.auth.sign_in_with_password = AsyncMock()
    fake.auth.sign_out = AsyncMock()
    fake.auth.set_session = AsyncMock()
    fake.table.return_value.upsert.return_value.execute = AsyncMock(return_value=SimpleNamespace(data=[]))
    fake.table.return_value.insert.return_value.execute = AsyncMock()
    fake.table.return_value.select.return_value.eq.return_value.order.return_value.execute = AsyncMock()
    return fake

@pytest.fixture
def db(supabase_client):
    return SupabaseService(url="https://example.supabase.co", key="anon", client=supabase_client)
