import os

# Must be set before gym_api is imported: the engine is built at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient

from gym_api.core.database import SessionLocal, drop_db, init_db
from gym_api.main import app
from gym_api.tests.helpers import auth, register_admin_with_gym


@pytest.fixture(autouse=True)
def fresh_schema():
    drop_db()
    init_db()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin(client):
    """Headers and gym id of an administrator that owns "Iron Gym"."""
    return register_admin_with_gym(client, "ana@irongym.mx", "Iron Gym")


@pytest.fixture
def other_admin(client):
    return register_admin_with_gym(client, "raul@otrogym.mx", "Otro Gym")


@pytest.fixture
def collaborator(client, admin):
    headers, _ = admin
    r = client.post("/colaborators/register", headers=headers, json={
        "name": "Carlos",
        "last_name": "Pérez Ruiz",
        "email": "carlos@irongym.mx",
        "password": "secret123",
        "working_days": ["Lunes", "Martes"],
        "working_start_time": "08:00",
        "working_end_time": "16:00",
    })
    assert r.status_code == 201, r.text
    r = client.post("/colaborators/login", json={"email": "carlos@irongym.mx", "password": "secret123"})
    assert r.status_code == 200, r.text
    return auth(r.json()["token"])
