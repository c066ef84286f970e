"""Shared fixtures: in-memory database, reseeded per test, and auth helpers."""

import os

# Must be set before lingoleap.settings is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["GEMINI_API_KEY"] = ""
os.environ["GOOGLE_TRANSLATE_API_KEY"] = ""
os.environ["SEED_SAMPLE_DATA"] = "true"

import pytest
from fastapi.testclient import TestClient

from lingoleap.dashboard import dashboard
from lingoleap.db import Base, SessionLocal, engine
from lingoleap.learning_path import learning_path_system
from lingoleap.main import app
from lingoleap.models import User
from lingoleap.routers.auth import hash_password
from lingoleap.seed import seed_sample_data


@pytest.fixture(autouse=True)
def fresh_state():
    """Reset in-memory engines, recreate the schema and reseed sample content."""
    learning_path_system.reset()
    dashboard.reset()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed_sample_data(session)
    finally:
        session.close()
    yield


@pytest.fixture
def db():
    """Database session for tests that work below the HTTP layer."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    """Test client without startup hooks; the schema is prepared by fresh_state."""
    return TestClient(app)


def login(client, username, password):
    response = client.post("/auth/token", data={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def learner(client):
    """Register a beginner learner and return (user json, auth headers)."""
    response = client.post(
        "/auth/register",
        json={"username": "amy", "password": "secret123", "first_name": "Amy", "last_name": "Chen"},
    )
    assert response.status_code == 201, response.text
    return response.json(), login(client, "amy", "secret123")


@pytest.fixture
def sample_learner(client):
    """Give the seeded sample learner (user 1) a password and sign in."""
    session = SessionLocal()
    try:
        user = session.get(User, 1)
        user.password_hash = hash_password("liming-pass")
        session.commit()
    finally:
        session.close()
    return login(client, "liming", "liming-pass")
