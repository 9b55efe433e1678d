"""
Pytest configuration and fixtures for the Events API tests.

Every test gets its own application built by ``create_app`` on a fresh
SQLite file under ``tmp_path``; the lifespan (and so the migrations)
runs because the client is used as a context manager.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from events_api.app.core.config import Settings
from events_api.app.main import create_app


TEST_SECRET = "test-secret"
DEFAULT_PASSWORD = "longenough1"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=str(tmp_path / "events-test.db"),
        secret_key=TEST_SECRET,
        password_hash_iterations=1000,
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client):
    """Register a user through the API and return the response body."""

    def _register(username, name=None, password=DEFAULT_PASSWORD):
        response = client.post(
            "/users/register",
            json={"name": name or username, "username": username, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def login(client):
    """Log in and return ``Authorization`` headers for the session."""

    def _login(username, password=DEFAULT_PASSWORD):
        response = client.post("/users/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login


@pytest.fixture
def make_admin(services):
    def _make_admin(username):
        asyncio.run(services.users.set_admin(username))

    return _make_admin


@pytest.fixture
def user_headers(register_user, login):
    """Headers of a plain user called ``KariK`` (the first user, id 1)."""
    register_user("KariK", name="Kari")
    return login("KariK")


@pytest.fixture
def other_headers(user_headers, register_user, login):
    """Headers of a second plain user, ``Jonina`` (id 2)."""
    register_user("Jonina")
    return login("Jonina")


@pytest.fixture
def admin_headers(user_headers, register_user, login, make_admin):
    register_user("admin", name="Admin")
    make_admin("admin")
    return login("admin")


@pytest.fixture
def create_event(client):
    def _create(headers, name, description=None):
        body = {"name": name}
        if description is not None:
            body["description"] = description
        response = client.post("/events", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create
