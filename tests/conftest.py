"""
Shared fixtures: an app wired to in-memory repositories and helpers to
register users and create sweets through the HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from sweetshop.config import Settings
from sweetshop.container import build_container
from sweetshop.main import create_app
from sweetshop.memory import InMemoryUserRepository

TEST_SECRET = "test-secret"


def pytest_configure(config) -> None:
    config.addinivalue_line("markers", "unit: fast tests without external services")


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class ManagedUserRepository(InMemoryUserRepository):
    """In-memory users plus the account changes made outside the API."""

    def delete(self, user_id: str) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    def set_role(self, user_id: str, role: str) -> None:
        with self._lock:
            self._users[user_id]["role"] = role


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret=TEST_SECRET,
        storage_backend="memory",
        log_level="WARNING",
        log_json=False,
    )


@pytest.fixture
def container(settings):
    return build_container(settings, users=ManagedUserRepository())


@pytest.fixture
def app(container):
    return create_app(container=container)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def register(client):
    def _register(
        name: str = "Test User",
        email: str = "user@example.com",
        password: str = "password123",
        role: str | None = None,
    ) -> dict:
        body = {"name": name, "email": email, "password": password}
        if role:
            body["role"] = role
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _register


@pytest.fixture
def admin(register) -> dict:
    return register(name="Admin", email="admin@example.com", role="admin")


@pytest.fixture
def customer(register) -> dict:
    return register(name="Customer", email="customer@example.com")


@pytest.fixture
def admin_headers(admin) -> dict:
    return bearer(admin["token"])


@pytest.fixture
def user_headers(customer) -> dict:
    return bearer(customer["token"])


@pytest.fixture
def create_sweet(client, admin_headers):
    def _create(**overrides) -> dict:
        payload = {"name": "Chocolate Bar", "category": "Chocolate", "price": 2.50, "quantity": 100}
        payload.update(overrides)
        response = client.post("/api/sweets", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
