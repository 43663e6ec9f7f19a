"""The two auth gates: authenticate and authorize."""

from datetime import timedelta

import pytest

from conftest import TEST_SECRET, bearer
from sweetshop.dependencies import RequestContext, require_roles
from sweetshop.errors import AuthenticationError, AuthorizationError
from sweetshop.security import TokenService

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": ""},
        {"Authorization": "Token abc"},
        {"Authorization": "Bearer"},
        {"Authorization": "Bearer    "},
    ],
)
def test_missing_or_malformed_header(client, headers):
    response = client.get("/api/sweets", headers=headers)

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Access denied. No token provided"}


def test_invalid_token(client):
    response = client.get("/api/sweets", headers=bearer("invalid-token"))

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_expired_token(client, customer):
    expired = TokenService(TEST_SECRET, timedelta(seconds=-1)).issue(customer["user"]["_id"])

    response = client.get("/api/sweets", headers=bearer(expired))

    assert response.status_code == 401


def test_token_from_other_server(client, customer):
    foreign = TokenService("another-secret").issue(customer["user"]["_id"])

    assert client.get("/api/sweets", headers=bearer(foreign)).status_code == 401


def test_token_of_removed_user(client, container, customer):
    container.users.delete(customer["user"]["_id"])

    response = client.get("/api/sweets", headers=bearer(customer["token"]))

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token. User not found"


def test_valid_token_passes(client, user_headers):
    response = client.get("/api/sweets", headers=user_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": []}


def test_non_admin_forbidden(client, user_headers):
    response = client.post(
        "/api/sweets",
        json={"name": "Candy", "category": "Hard Candy", "price": 1.0, "quantity": 5},
        headers=user_headers,
    )

    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "message": "Access denied. Insufficient permissions",
    }


def test_role_promotion_applies_to_existing_token(client, container, customer, create_sweet):
    sweet = create_sweet(quantity=1)
    headers = bearer(customer["token"])
    path = f"/api/sweets/{sweet['_id']}/restock"

    assert client.post(path, json={"quantity": 1}, headers=headers).status_code == 403

    container.users.set_role(customer["user"]["_id"], "admin")

    assert client.post(path, json={"quantity": 1}, headers=headers).status_code == 200


def test_role_downgrade_applies_immediately(client, container, admin, create_sweet):
    sweet = create_sweet(quantity=1)
    container.users.set_role(admin["user"]["_id"], "user")

    response = client.delete(f"/api/sweets/{sweet['_id']}", headers=bearer(admin["token"]))

    assert response.status_code == 403
    assert len(container.sweets.list_all()) == 1


def test_require_roles_without_user():
    with pytest.raises(AuthenticationError, match="User not authenticated"):
        require_roles(RequestContext(), ("admin",))


def test_require_roles_checks_membership(container):
    user = container.users.create("Someone", "someone@example.com", "hash", "user")
    context = RequestContext(user=user)

    assert require_roles(context, ("user", "admin")) is context
    with pytest.raises(AuthorizationError):
        require_roles(context, ("admin",))
