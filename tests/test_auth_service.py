"""AuthService against the in-memory user store."""

import pytest

from conftest import ManagedUserRepository
from sweetshop.errors import DuplicateEmailError, InvalidCredentialsError, InvalidTokenError
from sweetshop.security import TokenService, verify_password
from sweetshop.services import AuthService

pytestmark = pytest.mark.unit


@pytest.fixture
def users():
    return ManagedUserRepository()


@pytest.fixture
def auth(users):
    return AuthService(users, TokenService("test-secret"))


def test_register_returns_summary_and_token(auth):
    result = auth.register("John Doe", "john@example.com", "password123")

    user = result["user"]
    assert set(user) == {"_id", "name", "email", "role"}
    assert user["name"] == "John Doe"
    assert user["email"] == "john@example.com"
    assert user["role"] == "user"
    assert auth.verify_token(result["token"]) == user["_id"]


def test_register_never_stores_plaintext(auth, users):
    auth.register("John Doe", "john@example.com", "password123")

    stored = users.find_by_email("john@example.com", include_password=True)
    assert stored.password_hash != "password123"
    assert verify_password("password123", stored.password_hash)


def test_password_hidden_by_default(auth, users):
    created = auth.register("John Doe", "john@example.com", "password123")

    assert users.find_by_email("john@example.com").password_hash is None
    assert users.find_by_id(created["user"]["_id"]).password_hash is None


def test_register_admin_role(auth):
    result = auth.register("Admin", "admin@example.com", "password123", role="admin")

    assert result["user"]["role"] == "admin"


def test_email_is_stored_lowercased(auth, users):
    auth.register("Mixed", "  Mixed.Case@Example.COM ", "password123")

    assert users.find_by_email("mixed.case@example.com") is not None


@pytest.mark.parametrize(
    "second",
    [
        ("Someone Else", "dup@x.com", "another-pass", None),
        ("Admin Twin", "dup@x.com", "password123", "admin"),
        ("Case Twin", "DUP@X.COM", "password123", None),
    ],
)
def test_duplicate_email_always_rejected(auth, second):
    auth.register("First", "dup@x.com", "password123")

    with pytest.raises(DuplicateEmailError, match="Email already registered"):
        auth.register(*second)


def test_login_success(auth):
    created = auth.register("John Doe", "john@example.com", "password123")

    result = auth.login("john@example.com", "password123")

    assert result["user"] == created["user"]
    assert auth.verify_token(result["token"]) == created["user"]["_id"]


def test_login_failures_share_one_message(auth):
    auth.register("John Doe", "john@example.com", "password123")

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        auth.login("john@example.com", "wrong-password")
    with pytest.raises(InvalidCredentialsError) as unknown_email:
        auth.login("nobody@example.com", "password123")

    assert str(wrong_password.value) == str(unknown_email.value) == "Invalid credentials"


def test_current_user_reads_live_record(auth, users):
    created = auth.register("John Doe", "john@example.com", "password123")
    users.set_role(created["user"]["_id"], "admin")

    assert auth.current_user(created["token"]).role == "admin"


def test_current_user_for_removed_account(auth, users):
    created = auth.register("John Doe", "john@example.com", "password123")
    users.delete(created["user"]["_id"])

    with pytest.raises(InvalidTokenError, match="User not found"):
        auth.current_user(created["token"])
