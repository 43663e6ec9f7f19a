from datetime import datetime, timedelta, timezone

import jwt
import pytest

from sweetshop.errors import ConfigurationError, InvalidTokenError
from sweetshop.security import TokenService, hash_password, verify_password

pytestmark = pytest.mark.unit

SECRET = "test-secret"


def test_hash_is_one_way_and_salted():
    first = hash_password("password123")
    second = hash_password("password123")

    assert first != "password123"
    assert first != second
    assert verify_password("password123", first)
    assert verify_password("password123", second)


def test_verify_rejects_wrong_password():
    assert not verify_password("wrong", hash_password("password123"))


def test_verify_without_stored_hash():
    assert not verify_password("password123", None)


def test_token_roundtrip():
    tokens = TokenService(SECRET)
    token = tokens.issue("65a1b2c3d4e5f6a7b8c9d0e1")

    assert tokens.verify(token) == "65a1b2c3d4e5f6a7b8c9d0e1"


def test_token_carries_expiry_and_no_role():
    token = TokenService(SECRET, timedelta(hours=1)).issue("abc")
    payload = jwt.decode(token, SECRET, algorithms=["HS256"])

    assert set(payload) == {"id", "iat", "exp"}
    assert payload["exp"] - payload["iat"] == 3600


def test_expired_token():
    token = TokenService(SECRET, timedelta(seconds=-1)).issue("abc")

    with pytest.raises(InvalidTokenError, match="expired"):
        TokenService(SECRET).verify(token)


def test_token_signed_with_other_secret():
    token = TokenService("other-secret").issue("abc")

    with pytest.raises(InvalidTokenError):
        TokenService(SECRET).verify(token)


def test_token_with_swapped_payload():
    tokens = TokenService(SECRET)
    header, _, signature = tokens.issue("victim").split(".")
    _, payload, _ = tokens.issue("attacker").split(".")

    with pytest.raises(InvalidTokenError):
        tokens.verify(f"{header}.{payload}.{signature}")


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
def test_malformed_token(token):
    with pytest.raises(InvalidTokenError):
        TokenService(SECRET).verify(token)


def test_token_without_user_id():
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode({"exp": exp}, SECRET, algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        TokenService(SECRET).verify(token)


def test_empty_secret_is_configuration_error():
    with pytest.raises(ConfigurationError):
        TokenService("")
