from datetime import datetime, timedelta, timezone

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import ConfigurationError, InvalidTokenError

# JWT config
JWT_ALGORITHM = "HS256"


# ------------------------------------------------------------
# Password hashing
# ------------------------------------------------------------

def hash_password(password: str) -> str:
    # salted one-way hash, applied once when the user is created
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    # check_password_hash compares digests with hmac.compare_digest
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


# ------------------------------------------------------------
# Bearer tokens
# ------------------------------------------------------------

class TokenService:
    """Issues and verifies signed, time-limited tokens that carry a user id."""

    def __init__(self, secret: str, lifetime: timedelta = timedelta(days=7)):
        if not secret:
            raise ConfigurationError("JWT_SECRET is not defined")
        self._secret = secret
        self.lifetime = lifetime

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        # the role is deliberately left out, it is read from the user record per request
        payload = {
            "id": user_id,
            "iat": now,
            "exp": now + self.lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: str) -> str:
        """Return the user id in ``token`` or raise InvalidTokenError."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError() from exc

        user_id = payload.get("id")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidTokenError()
        return user_id
