import logging

from .errors import DuplicateEmailError, InvalidCredentialsError, InvalidTokenError
from .models import UserRecord
from .repositories import UserRepository
from .security import TokenService, hash_password, verify_password

log = logging.getLogger(__name__)


class AuthService:
    """
    Registration, login and token checks.

    Built once per application with its repository and token service, so
    tests can construct their own instance instead of patching a global.
    """

    def __init__(self, users: UserRepository, tokens: TokenService):
        self.users = users
        self.tokens = tokens

    def _session(self, user: UserRecord) -> dict:
        return {"user": user.summary(), "token": self.tokens.issue(user.id)}

    def register(self, name: str, email: str, password: str, role: str | None = None) -> dict:
        if self.users.find_by_email(email) is not None:
            raise DuplicateEmailError()

        user = self.users.create(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role or "user",
        )
        log.info("User registered", extra={"user_id": user.id, "role": user.role})
        return self._session(user)

    def login(self, email: str, password: str) -> dict:
        user = self.users.find_by_email(email, include_password=True)

        # one error for both cases so callers cannot tell which emails exist
        if user is None or not verify_password(password, user.password_hash):
            log.warning("Login rejected")
            raise InvalidCredentialsError()

        return self._session(user)

    def verify_token(self, token: str) -> str:
        return self.tokens.verify(token)

    def current_user(self, token: str) -> UserRecord:
        """Resolve a token to the live user record, role included."""
        user = self.users.find_by_id(self.verify_token(token))
        if user is None:
            raise InvalidTokenError("Invalid token. User not found")
        return user
