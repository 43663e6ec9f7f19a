import logging
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Depends, Header, Request

from .container import Container
from .errors import AuthenticationError, AuthorizationError
from .models import UserRecord
from .repositories import SweetRepository
from .services import AuthService

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """What the auth gates established about the caller."""

    user: UserRecord | None = None


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_auth_service(container: Container = Depends(get_container)) -> AuthService:
    return container.auth


def get_sweet_repository(container: Container = Depends(get_container)) -> SweetRepository:
    return container.sweets


# ------------------------------------------------------------
# Gate 1: authenticate
# ------------------------------------------------------------

def authenticate(
    authorization: str | None = Header(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> RequestContext:
    """Require ``Authorization: Bearer <token>`` and load the caller's user record."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Access denied. No token provided")

    token = authorization[len("Bearer "):].strip()
    if not token:
        raise AuthenticationError("Access denied. No token provided")

    try:
        # role comes from storage on every request, not from the token
        user = auth.current_user(token)
    except AuthenticationError as exc:
        log.info("Authentication rejected", extra={"reason": exc.message})
        raise

    return RequestContext(user=user)


# ------------------------------------------------------------
# Gate 2: authorize
# ------------------------------------------------------------

def require_roles(context: RequestContext, roles: tuple[str, ...]) -> RequestContext:
    if context.user is None:
        raise AuthenticationError("User not authenticated")
    if context.user.role not in roles:
        raise AuthorizationError("Access denied. Insufficient permissions")
    return context


def authorize(*roles: str) -> Callable[..., RequestContext]:
    """
    Use as ``Depends(authorize("admin"))``.
    Runs authenticate first, then checks the live role against ``roles``.
    """

    def _gate(context: RequestContext = Depends(authenticate)) -> RequestContext:
        return require_roles(context, roles)

    return _gate
