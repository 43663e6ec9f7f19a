from .api import DEFAULT_API_URL, ApiClient, ApiError
from .services import AuthClient, SweetClient
from .session import CookieSession

__all__ = [
    "DEFAULT_API_URL",
    "ApiClient",
    "ApiError",
    "AuthClient",
    "CookieSession",
    "SweetClient",
]
