# ------------------------------------------------------------
# Error taxonomy
# ------------------------------------------------------------
# Every error a handler can raise carries the HTTP status it maps to.
# exception_handlers.py turns them into the {success, message, errors} envelope.


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings are missing or malformed."""


class SweetShopError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SweetShopError):
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []


class ConflictError(SweetShopError):
    # duplicates are reported as 400 with a message, not 409
    status_code = 400
    default_message = "Resource already exists"


class DuplicateEmailError(ConflictError):
    default_message = "Email already registered"


class InsufficientStockError(SweetShopError):
    status_code = 400
    default_message = "Insufficient stock"


class AuthenticationError(SweetShopError):
    status_code = 401
    default_message = "Authentication required"


class InvalidCredentialsError(AuthenticationError):
    # same text for unknown email and wrong password
    default_message = "Invalid credentials"


class InvalidTokenError(AuthenticationError):
    default_message = "Invalid token"


class AuthorizationError(SweetShopError):
    status_code = 403
    default_message = "Access denied. Insufficient permissions"


class NotFoundError(SweetShopError):
    status_code = 404
    default_message = "Not found"


class InternalError(SweetShopError):
    status_code = 500


_LOCATIONS = ("body", "query", "path", "header")


def field_errors(errors: list[dict]) -> list[dict]:
    """Flatten pydantic error dicts into ``[{"msg", "param"}]`` entries."""
    out = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in _LOCATIONS:
            loc = loc[1:]
        out.append({"msg": err.get("msg", "Invalid value"), "param": ".".join(loc)})
    return out
