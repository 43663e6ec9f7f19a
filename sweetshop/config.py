"""
Application settings.

Values come from the environment (a local .env file is loaded first with
python-dotenv). JWT_SECRET is mandatory: building the app without it is a
startup failure, never a per-request one.
"""

import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_JWT_EXPIRE = "7d"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


def parse_duration(value: str | int) -> timedelta:
    """Parse a token lifetime such as ``7d``, ``12h``, ``30m`` or plain seconds."""
    if isinstance(value, int):
        return timedelta(seconds=value)

    match = _DURATION_RE.match(str(value).lower())
    if not match:
        raise ConfigurationError(f"Invalid duration: {value!r}")

    amount, unit = match.groups()
    lifetime = timedelta(**{_DURATION_UNITS[unit]: int(amount)})
    if lifetime <= timedelta(0):
        raise ConfigurationError(f"Duration must be positive: {value!r}")
    return lifetime


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    jwt_secret: str = ""
    jwt_expire: str = DEFAULT_JWT_EXPIRE
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "sweetshop"
    storage_backend: str = "mongo"  # "mongo" or "memory"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    log_json: bool = True
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            jwt_secret=os.getenv("JWT_SECRET", ""),
            jwt_expire=os.getenv("JWT_EXPIRE") or DEFAULT_JWT_EXPIRE,
            mongo_uri=os.getenv("MONGO_URI", cls.mongo_uri),
            mongo_db=os.getenv("MONGO_DB", cls.mongo_db),
            storage_backend=os.getenv("STORAGE_BACKEND", cls.storage_backend).lower(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            log_json=_env_bool("LOG_JSON", True),
            host=os.getenv("HOST", cls.host),
            port=_env_int("PORT", cls.port),
        )

    @property
    def token_lifetime(self) -> timedelta:
        return parse_duration(self.jwt_expire)

    def validate(self) -> "Settings":
        """Fail fast on settings the server cannot run without."""
        if not self.jwt_secret:
            raise ConfigurationError("JWT_SECRET is not defined")
        if self.storage_backend not in ("mongo", "memory"):
            raise ConfigurationError(
                f"STORAGE_BACKEND must be 'mongo' or 'memory', got {self.storage_backend!r}"
            )
        # raises on a malformed JWT_EXPIRE
        self.token_lifetime
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
