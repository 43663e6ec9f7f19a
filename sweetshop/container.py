"""
Composition root: settings, repositories and services for one app instance.

create_app() stores the container on ``app.state``; route dependencies read
it from there, never from module globals.
"""

from dataclasses import dataclass

from .config import Settings
from .memory import InMemorySweetRepository, InMemoryUserRepository
from .models import get_mongo_collections
from .repositories import (
    MongoSweetRepository,
    MongoUserRepository,
    SweetRepository,
    UserRepository,
)
from .security import TokenService
from .services import AuthService


@dataclass
class Container:
    settings: Settings
    users: UserRepository
    sweets: SweetRepository
    tokens: TokenService
    auth: AuthService


def build_container(
    settings: Settings,
    users: UserRepository | None = None,
    sweets: SweetRepository | None = None,
) -> Container:
    settings.validate()

    if users is None or sweets is None:
        if settings.storage_backend == "memory":
            users = users or InMemoryUserRepository()
            sweets = sweets or InMemorySweetRepository()
        else:
            users_collection, sweets_collection = get_mongo_collections(settings)
            users = users or MongoUserRepository(users_collection)
            sweets = sweets or MongoSweetRepository(sweets_collection)

    tokens = TokenService(settings.jwt_secret, settings.token_lifetime)
    return Container(
        settings=settings,
        users=users,
        sweets=sweets,
        tokens=tokens,
        auth=AuthService(users, tokens),
    )
