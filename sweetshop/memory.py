"""
In-memory repositories.

Used by the test suite and for running the API without MongoDB
(STORAGE_BACKEND=memory). They follow the Mongo repositories' contract,
including the all-or-nothing stock updates: every read-check-write runs
under a single lock, so concurrent purchases cannot over-sell.
"""

import copy
from threading import Lock

from bson import ObjectId

from .errors import DuplicateEmailError, InsufficientStockError, NotFoundError, ValidationError
from .models import MAX_QUANTITY, SweetFields, SweetRecord, UserRecord, is_valid_id, utcnow
from .repositories import (
    STOCK_LIMIT,
    SWEET_NOT_FOUND,
    SweetRepository,
    UserRepository,
    positive_quantity,
    search_terms,
    sweet_changes,
    validate,
)


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._users: dict[str, dict] = {}

    def create(self, name, email, password_hash, role="user"):
        now = utcnow()
        user = validate(
            UserRecord,
            {"_id": str(ObjectId()), "name": name, "email": email, "role": role or "user",
             "created_at": now, "updated_at": now},
        )
        with self._lock:
            if any(doc["email"] == user.email for doc in self._users.values()):
                raise DuplicateEmailError()
            self._users[user.id] = {
                **user.model_dump(by_alias=True), "password_hash": password_hash
            }
        return user

    def find_by_email(self, email, include_password=False):
        email = email.strip().lower()
        with self._lock:
            doc = next((d for d in self._users.values() if d["email"] == email), None)
            if doc is None:
                return None
            doc = dict(doc)
        if not include_password:
            doc.pop("password_hash", None)
        return UserRecord.model_validate(doc)

    def find_by_id(self, user_id):
        with self._lock:
            doc = self._users.get(user_id)
            if doc is None:
                return None
            doc = dict(doc)
        doc.pop("password_hash", None)
        return UserRecord.model_validate(doc)


class InMemorySweetRepository(SweetRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        # insertion ordered, like a collection scan
        self._sweets: dict[str, dict] = {}

    @staticmethod
    def _record(doc: dict) -> SweetRecord:
        return SweetRecord.model_validate(copy.deepcopy(doc))

    def create(self, fields):
        sweet = validate(SweetFields, fields)
        now = utcnow()
        doc = {**sweet.model_dump(), "_id": str(ObjectId()), "created_at": now, "updated_at": now}
        with self._lock:
            self._sweets[doc["_id"]] = doc
        return self._record(doc)

    def list_all(self):
        with self._lock:
            return [self._record(doc) for doc in self._sweets.values()]

    def search(self, name=None, category=None, min_price=None, max_price=None):
        terms = search_terms(name, category, min_price, max_price)

        def matches(doc: dict) -> bool:
            if terms["name"] and terms["name"].lower() not in doc["name"].lower():
                return False
            if terms["category"] and terms["category"].lower() not in doc["category"].lower():
                return False
            if terms["min_price"] is not None and doc["price"] < terms["min_price"]:
                return False
            if terms["max_price"] is not None and doc["price"] > terms["max_price"]:
                return False
            return True

        with self._lock:
            return [self._record(doc) for doc in self._sweets.values() if matches(doc)]

    def find_by_id(self, sweet_id):
        with self._lock:
            doc = self._sweets.get(sweet_id)
            return self._record(doc) if doc else None

    def update(self, sweet_id, patch):
        changes = sweet_changes(patch)
        with self._lock:
            doc = self._sweets.get(sweet_id)
            if doc is None:
                return None
            doc.update(changes, updated_at=utcnow())
            return self._record(doc)

    def delete(self, sweet_id):
        with self._lock:
            doc = self._sweets.pop(sweet_id, None)
            return self._record(doc) if doc else None

    def purchase(self, sweet_id, quantity):
        quantity = positive_quantity(quantity)
        with self._lock:
            doc = self._sweets.get(sweet_id) if is_valid_id(sweet_id) else None
            if doc is None:
                raise NotFoundError(SWEET_NOT_FOUND)
            if doc["quantity"] < quantity:
                raise InsufficientStockError()
            doc["quantity"] -= quantity
            doc["updated_at"] = utcnow()
            return self._record(doc)

    def restock(self, sweet_id, quantity):
        quantity = positive_quantity(quantity)
        with self._lock:
            doc = self._sweets.get(sweet_id) if is_valid_id(sweet_id) else None
            if doc is None:
                raise NotFoundError(SWEET_NOT_FOUND)
            if doc["quantity"] > MAX_QUANTITY - quantity:
                raise ValidationError(STOCK_LIMIT, [{"msg": STOCK_LIMIT, "param": "quantity"}])
            doc["quantity"] += quantity
            doc["updated_at"] = utcnow()
            return self._record(doc)
