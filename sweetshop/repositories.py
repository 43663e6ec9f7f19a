"""
Persistence for users and sweets.

The abstract repositories describe what the services and routes rely on;
the Mongo implementations below are the production storage. Records are
validated through the pydantic models in models.py before every write, so
schema violations surface as ValidationError no matter who calls.
"""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import pydantic
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, OperationFailure, WriteError

from .errors import (
    DuplicateEmailError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    field_errors,
)
from .models import (
    MAX_QUANTITY,
    SweetFields,
    SweetPatch,
    SweetRecord,
    UserRecord,
    is_valid_id,
    sweet_from_document,
    user_from_document,
    utcnow,
)

log = logging.getLogger(__name__)

SWEET_NOT_FOUND = "Sweet not found"
STOCK_LIMIT = "Stock cannot exceed the maximum quantity"

# server-side $jsonSchema validator rejected the document
DOCUMENT_VALIDATION_FAILURE = 121


def validate(model: type[pydantic.BaseModel], data: Mapping[str, Any]) -> pydantic.BaseModel:
    try:
        return model.model_validate(dict(data))
    except pydantic.ValidationError as exc:
        errors = field_errors(exc.errors())
        message = "; ".join(f"{e['param']}: {e['msg']}" if e["param"] else e["msg"] for e in errors)
        raise ValidationError(message, errors) from exc


def sweet_changes(patch: Mapping[str, Any]) -> dict:
    """Validated subset of ``patch`` that should be written."""
    return validate(SweetPatch, patch).model_dump(exclude_none=True)


def search_terms(
    name: str | None, category: str | None, min_price: float | None, max_price: float | None
) -> dict:
    # blank text filters count as absent
    return {
        "name": name.strip() if name and name.strip() else None,
        "category": category.strip() if category and category.strip() else None,
        "min_price": min_price,
        "max_price": max_price,
    }


# ------------------------------------------------------------
# Contracts
# ------------------------------------------------------------

class UserRepository(ABC):
    @abstractmethod
    def create(self, name: str, email: str, password_hash: str, role: str = "user") -> UserRecord:
        ...

    @abstractmethod
    def find_by_email(self, email: str, include_password: bool = False) -> UserRecord | None:
        ...

    @abstractmethod
    def find_by_id(self, user_id: str) -> UserRecord | None:
        ...


class SweetRepository(ABC):
    @abstractmethod
    def create(self, fields: Mapping[str, Any]) -> SweetRecord:
        ...

    @abstractmethod
    def list_all(self) -> list[SweetRecord]:
        ...

    @abstractmethod
    def search(
        self,
        name: str | None = None,
        category: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
    ) -> list[SweetRecord]:
        ...

    @abstractmethod
    def find_by_id(self, sweet_id: str) -> SweetRecord | None:
        ...

    @abstractmethod
    def update(self, sweet_id: str, patch: Mapping[str, Any]) -> SweetRecord | None:
        ...

    @abstractmethod
    def delete(self, sweet_id: str) -> SweetRecord | None:
        ...

    @abstractmethod
    def purchase(self, sweet_id: str, quantity: int) -> SweetRecord:
        """Take ``quantity`` out of stock in one step, or change nothing."""

    @abstractmethod
    def restock(self, sweet_id: str, quantity: int) -> SweetRecord:
        ...


def positive_quantity(quantity: int) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError(
            "Quantity must be at least 1", [{"msg": "Quantity must be at least 1", "param": "quantity"}]
        )
    return quantity


# ------------------------------------------------------------
# MongoDB
# ------------------------------------------------------------

class MongoUserRepository(UserRepository):
    def __init__(self, collection: Collection):
        self._users = collection

    def create(self, name, email, password_hash, role="user"):
        now = utcnow()
        oid = ObjectId()
        user = validate(
            UserRecord,
            {"_id": str(oid), "name": name, "email": email, "role": role or "user",
             "created_at": now, "updated_at": now},
        )
        doc = {"_id": oid, **user.model_dump(exclude={"id"}), "password_hash": password_hash}

        try:
            self._users.insert_one(doc)
        except DuplicateKeyError as exc:
            # unique index on email, also closes the check-then-insert race
            log.info("Duplicate email rejected by unique index")
            raise DuplicateEmailError() from exc

        return user

    def find_by_email(self, email, include_password=False):
        # password hash is only read when asked for
        projection = None if include_password else {"password_hash": 0}
        doc = self._users.find_one({"email": email.strip().lower()}, projection)
        return user_from_document(doc) if doc else None

    def find_by_id(self, user_id):
        if not is_valid_id(user_id):
            return None
        doc = self._users.find_one({"_id": ObjectId(user_id)}, {"password_hash": 0})
        return user_from_document(doc) if doc else None


class MongoSweetRepository(SweetRepository):
    def __init__(self, collection: Collection):
        self._sweets = collection

    def create(self, fields):
        sweet = validate(SweetFields, fields)
        now = utcnow()
        doc = {**sweet.model_dump(), "created_at": now, "updated_at": now}
        try:
            result = self._sweets.insert_one(doc)
        except WriteError as exc:
            log.info("Sweet rejected by the database", extra={"code": exc.code})
            raise ValidationError(str(exc)) from exc
        return sweet_from_document({**doc, "_id": result.inserted_id})

    def list_all(self):
        return [sweet_from_document(doc) for doc in self._sweets.find()]

    def search(self, name=None, category=None, min_price=None, max_price=None):
        terms = search_terms(name, category, min_price, max_price)
        query: dict[str, Any] = {}

        # literal, case-insensitive substring match
        if terms["name"]:
            query["name"] = {"$regex": re.escape(terms["name"]), "$options": "i"}
        if terms["category"]:
            query["category"] = {"$regex": re.escape(terms["category"]), "$options": "i"}

        price: dict[str, float] = {}
        if terms["min_price"] is not None:
            price["$gte"] = terms["min_price"]
        if terms["max_price"] is not None:
            price["$lte"] = terms["max_price"]
        if price:
            query["price"] = price

        return [sweet_from_document(doc) for doc in self._sweets.find(query)]

    def find_by_id(self, sweet_id):
        if not is_valid_id(sweet_id):
            return None
        doc = self._sweets.find_one({"_id": ObjectId(sweet_id)})
        return sweet_from_document(doc) if doc else None

    def update(self, sweet_id, patch):
        changes = sweet_changes(patch)
        if not is_valid_id(sweet_id):
            return None

        try:
            doc = self._sweets.find_one_and_update(
                {"_id": ObjectId(sweet_id)},
                {"$set": {**changes, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        except OperationFailure as exc:
            if exc.code != DOCUMENT_VALIDATION_FAILURE:
                raise
            log.info("Sweet update rejected by the database", extra={"code": exc.code})
            raise ValidationError(str(exc)) from exc
        return sweet_from_document(doc) if doc else None

    def delete(self, sweet_id):
        if not is_valid_id(sweet_id):
            return None
        doc = self._sweets.find_one_and_delete({"_id": ObjectId(sweet_id)})
        return sweet_from_document(doc) if doc else None

    def purchase(self, sweet_id, quantity):
        quantity = positive_quantity(quantity)
        if not is_valid_id(sweet_id):
            raise NotFoundError(SWEET_NOT_FOUND)

        # no stored stock reaches past MAX_QUANTITY, and BSON cannot encode it
        if quantity <= MAX_QUANTITY:
            # decrement only while enough stock remains, in a single server-side operation
            doc = self._sweets.find_one_and_update(
                {"_id": ObjectId(sweet_id), "quantity": {"$gte": quantity}},
                {"$inc": {"quantity": -quantity}, "$set": {"updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
            if doc is not None:
                return sweet_from_document(doc)

        if self._sweets.count_documents({"_id": ObjectId(sweet_id)}, limit=1) == 0:
            raise NotFoundError(SWEET_NOT_FOUND)
        raise InsufficientStockError()

    def restock(self, sweet_id, quantity):
        quantity = positive_quantity(quantity)
        if not is_valid_id(sweet_id):
            raise NotFoundError(SWEET_NOT_FOUND)

        # increment only while the result still fits in a 64-bit integer
        doc = None
        if quantity <= MAX_QUANTITY:
            doc = self._sweets.find_one_and_update(
                {"_id": ObjectId(sweet_id), "quantity": {"$lte": MAX_QUANTITY - quantity}},
                {"$inc": {"quantity": quantity}, "$set": {"updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        if doc is not None:
            return sweet_from_document(doc)

        if self._sweets.count_documents({"_id": ObjectId(sweet_id)}, limit=1) == 0:
            raise NotFoundError(SWEET_NOT_FOUND)
        raise ValidationError(STOCK_LIMIT, [{"msg": STOCK_LIMIT, "param": "quantity"}])
