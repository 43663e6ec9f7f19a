from datetime import datetime, timezone
from typing import Literal

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection

from .config import Settings

Role = Literal["user", "admin"]

# largest integer a BSON document can hold
MAX_QUANTITY = 2**63 - 1


def utcnow() -> datetime:
    # Mongo stores millisecond precision, keep in-memory records comparable
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def is_valid_id(value: str) -> bool:
    return isinstance(value, str) and ObjectId.is_valid(value)


# ----------------------------
# Records
# ----------------------------
# Pydantic models are the schema of what goes into the collections.
# Repositories validate through them before every write.

def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


class UserRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    email: str
    role: Role = "user"
    # only filled when explicitly selected
    password_hash: str | None = Field(default=None, exclude=True)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return _not_blank(v).lower()

    def summary(self) -> dict:
        return {"_id": self.id, "name": self.name, "email": self.email, "role": self.role}


class SweetFields(BaseModel):
    """Writable sweet fields with the store-level constraints."""

    name: str
    category: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=0, le=MAX_QUANTITY)
    description: str | None = None

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _not_blank(v)


class SweetPatch(BaseModel):
    """Partial update: only the supplied fields are validated and written."""

    name: str | None = None
    category: str | None = None
    price: float | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)
    description: str | None = None

    @field_validator("name", "category")
    @classmethod
    def strip_optional(cls, v: str | None) -> str | None:
        return v if v is None else _not_blank(v)


class SweetRecord(SweetFields):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def public(self) -> dict:
        """Wire form: ``_id``, ``createdAt`` and ``updatedAt`` keys."""
        data = self.model_dump(mode="json", exclude={"id", "created_at", "updated_at"})
        data["_id"] = self.id
        data["createdAt"] = self.created_at.isoformat() if self.created_at else None
        data["updatedAt"] = self.updated_at.isoformat() if self.updated_at else None
        return data


def user_from_document(doc: dict) -> UserRecord:
    return UserRecord.model_validate({**doc, "_id": str(doc["_id"])})


def sweet_from_document(doc: dict) -> SweetRecord:
    return SweetRecord.model_validate({**doc, "_id": str(doc["_id"])})


# ----------------------------
# MongoDB Setup
# ----------------------------

def get_mongo_collections(settings: Settings) -> tuple[Collection, Collection]:
    client = MongoClient(settings.mongo_uri, tz_aware=True)
    db = client[settings.mongo_db]
    users = db["users"]  # user collection
    sweets = db["sweets"]  # inventory collection

    # create indexes (MongoDB skips them if they already exist)
    users.create_index([("email", ASCENDING)], unique=True)
    sweets.create_index([("name", ASCENDING)])
    sweets.create_index([("category", ASCENDING)])

    return users, sweets
