from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from .models import MAX_QUANTITY, Role, SweetFields, SweetPatch


# ----------------------------
# Pydantic Models
# ----------------------------
class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


# request bodies take JSON integers only; stored records coerce on read
class SweetCreate(SweetFields):
    quantity: int = Field(ge=0, le=MAX_QUANTITY, strict=True)


class SweetUpdate(SweetPatch):
    quantity: int | None = Field(default=None, ge=0, le=MAX_QUANTITY, strict=True)


class StockChange(BaseModel):
    # no upper bound: a purchase beyond any stock is "Insufficient stock"
    quantity: int = Field(ge=1, strict=True)


class RestockRequest(StockChange):
    quantity: int = Field(ge=1, le=MAX_QUANTITY, strict=True)


# ----------------------------
# Response envelope
# ----------------------------
def envelope(
    success: bool = True,
    data: Any = None,
    message: str | None = None,
    errors: list[dict] | None = None,
) -> dict:
    body: dict[str, Any] = {"success": success}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if errors is not None:
        body["errors"] = errors
    return body
