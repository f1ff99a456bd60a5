# fridaygt/schemas/user.py
import re
import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field

Role = Literal["PENDING", "USER", "ADMIN"]

GAMERTAG_MIN = 3
GAMERTAG_MAX = 20
_GAMERTAG_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_gamertag(v: str | None) -> str | None:
    """
    Trim and check a gamertag: 3-20 chars of [A-Za-z0-9_-].
    """
    if v is None:
        return v
    v = v.strip()
    if len(v) < GAMERTAG_MIN:
        raise ValueError(f"Gamertag must be at least {GAMERTAG_MIN} characters")
    if len(v) > GAMERTAG_MAX:
        raise ValueError(f"Gamertag must be at most {GAMERTAG_MAX} characters")
    # ASCII only; str.isalnum() would accept unicode letters
    if not _GAMERTAG_RE.fullmatch(v):
        raise ValueError(
            "Gamertag can only contain letters, numbers, hyphens, and underscores"
        )
    return v


def normalize_optional_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class UserRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    email: str
    name: str | None
    gamertag: str | None
    role: Role
    created_at: datetime


class ProfileUpdate(SQLModel):
    """
    Self-service profile edit.

    Role is deliberately absent: setting a gamertag never changes role.
    """

    model_config = ConfigDict(extra="forbid")

    gamertag: str | None = None
    name: str | None = Field(default=None, max_length=100)

    @field_validator("gamertag")
    @classmethod
    def check_gamertag(cls, v: str | None) -> str | None:
        return validate_gamertag(v)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        return normalize_optional_name(v)


class AdminUserCreate(SQLModel):
    """
    Admin-created application user. Any starting role is allowed.
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    name: str | None = Field(default=None, max_length=100)
    gamertag: str | None = None
    role: Role = "PENDING"

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("gamertag")
    @classmethod
    def check_gamertag(cls, v: str | None) -> str | None:
        return validate_gamertag(v)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        return normalize_optional_name(v)


class AdminUserUpdate(SQLModel):
    """
    Admin-only update. `role` is the single "set role" transition.
    """

    model_config = ConfigDict(extra="forbid")

    role: Role | None = None
    name: str | None = Field(default=None, max_length=100)
    gamertag: str | None = None

    @field_validator("gamertag")
    @classmethod
    def check_gamertag(cls, v: str | None) -> str | None:
        return validate_gamertag(v)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        return normalize_optional_name(v)


class RejectUserRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    reason: str | None = Field(default=None, max_length=500)

    @field_validator("reason")
    @classmethod
    def normalize_reason(cls, v: str | None) -> str | None:
        return normalize_optional_name(v)


class SuccessResponse(SQLModel):
    success: bool = True
    message: str | None = None
