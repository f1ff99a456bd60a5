# fridaygt/schemas/auth.py
import uuid
from datetime import datetime

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel


class SignInRequest(SQLModel):
    """Request a magic link for `email`."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class SessionTokenRead(SQLModel):
    token: str
    expires: datetime


class SessionUserRead(SQLModel):
    """
    The resolved session user.

    `id` is None for identities without an application User row.
    """

    id: uuid.UUID | None
    email: str
    name: str | None = None
    role: str
    gamertag: str | None = None


class SessionRead(SQLModel):
    user: SessionUserRead | None = None


class TokenCleanupRead(SQLModel):
    success: bool = True
    message: str
    deleted: int
    timestamp: datetime
