# fridaygt/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Application user (community member) for FridayGT.

    Identity:
      - email: matches the auth provider's identity email. There is NO
        foreign key to next_auth.users; the two records are joined by
        email only and may exist independently of each other.

    Role:
      - "PENDING" | "USER" | "ADMIN"
      - A signed-in identity without a row here behaves as PENDING.

    Gamertag:
      - public handle, unique when set, 3-20 chars [A-Za-z0-9_-].
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Verified sign-in email (join key to the auth identity)",
    )

    name: str | None = Field(
        default=None,
        max_length=100,
        description="Optional display name",
    )

    gamertag: str | None = Field(
        default=None,
        unique=True,
        max_length=20,
        description="Public handle, unique across users",
    )

    role: str = Field(
        default="PENDING",
        index=True,
        description="Application role: PENDING | USER | ADMIN",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last modification timestamp (UTC)",
    )
