# fridaygt/models/auth.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field

from fridaygt.database import AUTH_SCHEMA


class AuthIdentity(SQLModel, table=True):
    """
    Auth-provider record of a verified sign-in credential (next_auth.users).

    Created on the first successful magic-link verification. Knows nothing
    about roles or gamertags; those live on the application `users` table.
    """

    __tablename__ = "users"
    __table_args__ = {"schema": AUTH_SCHEMA}

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    email: str = Field(unique=True, index=True)

    email_verified: datetime | None = Field(
        default=None,
        description="When the email was last verified via magic link",
    )

    name: str | None = None


class AuthAccount(SQLModel, table=True):
    """Provider account linked to an identity (next_auth.accounts)."""

    __tablename__ = "accounts"
    __table_args__ = {"schema": AUTH_SCHEMA}

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key=f"{AUTH_SCHEMA}.users.id",
        index=True,
    )

    # "email" for magic-link sign in
    type: str = Field(default="email")
    provider: str = Field(default="email")
    provider_account_id: str


class AuthSession(SQLModel, table=True):
    """
    Server-side session row (next_auth.sessions).

    The signed session token carries `session_token` as its `sid` claim;
    deleting the row revokes the token.
    """

    __tablename__ = "sessions"
    __table_args__ = {"schema": AUTH_SCHEMA}

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    session_token: str = Field(unique=True, index=True)

    user_id: uuid.UUID = Field(
        foreign_key=f"{AUTH_SCHEMA}.users.id",
        index=True,
    )

    expires: datetime


class VerificationToken(SQLModel, table=True):
    """
    One-time magic-link token (next_auth.verification_tokens).

    Only the SHA-256 hash of the token is stored.
    """

    __tablename__ = "verification_tokens"
    __table_args__ = {"schema": AUTH_SCHEMA}

    token: str = Field(primary_key=True)

    identifier: str = Field(index=True, description="Email the link was sent to")

    expires: datetime

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
