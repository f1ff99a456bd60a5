# fridaygt/models/run_session.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class RunSession(SQLModel, table=True):
    """
    A scheduled race night that works through a run list.

    status: SCHEDULED | IN_PROGRESS | COMPLETED | CANCELLED
    """

    __tablename__ = "run_sessions"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    run_list_id: uuid.UUID = Field(foreign_key="run_lists.id", index=True)

    name: str = Field(max_length=200)

    date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    current_entry_order: int | None = None

    status: str = Field(default="SCHEDULED", index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class SessionAttendance(SQLModel, table=True):
    """
    Who turned up to a session.

    status: PRESENT | LEFT | NO_SHOW
    """

    __tablename__ = "session_attendance"
    __table_args__ = (
        UniqueConstraint("session_id", "user_id", name="uq_session_attendance"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    session_id: uuid.UUID = Field(foreign_key="run_sessions.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    status: str = Field(default="PRESENT")

    joined_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    left_at: datetime | None = None
