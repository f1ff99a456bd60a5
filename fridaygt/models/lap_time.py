# fridaygt/models/lap_time.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class LapTime(SQLModel, table=True):
    """
    A recorded lap for a (track, car) combo.

    build_name is copied from the build when the lap is recorded; it stays
    readable after the build is renamed or deleted (build_id is nulled).
    """

    __tablename__ = "lap_times"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    track_id: uuid.UUID = Field(foreign_key="tracks.id", index=True)
    car_id: uuid.UUID = Field(foreign_key="cars.id", index=True)

    build_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="car_builds.id",
        index=True,
    )

    build_name: str | None = Field(
        default=None,
        description="Snapshot of the build name at creation",
    )

    time_ms: int = Field(description="Lap time in milliseconds")

    # Q (qualifying) | R (race)
    session_type: str = Field(default="R", max_length=1)

    session_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="run_sessions.id",
        index=True,
    )

    notes: str | None = Field(default=None, max_length=500)
    conditions: str | None = Field(default=None, max_length=200)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
