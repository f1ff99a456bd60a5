# fridaygt/models/race.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Race(SQLModel, table=True):
    """
    A race definition: one track plus the allowed cars (via RaceCar).

    created_by_id is the owner for edit/delete purposes.
    """

    __tablename__ = "races"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    track_id: uuid.UUID = Field(foreign_key="tracks.id", index=True)

    name: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=2000)

    created_by_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    laps: int | None = None

    # dry | wet
    weather: str | None = None

    is_active: bool = Field(default=False, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class RaceCar(SQLModel, table=True):
    """Car (and optionally the build it runs) allowed in a race."""

    __tablename__ = "race_cars"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    race_id: uuid.UUID = Field(foreign_key="races.id", index=True)
    car_id: uuid.UUID = Field(foreign_key="cars.id", index=True)

    build_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="car_builds.id",
        index=True,
    )
