# fridaygt/schemas/race.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from fridaygt.schemas.stats import LapStatistics

Weather = Literal["dry", "wet"]


def _trim_optional(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class RaceCreate(SQLModel):
    """
    New race: a track plus one RaceCar per build (car taken from the build).
    """

    model_config = ConfigDict(extra="forbid")

    track_id: uuid.UUID
    build_ids: list[uuid.UUID] = Field(min_length=1)
    name: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    laps: int | None = Field(default=None, gt=0)
    weather: Weather | None = None
    is_active: bool = False

    @field_validator("name", "description")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return _trim_optional(v)


class RaceUpdate(SQLModel):
    """
    Partial update.

    - build_ids: when present, replaces the race cars
    - created_by_id: ownership transfer, admin only
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    laps: int | None = Field(default=None, gt=0)
    weather: Weather | None = None
    is_active: bool | None = None
    build_ids: list[uuid.UUID] | None = Field(default=None, min_length=1)
    created_by_id: uuid.UUID | None = None

    @field_validator("name", "description")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return _trim_optional(v)


class RaceCarRead(SQLModel):
    id: uuid.UUID
    car_id: uuid.UUID
    build_id: uuid.UUID | None
    car_name: str | None = None
    build_name: str | None = None


class RaceRead(SQLModel):
    id: uuid.UUID
    track_id: uuid.UUID
    track_name: str | None = None
    name: str | None
    display_name: str
    description: str | None
    created_by_id: uuid.UUID
    laps: int | None
    weather: Weather | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    cars: list[RaceCarRead] = []


class LeaderboardEntry(SQLModel):
    """Best lap for one user / car / build combination."""

    position: int
    user_id: uuid.UUID
    user_name: str | None
    gamertag: str | None
    car_id: uuid.UUID
    build_id: uuid.UUID | None
    build_name: str | None
    best_time_ms: int
    total_laps: int
    best_lap_id: uuid.UUID


class RaceDetailRead(RaceRead):
    leaderboard: list[LeaderboardEntry] = []
    statistics: LapStatistics = LapStatistics()
