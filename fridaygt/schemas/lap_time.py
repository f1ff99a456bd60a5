# fridaygt/schemas/lap_time.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

SessionType = Literal["Q", "R"]

MIN_LAP_MS = 10_000
MAX_LAP_MS = 1_800_000


def _check_time(v: int | None) -> int | None:
    if v is None:
        return v
    if v < MIN_LAP_MS:
        raise ValueError("Lap time must be at least 10 seconds")
    if v > MAX_LAP_MS:
        raise ValueError("Lap time must be at most 30 minutes")
    return v


def _trim_optional(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class LapTimeCreate(SQLModel):
    """
    Record a lap.

    build_name is not accepted from the client; it is copied from the
    referenced build.
    """

    model_config = ConfigDict(extra="forbid")

    track_id: uuid.UUID
    car_id: uuid.UUID
    build_id: uuid.UUID | None = None
    time_ms: int
    session_type: SessionType = "R"
    session_id: uuid.UUID | None = None
    notes: str | None = Field(default=None, max_length=500)
    conditions: str | None = Field(default=None, max_length=200)

    @field_validator("time_ms")
    @classmethod
    def check_time(cls, v: int) -> int:
        return _check_time(v)

    @field_validator("notes", "conditions")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return _trim_optional(v)


class LapTimeUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    time_ms: int | None = None
    session_type: SessionType | None = None
    notes: str | None = Field(default=None, max_length=500)
    conditions: str | None = Field(default=None, max_length=200)

    @field_validator("time_ms")
    @classmethod
    def check_time(cls, v: int | None) -> int | None:
        return _check_time(v)

    @field_validator("notes", "conditions")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return _trim_optional(v)


class LapTimeRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    track_id: uuid.UUID
    car_id: uuid.UUID
    build_id: uuid.UUID | None
    build_name: str | None
    time_ms: int
    session_type: SessionType
    session_id: uuid.UUID | None
    notes: str | None
    conditions: str | None
    created_at: datetime
    updated_at: datetime
