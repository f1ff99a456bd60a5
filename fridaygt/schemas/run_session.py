# fridaygt/schemas/run_session.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from fridaygt.schemas.lap_time import LapTimeRead

SessionStatus = Literal["SCHEDULED", "IN_PROGRESS", "COMPLETED", "CANCELLED"]
AttendanceStatus = Literal["PRESENT", "LEFT", "NO_SHOW"]


class RunSessionCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    run_list_id: uuid.UUID
    name: str = Field(max_length=200)
    date: datetime | None = None
    status: SessionStatus = "SCHEDULED"

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class RunSessionUpdate(SQLModel):
    """
    Moving to IN_PROGRESS without current_entry_order starts at entry 1.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=200)
    date: datetime | None = None
    status: SessionStatus | None = None
    current_entry_order: int | None = Field(default=None, ge=1)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class AttendanceRead(SQLModel):
    id: uuid.UUID
    session_id: uuid.UUID
    user_id: uuid.UUID
    gamertag: str | None = None
    status: AttendanceStatus
    joined_at: datetime
    left_at: datetime | None


class RunSessionRead(SQLModel):
    id: uuid.UUID
    run_list_id: uuid.UUID
    name: str
    date: datetime
    current_entry_order: int | None
    status: SessionStatus
    created_at: datetime
    updated_at: datetime


class RunSessionDetailRead(RunSessionRead):
    attendance: list[AttendanceRead] = []
    lap_times: list[LapTimeRead] = []


class TonightRead(SQLModel):
    session: RunSessionDetailRead | None = None
