# fridaygt/schemas/run_list.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


def _required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name is required")
    return v


def _trim_optional(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class RunListCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    is_public: bool = True

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _required(v)

    @field_validator("description")
    @classmethod
    def normalize_description(cls, v: str | None) -> str | None:
        return _trim_optional(v)


class RunListUpdate(SQLModel):
    """
    Partial update.

    - is_active=true deactivates the creator's other lists
    - is_live=true clears the live flag on every other list
    - created_by_id: ownership transfer, admin only
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    is_public: bool | None = None
    is_active: bool | None = None
    is_live: bool | None = None
    created_by_id: uuid.UUID | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _required(v)

    @field_validator("description")
    @classmethod
    def normalize_description(cls, v: str | None) -> str | None:
        return _trim_optional(v)


class EntryCarInput(SQLModel):
    model_config = ConfigDict(extra="forbid")

    car_id: uuid.UUID
    build_id: uuid.UUID | None = None


class RunListEntryCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    track_id: uuid.UUID
    cars: list[EntryCarInput] = Field(min_length=1)
    race_id: uuid.UUID | None = None
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return _trim_optional(v)


class RunListEntryUpdate(SQLModel):
    """cars, when present, replaces the entry's car list."""

    model_config = ConfigDict(extra="forbid")

    track_id: uuid.UUID | None = None
    race_id: uuid.UUID | None = None
    notes: str | None = Field(default=None, max_length=500)
    cars: list[EntryCarInput] | None = Field(default=None, min_length=1)

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return _trim_optional(v)


class EntryCarRead(SQLModel):
    id: uuid.UUID
    car_id: uuid.UUID
    build_id: uuid.UUID | None


class RunListEntryRead(SQLModel):
    id: uuid.UUID
    run_list_id: uuid.UUID
    order: int
    track_id: uuid.UUID
    race_id: uuid.UUID | None
    notes: str | None
    cars: list[EntryCarRead] = []


class RunListRead(SQLModel):
    id: uuid.UUID
    name: str
    description: str | None
    is_public: bool
    is_active: bool
    is_live: bool
    created_by_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class RunListDetailRead(RunListRead):
    entries: list[RunListEntryRead] = []


class RunListEntryReorder(SQLModel):
    """Move one entry to `new_order`; past the end means last."""

    model_config = ConfigDict(extra="forbid")

    entry_id: uuid.UUID
    new_order: int = Field(ge=1)


class ActiveRunListRead(SQLModel):
    run_list: RunListDetailRead | None = None
