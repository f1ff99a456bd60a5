# fridaygt/models/run_list.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class RunList(SQLModel, table=True):
    """
    Ordered programme of races for a race night.

    Flags:
      - is_active: at most one active list per creator
      - is_live: at most one live list across the whole site
    """

    __tablename__ = "run_lists"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(max_length=200)
    description: str | None = Field(default=None, max_length=2000)

    is_public: bool = Field(default=True)
    is_active: bool = Field(default=False)
    is_live: bool = Field(default=False)

    created_by_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class RunListEntry(SQLModel, table=True):
    """One slot in a run list, numbered 1..n by `order`."""

    __tablename__ = "run_list_entries"
    __table_args__ = (
        UniqueConstraint("run_list_id", "order", name="uq_run_list_entry_order"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    run_list_id: uuid.UUID = Field(foreign_key="run_lists.id", index=True)

    order: int

    track_id: uuid.UUID = Field(foreign_key="tracks.id")

    race_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="races.id",
        index=True,
    )

    notes: str | None = Field(default=None, max_length=500)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class RunListEntryCar(SQLModel, table=True):
    """Car (and optional build) allowed for a run-list entry."""

    __tablename__ = "run_list_entry_cars"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    entry_id: uuid.UUID = Field(foreign_key="run_list_entries.id", index=True)
    car_id: uuid.UUID = Field(foreign_key="cars.id")

    build_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="car_builds.id",
        index=True,
    )
