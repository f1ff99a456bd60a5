# fridaygt/schemas/catalog.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from fridaygt.schemas.stats import LapStatistics

TrackCategory = Literal["CIRCUIT", "CITY_COURSE", "DIRT", "OVAL"]
CarCategory = Literal[
    "N100", "N200", "N300", "N400", "N500", "N600", "N700", "N800", "N1000",
    "GR1", "GR2", "GR3", "GR4",
    "RALLY", "KART", "VISION_GT", "OTHER",
]
DriveType = Literal["FF", "FR", "MR", "RR", "AWD"]


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("field cannot be empty")
    return v


# ----- Tracks -----


class TrackCreate(SQLModel):
    """
    Admin payload for a new track.

    slug is optional; if omitted it is derived from name + layout.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    slug: str | None = Field(default=None, max_length=255)
    location: str | None = None
    layout: str | None = None
    length_km: float | None = Field(default=None, gt=0)
    corners: int | None = Field(default=None, ge=0)
    category: TrackCategory = "CIRCUIT"
    is_reverse: bool = False
    image_url: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        return _strip_required(v)


class TrackRead(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
    location: str | None
    layout: str | None
    length_km: float | None
    corners: int | None
    category: TrackCategory
    is_reverse: bool
    image_url: str | None
    created_at: datetime


class CarBest(SQLModel):
    """Fastest lap and lap count for one car on a track."""

    car_id: uuid.UUID
    car_name: str
    car_slug: str
    manufacturer: str
    best_time_ms: int
    total_laps: int


class TrackDetailRead(SQLModel):
    track: TrackRead
    by_car: list[CarBest]
    statistics: LapStatistics


# ----- Cars -----


class CarCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    slug: str | None = Field(default=None, max_length=255)
    manufacturer: str = Field(max_length=100)
    year: int | None = Field(default=None, ge=1885, le=2100)
    category: CarCategory | None = None
    drive_type: DriveType | None = None
    max_power: int | None = Field(default=None, ge=0)
    weight: int | None = Field(default=None, ge=0)
    pp: int | None = Field(default=None, ge=0)
    country: str | None = None
    image_url: str | None = None

    @field_validator("name", "manufacturer")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return _strip_required(v)


class CarRead(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
    manufacturer: str
    year: int | None
    category: str | None
    drive_type: str | None
    max_power: int | None
    weight: int | None
    pp: int | None
    country: str | None
    image_url: str | None


class CarListRead(SQLModel):
    """Cars plus the distinct manufacturer list for filter menus."""

    cars: list[CarRead]
    manufacturers: list[str]


# ----- Parts & tuning reference data -----


class PartCategoryRead(SQLModel):
    id: uuid.UUID
    name: str
    display_order: int


class PartRead(SQLModel):
    id: uuid.UUID
    category_id: uuid.UUID
    category_name: str | None = None
    name: str
    description: str | None
    is_active: bool


class TuningSectionRead(SQLModel):
    id: uuid.UUID
    name: str
    display_order: int


class TuningSettingRead(SQLModel):
    id: uuid.UUID
    section_id: uuid.UUID
    section_name: str | None = None
    name: str
    description: str | None
    default_value: str | None
    input_type: str
    unit: str | None
    display_order: int | None
    is_active: bool
