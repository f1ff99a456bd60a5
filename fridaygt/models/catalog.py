# fridaygt/models/catalog.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Track(SQLModel, table=True):
    """
    Track / layout reference data.

    category: CIRCUIT | CITY_COURSE | DIRT | OVAL
    """

    __tablename__ = "tracks"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(unique=True, max_length=255)

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    location: str | None = None
    layout: str | None = None
    length_km: float | None = Field(default=None, gt=0)
    corners: int | None = Field(default=None, ge=0)

    category: str = Field(default="CIRCUIT", index=True)

    is_reverse: bool = False
    image_url: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class Car(SQLModel, table=True):
    """
    Car reference data.

    category: N100..N1000 | GR1..GR4 | RALLY | KART | VISION_GT | OTHER
    drive_type: FF | FR | MR | RR | AWD
    """

    __tablename__ = "cars"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(max_length=255)

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
    )

    manufacturer: str = Field(index=True)
    year: int | None = None
    category: str | None = Field(default=None, index=True)
    drive_type: str | None = None
    max_power: int | None = None
    weight: int | None = None
    pp: int | None = None
    country: str | None = None
    image_url: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class PartCategory(SQLModel, table=True):
    """Grouping of upgrade parts (e.g. Engine, Suspension)."""

    __tablename__ = "part_categories"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=50)
    display_order: int = 0


class Part(SQLModel, table=True):
    """An installable upgrade part."""

    __tablename__ = "parts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    category_id: uuid.UUID = Field(
        foreign_key="part_categories.id",
        index=True,
    )

    name: str = Field(max_length=100)
    description: str | None = None
    is_active: bool = Field(default=True, index=True)


class TuningSection(SQLModel, table=True):
    """Grouping of tuning settings (e.g. Suspension, LSD, Transmission)."""

    __tablename__ = "tuning_sections"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=50)
    display_order: int = 0


class TuningSetting(SQLModel, table=True):
    """A single tunable value definition."""

    __tablename__ = "tuning_settings"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    section_id: uuid.UUID = Field(
        foreign_key="tuning_sections.id",
        index=True,
    )

    name: str = Field(max_length=100)
    description: str | None = None
    default_value: str | None = Field(default=None, max_length=100)

    # text | number | slider | dropdown
    input_type: str = Field(default="text", max_length=20)
    unit: str | None = Field(default=None, max_length=20)

    display_order: int | None = None
    is_active: bool = Field(default=True, index=True)
