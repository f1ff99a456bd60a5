# fridaygt/models/build.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class CarBuild(SQLModel, table=True):
    """
    A user's tune for a specific car.

    Ownership:
      - user_id is the owner; only the owner or an admin can edit/delete.
      - transferring ownership (changing user_id) is admin-only.

    Visibility:
      - is_public builds are readable by anyone, private ones only by
        the owner and admins.
    """

    __tablename__ = "car_builds"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    car_id: uuid.UUID = Field(
        foreign_key="cars.id",
        index=True,
    )

    name: str = Field(max_length=100)
    description: str | None = Field(default=None, max_length=500)

    is_public: bool = Field(default=False, index=True)

    # Gear ratios are free text as entered in-game
    final_drive: str | None = None
    gear_1: str | None = None
    gear_2: str | None = None
    gear_3: str | None = None
    gear_4: str | None = None
    gear_5: str | None = None
    gear_6: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class CarBuildUpgrade(SQLModel, table=True):
    """
    Installed part on a build.

    `category` and `part` are snapshots of PartCategory.name / Part.name at
    the time the build was saved, so renaming reference data does not
    rewrite existing builds.
    """

    __tablename__ = "car_build_upgrades"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    build_id: uuid.UUID = Field(
        foreign_key="car_builds.id",
        index=True,
    )

    part_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="parts.id",
    )

    category: str
    part: str
    value: str | None = None


class CarBuildSetting(SQLModel, table=True):
    """Tuning value on a build (category/setting are snapshots)."""

    __tablename__ = "car_build_settings"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    build_id: uuid.UUID = Field(
        foreign_key="car_builds.id",
        index=True,
    )

    setting_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="tuning_settings.id",
    )

    category: str
    setting: str
    value: str
