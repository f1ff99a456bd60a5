# fridaygt/schemas/build.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from fridaygt.schemas.stats import LapStatistics


def _trim_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Build name is required")
    return v


def _trim_optional(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class UpgradeInput(SQLModel):
    """
    One installed part.

    Either `part_id` (resolved against the parts table, which supplies the
    category/part names) or free-text `category` + `part`.
    """

    model_config = ConfigDict(extra="forbid")

    part_id: uuid.UUID | None = None
    category: str | None = None
    part: str | None = None
    value: str | None = None


class SettingInput(SQLModel):
    """
    One tuning value.

    Either `setting_id` (resolved against tuning_settings) or free-text
    `category` + `setting`.
    """

    model_config = ConfigDict(extra="forbid")

    setting_id: uuid.UUID | None = None
    category: str | None = None
    setting: str | None = None
    value: str | None = None


class GearFields(SQLModel):
    final_drive: str | None = None
    gear_1: str | None = None
    gear_2: str | None = None
    gear_3: str | None = None
    gear_4: str | None = None
    gear_5: str | None = None
    gear_6: str | None = None


class BuildCreate(GearFields):
    model_config = ConfigDict(extra="forbid")

    car_id: uuid.UUID
    name: str = Field(max_length=100)
    description: str | None = Field(default=None, max_length=500)
    is_public: bool = False
    upgrades: list[UpgradeInput] = []
    settings: list[SettingInput] = []

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _trim_name(v)

    @field_validator("description")
    @classmethod
    def normalize_description(cls, v: str | None) -> str | None:
        return _trim_optional(v)


class QuickBuildCreate(SQLModel):
    """Name + car only; always private, no parts or tuning."""

    model_config = ConfigDict(extra="forbid")

    car_id: uuid.UUID
    name: str = Field(max_length=100)
    description: str | None = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _trim_name(v)

    @field_validator("description")
    @classmethod
    def normalize_description(cls, v: str | None) -> str | None:
        return _trim_optional(v)


class BuildUpdate(GearFields):
    """
    Partial update.

    - upgrades/settings: when present, REPLACE the whole set
    - user_id: ownership transfer, admin only
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    is_public: bool | None = None
    user_id: uuid.UUID | None = None
    upgrades: list[UpgradeInput] | None = None
    settings: list[SettingInput] | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str | None) -> str | None:
        return _trim_name(v)

    @field_validator("description")
    @classmethod
    def normalize_description(cls, v: str | None) -> str | None:
        return _trim_optional(v)


class UpgradeRead(SQLModel):
    id: uuid.UUID
    part_id: uuid.UUID | None
    category: str
    part: str
    value: str | None


class SettingRead(SQLModel):
    id: uuid.UUID
    setting_id: uuid.UUID | None
    category: str
    setting: str
    value: str


class BuildRead(GearFields):
    id: uuid.UUID
    user_id: uuid.UUID
    car_id: uuid.UUID
    name: str
    description: str | None
    is_public: bool
    created_at: datetime
    updated_at: datetime


class BuildDetailRead(BuildRead):
    upgrades: list[UpgradeRead] = []
    settings: list[SettingRead] = []
    statistics: LapStatistics = LapStatistics()
