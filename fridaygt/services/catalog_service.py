# fridaygt/services/catalog_service.py
import re
import uuid
from typing import Callable

from fastapi import HTTPException, status
from sqlmodel import Session

from fridaygt.models.catalog import Car, Track
from fridaygt.repositories.catalog_repo import (
    CarRepository,
    PartRepository,
    TrackRepository,
    TuningRepository,
)
from fridaygt.repositories.lap_time_repo import LapTimeRepository
from fridaygt.schemas.catalog import (
    CarBest,
    CarCreate,
    CarListRead,
    CarRead,
    PartRead,
    TrackCreate,
    TrackDetailRead,
    TrackRead,
    TuningSettingRead,
)
from fridaygt.services.stats import compute_lap_statistics


def slugify(raw: str, fallback: str = "item") -> str:
    """
    Basic slugification:
      - lowercase
      - non-alphanumeric -> '-'
      - collapse multiple '-'
      - strip leading/trailing '-'
    """
    value = raw.strip().lower()
    value = re.sub(r"[^a-z0-9]+", "-", value)
    value = re.sub(r"-+", "-", value)
    value = value.strip("-")
    return value or fallback


def ensure_unique_slug(base_slug: str, exists: Callable[[str], bool]) -> str:
    """
    Append -2, -3, ... until `exists(slug)` is False.
    """
    slug = base_slug
    i = 2
    while exists(slug):
        slug = f"{base_slug}-{i}"
        i += 1
    return slug


class TrackService:
    def __init__(self, repo: TrackRepository, lap_repo: LapTimeRepository, car_repo: CarRepository):
        self.repo = repo
        self.lap_repo = lap_repo
        self.car_repo = car_repo

    def list_tracks(self, session: Session, category: str | None = None) -> list[Track]:
        return self.repo.list(session, category=category)

    def get_by_slug(self, session: Session, slug: str) -> Track:
        track = self.repo.get_by_slug(session, slug)
        if not track:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Track not found",
            )
        return track

    def get_detail(self, session: Session, slug: str) -> TrackDetailRead:
        """
        Track plus per-car bests, fastest car first.
        """
        track = self.get_by_slug(session, slug)
        laps = self.lap_repo.list_for_track(session, track.id)

        grouped: dict[uuid.UUID, list[int]] = {}
        for lap in laps:
            grouped.setdefault(lap.car_id, []).append(lap.time_ms)

        cars = {c.id: c for c in self.car_repo.get_many(session, list(grouped))}
        by_car = [
            CarBest(
                car_id=car_id,
                car_name=cars[car_id].name,
                car_slug=cars[car_id].slug,
                manufacturer=cars[car_id].manufacturer,
                best_time_ms=min(times),
                total_laps=len(times),
            )
            for car_id, times in grouped.items()
            if car_id in cars
        ]
        by_car.sort(key=lambda b: b.best_time_ms)

        return TrackDetailRead(
            track=TrackRead.model_validate(track),
            by_car=by_car,
            statistics=compute_lap_statistics(laps),
        )

    def create_track(self, session: Session, payload: TrackCreate) -> Track:
        """
        Slug from payload.slug, else name (+ layout), made unique.
        """
        raw_slug = payload.slug or " ".join(filter(None, [payload.name, payload.layout]))
        slug = ensure_unique_slug(
            slugify(raw_slug, fallback="track"),
            lambda s: self.repo.get_by_slug(session, s) is not None,
        )
        data = payload.model_dump(exclude={"slug"})
        return self.repo.create(session, Track(slug=slug, **data))


class CarService:
    def __init__(self, repo: CarRepository):
        self.repo = repo

    def list_cars(
        self,
        session: Session,
        search: str | None = None,
        manufacturer: str | None = None,
        category: str | None = None,
        drive_type: str | None = None,
    ) -> CarListRead:
        """
        Filtered cars plus every manufacturer (unfiltered) for menus.

        "all" is treated as no filter.
        """

        def _filter(v: str | None) -> str | None:
            if v is None or v == "all":
                return None
            return v.strip() or None

        cars = self.repo.list(
            session,
            search=_filter(search),
            manufacturer=_filter(manufacturer),
            category=_filter(category),
            drive_type=_filter(drive_type),
        )
        return CarListRead(
            cars=[CarRead.model_validate(c) for c in cars],
            manufacturers=self.repo.list_manufacturers(session),
        )

    def get_by_slug(self, session: Session, slug: str) -> Car:
        car = self.repo.get_by_slug(session, slug)
        if not car:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Car not found",
            )
        return car

    def create_car(self, session: Session, payload: CarCreate) -> Car:
        raw_slug = payload.slug or f"{payload.manufacturer} {payload.name}"
        slug = ensure_unique_slug(
            slugify(raw_slug, fallback="car"),
            lambda s: self.repo.get_by_slug(session, s) is not None,
        )
        data = payload.model_dump(exclude={"slug"})
        return self.repo.create(session, Car(slug=slug, **data))


class PartService:
    """Read-only parts and tuning reference data."""

    def __init__(self, parts: PartRepository, tuning: TuningRepository):
        self.parts = parts
        self.tuning = tuning

    def list_parts(
        self,
        session: Session,
        category_id: uuid.UUID | None = None,
        active: bool | None = True,
    ) -> list[PartRead]:
        rows = self.parts.list(session, category_id=category_id, active=active)
        return [
            PartRead(
                id=part.id,
                category_id=part.category_id,
                category_name=category.name,
                name=part.name,
                description=part.description,
                is_active=part.is_active,
            )
            for part, category in rows
        ]

    def list_part_categories(self, session: Session):
        return self.parts.list_categories(session)

    def list_tuning_settings(
        self,
        session: Session,
        section_id: uuid.UUID | None = None,
    ) -> list[TuningSettingRead]:
        rows = self.tuning.list(session, section_id=section_id)
        return [
            TuningSettingRead(
                id=setting.id,
                section_id=setting.section_id,
                section_name=section.name,
                name=setting.name,
                description=setting.description,
                default_value=setting.default_value,
                input_type=setting.input_type,
                unit=setting.unit,
                display_order=setting.display_order,
                is_active=setting.is_active,
            )
            for setting, section in rows
        ]

    def list_tuning_sections(self, session: Session):
        return self.tuning.list_sections(session)
