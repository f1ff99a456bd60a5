# fridaygt/repositories/catalog_repo.py
from __future__ import annotations

import uuid

from sqlalchemy import or_
from sqlmodel import Session, select

from fridaygt.models.catalog import (
    Car,
    Part,
    PartCategory,
    Track,
    TuningSection,
    TuningSetting,
)


class TrackRepository:
    def get_by_id(self, session: Session, track_id: uuid.UUID) -> Track | None:
        return session.get(Track, track_id)

    def get_by_slug(self, session: Session, slug: str) -> Track | None:
        stmt = select(Track).where(Track.slug == slug)
        return session.exec(stmt).first()

    def list(self, session: Session, category: str | None = None) -> list[Track]:
        stmt = select(Track)
        if category:
            stmt = stmt.where(Track.category == category)
        stmt = stmt.order_by(Track.category, Track.name)
        return session.exec(stmt).all()

    def create(self, session: Session, track: Track) -> Track:
        session.add(track)
        session.commit()
        session.refresh(track)
        return track


class CarRepository:
    def get_by_id(self, session: Session, car_id: uuid.UUID) -> Car | None:
        return session.get(Car, car_id)

    def get_by_slug(self, session: Session, slug: str) -> Car | None:
        stmt = select(Car).where(Car.slug == slug)
        return session.exec(stmt).first()

    def get_many(self, session: Session, car_ids: list[uuid.UUID]) -> list[Car]:
        if not car_ids:
            return []
        stmt = select(Car).where(Car.id.in_(car_ids))
        return session.exec(stmt).all()

    def list(
        self,
        session: Session,
        search: str | None = None,
        manufacturer: str | None = None,
        category: str | None = None,
        drive_type: str | None = None,
    ) -> list[Car]:
        """
        Filtered car list ordered by manufacturer, then name.

        `search` matches name or manufacturer (case-insensitive substring).
        """
        stmt = select(Car)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(Car.name.ilike(pattern), Car.manufacturer.ilike(pattern))
            )
        if manufacturer:
            stmt = stmt.where(Car.manufacturer == manufacturer)
        if category:
            stmt = stmt.where(Car.category == category)
        if drive_type:
            stmt = stmt.where(Car.drive_type == drive_type)
        stmt = stmt.order_by(Car.manufacturer, Car.name)
        return session.exec(stmt).all()

    def list_manufacturers(self, session: Session) -> list[str]:
        stmt = select(Car.manufacturer).distinct().order_by(Car.manufacturer)
        return list(session.exec(stmt).all())

    def create(self, session: Session, car: Car) -> Car:
        session.add(car)
        session.commit()
        session.refresh(car)
        return car


class PartRepository:
    def get_many(self, session: Session, part_ids: list[uuid.UUID]) -> list[Part]:
        if not part_ids:
            return []
        stmt = select(Part).where(Part.id.in_(part_ids))
        return session.exec(stmt).all()

    def list(
        self,
        session: Session,
        category_id: uuid.UUID | None = None,
        active: bool | None = True,
    ) -> list[tuple[Part, PartCategory]]:
        """Parts joined with their category, ordered by category then name."""
        stmt = select(Part, PartCategory).join(
            PartCategory, Part.category_id == PartCategory.id
        )
        if category_id is not None:
            stmt = stmt.where(Part.category_id == category_id)
        if active is not None:
            stmt = stmt.where(Part.is_active == active)
        stmt = stmt.order_by(PartCategory.display_order, Part.name)
        return session.exec(stmt).all()

    def list_categories(self, session: Session) -> list[PartCategory]:
        stmt = select(PartCategory).order_by(PartCategory.display_order, PartCategory.name)
        return session.exec(stmt).all()

    def get_categories(self, session: Session, ids: list[uuid.UUID]) -> dict[uuid.UUID, PartCategory]:
        if not ids:
            return {}
        stmt = select(PartCategory).where(PartCategory.id.in_(ids))
        return {c.id: c for c in session.exec(stmt).all()}


class TuningRepository:
    def get_many(self, session: Session, setting_ids: list[uuid.UUID]) -> list[TuningSetting]:
        if not setting_ids:
            return []
        stmt = select(TuningSetting).where(TuningSetting.id.in_(setting_ids))
        return session.exec(stmt).all()

    def list(
        self,
        session: Session,
        section_id: uuid.UUID | None = None,
    ) -> list[tuple[TuningSetting, TuningSection]]:
        """Active settings with their section, in display order."""
        stmt = (
            select(TuningSetting, TuningSection)
            .join(TuningSection, TuningSetting.section_id == TuningSection.id)
            .where(TuningSetting.is_active == True)  # noqa: E712
        )
        if section_id is not None:
            stmt = stmt.where(TuningSetting.section_id == section_id)
        stmt = stmt.order_by(
            TuningSection.display_order,
            TuningSetting.display_order,
            TuningSetting.name,
        )
        return session.exec(stmt).all()

    def list_sections(self, session: Session) -> list[TuningSection]:
        stmt = select(TuningSection).order_by(TuningSection.display_order, TuningSection.name)
        return session.exec(stmt).all()

    def get_sections(self, session: Session, ids: list[uuid.UUID]) -> dict[uuid.UUID, TuningSection]:
        if not ids:
            return {}
        stmt = select(TuningSection).where(TuningSection.id.in_(ids))
        return {s.id: s for s in session.exec(stmt).all()}
