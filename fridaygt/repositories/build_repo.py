# fridaygt/repositories/build_repo.py
from __future__ import annotations

import uuid

from sqlalchemy import delete, or_, update
from sqlmodel import Session, select

from fridaygt.models.build import CarBuild, CarBuildSetting, CarBuildUpgrade
from fridaygt.models.lap_time import LapTime
from fridaygt.models.race import RaceCar
from fridaygt.models.run_list import RunListEntryCar


class BuildRepository:
    """
    Data access layer for builds and their upgrades/settings.

    NOTE:
      - No commits here; create/update/clone touch several tables and
        the service commits once.
    """

    def get_by_id(self, session: Session, build_id: uuid.UUID) -> CarBuild | None:
        return session.get(CarBuild, build_id)

    def get_many(self, session: Session, build_ids: list[uuid.UUID]) -> list[CarBuild]:
        if not build_ids:
            return []
        stmt = select(CarBuild).where(CarBuild.id.in_(build_ids))
        return session.exec(stmt).all()

    def list(
        self,
        session: Session,
        visible_to: uuid.UUID | None,
        include_all: bool = False,
        car_id: uuid.UUID | None = None,
        user_id: uuid.UUID | None = None,
        public_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> list[CarBuild]:
        """
        Builds newest first.

        Visibility:
          - include_all: every build (admin)
          - visible_to set: public builds plus that user's own
          - otherwise: public builds only
        """
        stmt = select(CarBuild)
        if public_only:
            stmt = stmt.where(CarBuild.is_public == True)  # noqa: E712
        elif not include_all:
            if visible_to is not None:
                stmt = stmt.where(
                    or_(CarBuild.is_public == True, CarBuild.user_id == visible_to)  # noqa: E712
                )
            else:
                stmt = stmt.where(CarBuild.is_public == True)  # noqa: E712
        if car_id is not None:
            stmt = stmt.where(CarBuild.car_id == car_id)
        if user_id is not None:
            stmt = stmt.where(CarBuild.user_id == user_id)
        stmt = stmt.order_by(CarBuild.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def add(self, session: Session, build: CarBuild) -> CarBuild:
        session.add(build)
        session.flush()
        return build

    # ---- Upgrades / settings ----

    def list_upgrades(self, session: Session, build_id: uuid.UUID) -> list[CarBuildUpgrade]:
        stmt = (
            select(CarBuildUpgrade)
            .where(CarBuildUpgrade.build_id == build_id)
            .order_by(CarBuildUpgrade.category, CarBuildUpgrade.part)
        )
        return session.exec(stmt).all()

    def list_settings(self, session: Session, build_id: uuid.UUID) -> list[CarBuildSetting]:
        stmt = (
            select(CarBuildSetting)
            .where(CarBuildSetting.build_id == build_id)
            .order_by(CarBuildSetting.category, CarBuildSetting.setting)
        )
        return session.exec(stmt).all()

    def replace_upgrades(
        self,
        session: Session,
        build_id: uuid.UUID,
        upgrades: list[CarBuildUpgrade],
    ) -> None:
        session.execute(delete(CarBuildUpgrade).where(CarBuildUpgrade.build_id == build_id))
        session.add_all(upgrades)
        session.flush()

    def replace_settings(
        self,
        session: Session,
        build_id: uuid.UUID,
        settings: list[CarBuildSetting],
    ) -> None:
        session.execute(delete(CarBuildSetting).where(CarBuildSetting.build_id == build_id))
        session.add_all(settings)
        session.flush()

    # ---- Delete ----

    def detach_references(self, session: Session, build_ids: list[uuid.UUID]) -> None:
        """Null build_id on lap times, race cars and run-list entry cars."""
        if not build_ids:
            return
        for model in (LapTime, RaceCar, RunListEntryCar):
            session.execute(
                update(model).where(model.build_id.in_(build_ids)).values(build_id=None)
            )

    def delete_builds(self, session: Session, build_ids: list[uuid.UUID]) -> int:
        """Remove upgrades, settings, then the builds themselves."""
        if not build_ids:
            return 0
        session.execute(delete(CarBuildUpgrade).where(CarBuildUpgrade.build_id.in_(build_ids)))
        session.execute(delete(CarBuildSetting).where(CarBuildSetting.build_id.in_(build_ids)))
        result = session.execute(delete(CarBuild).where(CarBuild.id.in_(build_ids)))
        return result.rowcount or 0
