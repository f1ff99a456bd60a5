# fridaygt/repositories/race_repo.py
from __future__ import annotations

import uuid

from sqlalchemy import delete, func, update
from sqlmodel import Session, select

from fridaygt.models.race import Race, RaceCar
from fridaygt.models.run_list import RunListEntry


class RaceRepository:
    """
    Data access layer for races and race cars.

    NOTE:
      - No commits here; race + race cars are written together and the
        service commits.
    """

    def get_by_id(self, session: Session, race_id: uuid.UUID) -> Race | None:
        return session.get(Race, race_id)

    def list(self, session: Session) -> list[Race]:
        stmt = select(Race).order_by(Race.is_active.desc(), Race.created_at.desc())
        return session.exec(stmt).all()

    def add(self, session: Session, race: Race) -> Race:
        session.add(race)
        session.flush()
        return race

    def list_cars(self, session: Session, race_ids: list[uuid.UUID]) -> list[RaceCar]:
        if not race_ids:
            return []
        stmt = select(RaceCar).where(RaceCar.race_id.in_(race_ids))
        return session.exec(stmt).all()

    def replace_cars(self, session: Session, race_id: uuid.UUID, cars: list[RaceCar]) -> None:
        session.execute(delete(RaceCar).where(RaceCar.race_id == race_id))
        session.add_all(cars)
        session.flush()

    def count_entry_references(self, session: Session, race_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(RunListEntry).where(RunListEntry.race_id == race_id)
        return session.exec(stmt).one()

    def delete_races(self, session: Session, race_ids: list[uuid.UUID]) -> int:
        """Unlink run-list entries, remove race cars, then the races."""
        if not race_ids:
            return 0
        session.execute(
            update(RunListEntry)
            .where(RunListEntry.race_id.in_(race_ids))
            .values(race_id=None)
        )
        session.execute(delete(RaceCar).where(RaceCar.race_id.in_(race_ids)))
        result = session.execute(delete(Race).where(Race.id.in_(race_ids)))
        return result.rowcount or 0
