# fridaygt/repositories/run_list_repo.py
from __future__ import annotations

import uuid

from sqlalchemy import delete, func, or_, update
from sqlmodel import Session, select

from fridaygt.models.lap_time import LapTime
from fridaygt.models.run_list import RunList, RunListEntry, RunListEntryCar
from fridaygt.models.run_session import RunSession, SessionAttendance


class RunListRepository:
    """
    Data access layer for run lists, entries and entry cars.

    NOTE:
      - No commits here; flag changes, entry renumbering and deletes are
        multi-row operations committed by the service.
    """

    # ---- Run lists ----

    def get_by_id(self, session: Session, run_list_id: uuid.UUID) -> RunList | None:
        return session.get(RunList, run_list_id)

    def list(
        self,
        session: Session,
        visible_to: uuid.UUID | None,
        include_all: bool = False,
        created_by_id: uuid.UUID | None = None,
        public_only: bool = False,
    ) -> list[RunList]:
        stmt = select(RunList)
        if public_only:
            stmt = stmt.where(RunList.is_public == True)  # noqa: E712
        elif not include_all:
            if visible_to is not None:
                stmt = stmt.where(
                    or_(RunList.is_public == True, RunList.created_by_id == visible_to)  # noqa: E712
                )
            else:
                stmt = stmt.where(RunList.is_public == True)  # noqa: E712
        if created_by_id is not None:
            stmt = stmt.where(RunList.created_by_id == created_by_id)
        stmt = stmt.order_by(RunList.created_at.desc())
        return session.exec(stmt).all()

    def get_active_for(self, session: Session, created_by_id: uuid.UUID) -> RunList | None:
        stmt = select(RunList).where(
            RunList.created_by_id == created_by_id,
            RunList.is_active == True,  # noqa: E712
        )
        return session.exec(stmt).first()

    def add(self, session: Session, run_list: RunList) -> RunList:
        session.add(run_list)
        session.flush()
        return run_list

    def deactivate_others(self, session: Session, created_by_id: uuid.UUID, keep_id: uuid.UUID) -> None:
        session.execute(
            update(RunList)
            .where(RunList.created_by_id == created_by_id, RunList.id != keep_id)
            .values(is_active=False)
        )

    def clear_live_except(self, session: Session, keep_id: uuid.UUID) -> None:
        session.execute(
            update(RunList).where(RunList.id != keep_id).values(is_live=False)
        )

    # ---- Entries ----

    def get_entry(self, session: Session, entry_id: uuid.UUID) -> RunListEntry | None:
        return session.get(RunListEntry, entry_id)

    def list_entries(self, session: Session, run_list_id: uuid.UUID) -> list[RunListEntry]:
        stmt = (
            select(RunListEntry)
            .where(RunListEntry.run_list_id == run_list_id)
            .order_by(RunListEntry.order)
        )
        return session.exec(stmt).all()

    def max_order(self, session: Session, run_list_id: uuid.UUID) -> int:
        stmt = select(func.max(RunListEntry.order)).where(RunListEntry.run_list_id == run_list_id)
        return session.exec(stmt).one() or 0

    def list_entry_cars(self, session: Session, entry_ids: list[uuid.UUID]) -> list[RunListEntryCar]:
        if not entry_ids:
            return []
        stmt = select(RunListEntryCar).where(RunListEntryCar.entry_id.in_(entry_ids))
        return session.exec(stmt).all()

    def add_entry(self, session: Session, entry: RunListEntry) -> RunListEntry:
        session.add(entry)
        session.flush()
        return entry

    def replace_entry_cars(
        self,
        session: Session,
        entry_id: uuid.UUID,
        cars: list[RunListEntryCar],
    ) -> None:
        session.execute(delete(RunListEntryCar).where(RunListEntryCar.entry_id == entry_id))
        session.add_all(cars)
        session.flush()

    def delete_entry(self, session: Session, entry: RunListEntry) -> None:
        session.execute(delete(RunListEntryCar).where(RunListEntryCar.entry_id == entry.id))
        session.delete(entry)
        session.flush()

    def renumber_entries(self, session: Session, run_list_id: uuid.UUID) -> None:
        """
        Close gaps so orders run 1..n.

        Entries are moved one at a time in ascending order; each target
        slot is already free, which keeps (run_list_id, order) unique.
        """
        for position, entry in enumerate(self.list_entries(session, run_list_id), start=1):
            if entry.order != position:
                entry.order = position
                session.add(entry)
                session.flush()

    def reorder_entries(self, session: Session, entries: list[RunListEntry]) -> None:
        """
        Write orders 1..n following the sequence of `entries`.

        Rows are parked on negative orders first so no intermediate
        flush collides on (run_list_id, order).
        """
        for position, entry in enumerate(entries, start=1):
            entry.order = -position
            session.add(entry)
        session.flush()
        for position, entry in enumerate(entries, start=1):
            entry.order = position
            session.add(entry)
        session.flush()

    # ---- Delete ----

    def delete_run_lists(self, session: Session, run_list_ids: list[uuid.UUID]) -> int:
        """
        Remove run lists and everything hanging off them.

        Order: entry cars, entries, attendance of their sessions, lap-time
        session links, sessions, then the lists.
        """
        if not run_list_ids:
            return 0

        entry_ids = select(RunListEntry.id).where(RunListEntry.run_list_id.in_(run_list_ids))
        session.execute(delete(RunListEntryCar).where(RunListEntryCar.entry_id.in_(entry_ids)))
        session.execute(delete(RunListEntry).where(RunListEntry.run_list_id.in_(run_list_ids)))

        session_ids = select(RunSession.id).where(RunSession.run_list_id.in_(run_list_ids))
        session.execute(delete(SessionAttendance).where(SessionAttendance.session_id.in_(session_ids)))
        session.execute(
            update(LapTime).where(LapTime.session_id.in_(session_ids)).values(session_id=None)
        )
        session.execute(delete(RunSession).where(RunSession.run_list_id.in_(run_list_ids)))

        result = session.execute(delete(RunList).where(RunList.id.in_(run_list_ids)))
        return result.rowcount or 0
