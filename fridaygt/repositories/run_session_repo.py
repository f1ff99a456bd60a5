# fridaygt/repositories/run_session_repo.py
from __future__ import annotations

import uuid

from sqlalchemy import delete, or_, update
from sqlmodel import Session, select

from fridaygt.models.lap_time import LapTime
from fridaygt.models.run_list import RunList
from fridaygt.models.run_session import RunSession, SessionAttendance


class RunSessionRepository:
    """
    Data access layer for race-night sessions and attendance.
    """

    def get_by_id(self, session: Session, session_id: uuid.UUID) -> RunSession | None:
        return session.get(RunSession, session_id)

    def list(
        self,
        session: Session,
        status: str | None = None,
        run_list_id: uuid.UUID | None = None,
        visible_to: uuid.UUID | None = None,
        include_all: bool = False,
    ) -> list[RunSession]:
        """
        Sessions whose run list the caller can see: public lists plus the
        caller's own private ones, or every session with `include_all`.
        """
        stmt = select(RunSession)
        if not include_all:
            stmt = stmt.join(RunList, RunList.id == RunSession.run_list_id)
            if visible_to is not None:
                stmt = stmt.where(
                    or_(RunList.is_public == True, RunList.created_by_id == visible_to)  # noqa: E712
                )
            else:
                stmt = stmt.where(RunList.is_public == True)  # noqa: E712
        if status:
            stmt = stmt.where(RunSession.status == status)
        if run_list_id is not None:
            stmt = stmt.where(RunSession.run_list_id == run_list_id)
        stmt = stmt.order_by(RunSession.date.desc())
        return session.exec(stmt).all()

    def add(self, session: Session, run_session: RunSession) -> RunSession:
        session.add(run_session)
        session.flush()
        return run_session

    def delete(self, session: Session, run_session: RunSession) -> None:
        session.execute(
            delete(SessionAttendance).where(SessionAttendance.session_id == run_session.id)
        )
        session.execute(
            update(LapTime).where(LapTime.session_id == run_session.id).values(session_id=None)
        )
        session.delete(run_session)
        session.flush()

    # ---- Attendance ----

    def list_attendance(self, session: Session, session_id: uuid.UUID) -> list[SessionAttendance]:
        stmt = (
            select(SessionAttendance)
            .where(SessionAttendance.session_id == session_id)
            .order_by(SessionAttendance.joined_at)
        )
        return session.exec(stmt).all()

    def get_attendance(
        self,
        session: Session,
        session_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> SessionAttendance | None:
        stmt = select(SessionAttendance).where(
            SessionAttendance.session_id == session_id,
            SessionAttendance.user_id == user_id,
        )
        return session.exec(stmt).first()

    def save_attendance(self, session: Session, attendance: SessionAttendance) -> SessionAttendance:
        session.add(attendance)
        session.commit()
        session.refresh(attendance)
        return attendance

    def delete_attendance_for_user(self, session: Session, user_id: uuid.UUID) -> None:
        session.execute(delete(SessionAttendance).where(SessionAttendance.user_id == user_id))
