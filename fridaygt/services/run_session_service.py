# fridaygt/services/run_session_service.py
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from fridaygt.core.permissions import Principal, ResourceRef, enforce
from fridaygt.models.run_session import RunSession, SessionAttendance
from fridaygt.repositories.lap_time_repo import LapTimeRepository
from fridaygt.repositories.run_list_repo import RunListRepository
from fridaygt.repositories.run_session_repo import RunSessionRepository
from fridaygt.repositories.user_repo import UserRepository
from fridaygt.schemas.lap_time import LapTimeRead
from fridaygt.schemas.run_session import (
    AttendanceRead,
    RunSessionCreate,
    RunSessionDetailRead,
    RunSessionUpdate,
)

STATUS_IN_PROGRESS = "IN_PROGRESS"
ATTENDANCE_PRESENT = "PRESENT"
ATTENDANCE_LEFT = "LEFT"


class RunSessionService:
    """
    Business logic for race-night sessions.

    A session belongs to a run list; the list's creator (or an admin)
    manages it. Any approved user can join or leave.
    """

    def __init__(
        self,
        repo: RunSessionRepository,
        run_list_repo: RunListRepository,
        lap_repo: LapTimeRepository,
        user_repo: UserRepository,
    ):
        self.repo = repo
        self.run_list_repo = run_list_repo
        self.lap_repo = lap_repo
        self.user_repo = user_repo

    # ----- Helpers -----

    def _get(self, session: Session, session_id: uuid.UUID) -> RunSession:
        run_session = self.repo.get_by_id(session, session_id)
        if not run_session:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Session not found",
            )
        return run_session

    def _owner_ref(self, session: Session, run_session: RunSession) -> ResourceRef:
        run_list = self.run_list_repo.get_by_id(session, run_session.run_list_id)
        if run_list is None:
            return ResourceRef(owner_id=None)
        return ResourceRef(owner_id=run_list.created_by_id, is_public=run_list.is_public)

    def _attendance_reads(self, session: Session, rows: list[SessionAttendance]) -> list[AttendanceRead]:
        reads = []
        for row in rows:
            user = self.user_repo.get_by_id(session, row.user_id)
            reads.append(
                AttendanceRead(
                    **row.model_dump(),
                    gamertag=user.gamertag if user else None,
                )
            )
        return reads

    def _visible(
        self,
        session: Session,
        principal: Principal | None,
        status_filter: str | None = None,
        run_list_id: uuid.UUID | None = None,
    ) -> list[RunSession]:
        return self.repo.list(
            session,
            status=status_filter,
            run_list_id=run_list_id,
            visible_to=principal.user_id if principal else None,
            include_all=bool(principal and principal.is_admin),
        )

    # ----- Sessions -----

    def list_sessions(
        self,
        session: Session,
        principal: Principal | None,
        status_filter: str | None = None,
        run_list_id: uuid.UUID | None = None,
    ) -> list[RunSession]:
        """Sessions of private run lists are only listed for their creator."""
        return self._visible(session, principal, status_filter, run_list_id)

    def get_tonight(self, session: Session, principal: Principal | None) -> RunSessionDetailRead | None:
        """The most recent IN_PROGRESS session the caller can see, if any."""
        running = self._visible(session, principal, STATUS_IN_PROGRESS)
        if not running:
            return None
        return self.get_session(session, principal, running[0].id)

    def get_session(
        self,
        session: Session,
        principal: Principal | None,
        session_id: uuid.UUID,
    ) -> RunSessionDetailRead:
        run_session = self._get(session, session_id)
        enforce(principal, "view", self._owner_ref(session, run_session))
        return RunSessionDetailRead(
            **run_session.model_dump(),
            attendance=self._attendance_reads(
                session, self.repo.list_attendance(session, run_session.id)
            ),
            lap_times=[
                LapTimeRead.model_validate(lt)
                for lt in self.lap_repo.list_for_session(session, run_session.id)
            ],
        )

    def create_session(
        self,
        session: Session,
        principal: Principal,
        payload: RunSessionCreate,
    ) -> RunSession:
        """
        Schedule a session from any run list the caller can see.

        The creator is marked PRESENT straight away.
        """
        run_list = self.run_list_repo.get_by_id(session, payload.run_list_id)
        if run_list is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Run list not found",
            )
        enforce(principal, "create")
        enforce(
            principal,
            "view",
            ResourceRef(owner_id=run_list.created_by_id, is_public=run_list.is_public),
        )

        run_session = RunSession(
            run_list_id=run_list.id,
            name=payload.name,
            status=payload.status,
        )
        if payload.date is not None:
            run_session.date = payload.date
        if payload.status == STATUS_IN_PROGRESS:
            run_session.current_entry_order = 1
        run_session = self.repo.add(session, run_session)

        session.add(
            SessionAttendance(
                session_id=run_session.id,
                user_id=principal.user_id,
                status=ATTENDANCE_PRESENT,
            )
        )
        session.commit()
        session.refresh(run_session)
        return run_session

    def update_session(
        self,
        session: Session,
        principal: Principal,
        session_id: uuid.UUID,
        payload: RunSessionUpdate,
    ) -> RunSession:
        """
        Moving to IN_PROGRESS starts at entry 1 unless an order is given.
        """
        run_session = self._get(session, session_id)
        enforce(principal, "edit", self._owner_ref(session, run_session))

        data = payload.model_dump(exclude_unset=True)
        for key, value in data.items():
            if key in ("name", "date", "status") and value is None:
                continue
            setattr(run_session, key, value)

        if data.get("status") == STATUS_IN_PROGRESS and data.get("current_entry_order") is None:
            run_session.current_entry_order = 1

        run_session.updated_at = datetime.now(timezone.utc)
        session.add(run_session)
        session.commit()
        session.refresh(run_session)
        return run_session

    def delete_session(
        self,
        session: Session,
        principal: Principal,
        session_id: uuid.UUID,
    ) -> None:
        run_session = self._get(session, session_id)
        enforce(principal, "delete", self._owner_ref(session, run_session))
        self.repo.delete(session, run_session)
        session.commit()

    # ----- Attendance -----

    def list_attendance(
        self,
        session: Session,
        principal: Principal | None,
        session_id: uuid.UUID,
    ) -> list[AttendanceRead]:
        run_session = self._get(session, session_id)
        enforce(principal, "view", self._owner_ref(session, run_session))
        return self._attendance_reads(session, self.repo.list_attendance(session, run_session.id))

    def join(
        self,
        session: Session,
        principal: Principal,
        session_id: uuid.UUID,
    ) -> AttendanceRead:
        """
        Mark the caller PRESENT.

        Raises:
            HTTPException(400): already present.
        """
        enforce(principal, "create")
        run_session = self._get(session, session_id)
        enforce(principal, "view", self._owner_ref(session, run_session))

        attendance = self.repo.get_attendance(session, run_session.id, principal.user_id)
        if attendance is not None:
            if attendance.status == ATTENDANCE_PRESENT:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Already attending this session",
                )
            # Rejoin after leaving
            attendance.status = ATTENDANCE_PRESENT
            attendance.joined_at = datetime.now(timezone.utc)
            attendance.left_at = None
        else:
            attendance = SessionAttendance(
                session_id=run_session.id,
                user_id=principal.user_id,
                status=ATTENDANCE_PRESENT,
            )

        attendance = self.repo.save_attendance(session, attendance)
        return self._attendance_reads(session, [attendance])[0]

    def leave(
        self,
        session: Session,
        principal: Principal,
        session_id: uuid.UUID,
    ) -> AttendanceRead:
        """
        Raises:
            HTTPException(404): not attending.
            HTTPException(400): already left.
        """
        enforce(principal, "create")
        run_session = self._get(session, session_id)

        attendance = self.repo.get_attendance(session, run_session.id, principal.user_id)
        if attendance is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Not attending this session",
            )
        if attendance.status == ATTENDANCE_LEFT:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Already left this session",
            )

        attendance.status = ATTENDANCE_LEFT
        attendance.left_at = datetime.now(timezone.utc)
        attendance = self.repo.save_attendance(session, attendance)
        return self._attendance_reads(session, [attendance])[0]
