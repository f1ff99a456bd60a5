# fridaygt/routers/sessions.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from fridaygt.core.auth import get_current_principal, require_approved
from fridaygt.core.permissions import Principal
from fridaygt.core.rate_limit import rate_limit
from fridaygt.database import get_session
from fridaygt.repositories.lap_time_repo import LapTimeRepository
from fridaygt.repositories.run_list_repo import RunListRepository
from fridaygt.repositories.run_session_repo import RunSessionRepository
from fridaygt.repositories.user_repo import UserRepository
from fridaygt.schemas.run_session import (
    AttendanceRead,
    RunSessionCreate,
    RunSessionDetailRead,
    RunSessionRead,
    RunSessionUpdate,
    SessionStatus,
    TonightRead,
)
from fridaygt.schemas.user import SuccessResponse
from fridaygt.services.run_session_service import RunSessionService

router = APIRouter(prefix="/sessions", tags=["Sessions"])

repo = RunSessionRepository()
service = RunSessionService(
    repo,
    RunListRepository(),
    LapTimeRepository(),
    UserRepository(),
)


# -------- Sessions --------


@router.get(
    "",
    response_model=list[RunSessionRead],
    dependencies=[Depends(rate_limit("query"))],
)
def list_sessions(
    session: Session = Depends(get_session),
    principal: Principal | None = Depends(get_current_principal),
    status_filter: SessionStatus | None = Query(default=None, alias="status"),
    run_list_id: uuid.UUID | None = None,
):
    """Sessions, most recent date first."""
    return service.list_sessions(session, principal, status_filter=status_filter, run_list_id=run_list_id)


@router.get("/tonight", response_model=TonightRead)
def get_tonight(
    session: Session = Depends(get_session),
    principal: Principal | None = Depends(get_current_principal),
):
    """The session currently running, or `{"session": null}`."""
    return TonightRead(session=service.get_tonight(session, principal))


@router.get("/{session_id}", response_model=RunSessionDetailRead)
def get_run_session(
    session_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal | None = Depends(get_current_principal),
):
    """Session with attendance and the lap times recorded in it."""
    return service.get_session(session, principal, session_id)


@router.post(
    "",
    response_model=RunSessionRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def create_run_session(
    payload: RunSessionCreate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    """Schedule a session; the creator is marked as attending."""
    return service.create_session(session, principal, payload)


@router.patch(
    "/{session_id}",
    response_model=RunSessionRead,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def update_run_session(
    session_id: uuid.UUID,
    payload: RunSessionUpdate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    return service.update_session(session, principal, session_id, payload)


@router.delete(
    "/{session_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def delete_run_session(
    session_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    service.delete_session(session, principal, session_id)
    return SuccessResponse()


# -------- Attendance --------


@router.get("/{session_id}/attendance", response_model=list[AttendanceRead])
def list_attendance(
    session_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal | None = Depends(get_current_principal),
):
    return service.list_attendance(session, principal, session_id)


@router.post(
    "/{session_id}/attendance",
    response_model=AttendanceRead,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def join_session(
    session_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    """Join, or rejoin after leaving."""
    return service.join(session, principal, session_id)


@router.delete(
    "/{session_id}/attendance",
    response_model=AttendanceRead,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def leave_session(
    session_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    return service.leave(session, principal, session_id)
