# fridaygt/routers/lap_times.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from fridaygt.core.auth import require_approved, require_auth
from fridaygt.core.permissions import Principal
from fridaygt.core.rate_limit import rate_limit
from fridaygt.database import get_session
from fridaygt.repositories.build_repo import BuildRepository
from fridaygt.repositories.catalog_repo import CarRepository, TrackRepository
from fridaygt.repositories.lap_time_repo import LapTimeRepository
from fridaygt.repositories.run_session_repo import RunSessionRepository
from fridaygt.schemas.lap_time import LapTimeCreate, LapTimeRead, LapTimeUpdate
from fridaygt.schemas.user import SuccessResponse
from fridaygt.services.lap_time_service import LapTimeService

router = APIRouter(prefix="/lap-times", tags=["Lap times"])

repo = LapTimeRepository()
service = LapTimeService(
    repo,
    TrackRepository(),
    CarRepository(),
    BuildRepository(),
    RunSessionRepository(),
)


@router.get("", response_model=list[LapTimeRead])
def list_my_lap_times(
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_auth),
    track_id: uuid.UUID | None = None,
    car_id: uuid.UUID | None = None,
    limit: int | None = None,
):
    """The caller's lap times, newest first."""
    return service.list_own(
        session, principal, track_id=track_id, car_id=car_id, limit=limit
    )


@router.post(
    "",
    response_model=LapTimeRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def create_lap_time(
    payload: LapTimeCreate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    return service.create(session, principal, payload)


@router.patch(
    "/{lap_time_id}",
    response_model=LapTimeRead,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def update_lap_time(
    lap_time_id: uuid.UUID,
    payload: LapTimeUpdate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    return service.update(session, principal, lap_time_id, payload)


@router.delete(
    "/{lap_time_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def delete_lap_time(
    lap_time_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    service.delete(session, principal, lap_time_id)
    return SuccessResponse()
