# fridaygt/routers/races.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from fridaygt.core.auth import require_approved
from fridaygt.core.permissions import Principal
from fridaygt.core.rate_limit import rate_limit
from fridaygt.database import get_session
from fridaygt.repositories.build_repo import BuildRepository
from fridaygt.repositories.catalog_repo import CarRepository, TrackRepository
from fridaygt.repositories.lap_time_repo import LapTimeRepository
from fridaygt.repositories.race_repo import RaceRepository
from fridaygt.repositories.user_repo import UserRepository
from fridaygt.schemas.race import RaceCreate, RaceDetailRead, RaceRead, RaceUpdate
from fridaygt.schemas.user import SuccessResponse
from fridaygt.services.race_service import RaceService

router = APIRouter(prefix="/races", tags=["Races"])

repo = RaceRepository()
service = RaceService(
    repo,
    TrackRepository(),
    CarRepository(),
    BuildRepository(),
    LapTimeRepository(),
    UserRepository(),
)


# -------- Public endpoints --------


@router.get(
    "",
    response_model=list[RaceRead],
    dependencies=[Depends(rate_limit("query"))],
)
def list_races(session: Session = Depends(get_session)):
    """All races, active first, then by display name."""
    return service.list_races(session)


@router.get("/{race_id}", response_model=RaceDetailRead)
def get_race(race_id: uuid.UUID, session: Session = Depends(get_session)):
    """Race with its leaderboard (best lap per driver/car/build) and stats."""
    return service.get_race(session, race_id)


# -------- Approved users --------


@router.post(
    "",
    response_model=RaceRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def create_race(
    payload: RaceCreate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    return service.create_race(session, principal, payload)


@router.patch(
    "/{race_id}",
    response_model=RaceRead,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def update_race(
    race_id: uuid.UUID,
    payload: RaceUpdate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    """Creator or admin. `build_ids` replaces the race cars."""
    return service.update_race(session, principal, race_id, payload)


@router.delete(
    "/{race_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def delete_race(
    race_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    """409 while a run-list entry still points at the race."""
    service.delete_race(session, principal, race_id)
    return SuccessResponse()
