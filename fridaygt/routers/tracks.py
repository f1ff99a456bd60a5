# fridaygt/routers/tracks.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from fridaygt.core.auth import require_admin
from fridaygt.core.rate_limit import rate_limit
from fridaygt.database import get_session
from fridaygt.repositories.catalog_repo import CarRepository, TrackRepository
from fridaygt.repositories.lap_time_repo import LapTimeRepository
from fridaygt.schemas.catalog import (
    TrackCategory,
    TrackCreate,
    TrackDetailRead,
    TrackRead,
)
from fridaygt.services.catalog_service import TrackService

router = APIRouter(prefix="/tracks", tags=["Tracks"])

repo = TrackRepository()
service = TrackService(repo, LapTimeRepository(), CarRepository())


# -------- Public endpoints --------


@router.get(
    "",
    response_model=list[TrackRead],
    dependencies=[Depends(rate_limit("query"))],
)
def list_tracks(
    session: Session = Depends(get_session),
    category: TrackCategory | None = None,
):
    """List tracks ordered by category then name."""
    return service.list_tracks(session, category)


@router.get("/{slug}", response_model=TrackDetailRead)
def get_track(slug: str, session: Session = Depends(get_session)):
    """Track with each car's best lap there and overall lap statistics."""
    return service.get_detail(session, slug)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=TrackRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin), Depends(rate_limit("mutation", require_admin))],
)
def create_track(
    payload: TrackCreate,
    session: Session = Depends(get_session),
):
    return service.create_track(session, payload)
