# fridaygt/routers/builds.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from fridaygt.core.auth import get_current_principal, require_approved
from fridaygt.core.permissions import Principal
from fridaygt.core.rate_limit import rate_limit
from fridaygt.database import get_session
from fridaygt.repositories.build_repo import BuildRepository
from fridaygt.repositories.catalog_repo import (
    CarRepository,
    PartRepository,
    TuningRepository,
)
from fridaygt.repositories.lap_time_repo import LapTimeRepository
from fridaygt.repositories.user_repo import UserRepository
from fridaygt.schemas.build import (
    BuildCreate,
    BuildDetailRead,
    BuildRead,
    BuildUpdate,
    QuickBuildCreate,
)
from fridaygt.schemas.user import SuccessResponse
from fridaygt.services.build_service import BuildService

router = APIRouter(prefix="/builds", tags=["Builds"])

repo = BuildRepository()
service = BuildService(
    repo,
    CarRepository(),
    PartRepository(),
    TuningRepository(),
    LapTimeRepository(),
    UserRepository(),
)


@router.get(
    "",
    response_model=list[BuildRead],
    dependencies=[Depends(rate_limit("query"))],
)
def list_builds(
    session: Session = Depends(get_session),
    principal: Principal | None = Depends(get_current_principal),
    car_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
    public_only: bool = Query(default=False, alias="public"),
    mine: bool = False,
):
    """
    Builds visible to the caller.

    Anonymous: public only. Signed in: public + own. Admin: all.
    """
    return service.list_builds(
        session,
        principal,
        car_id=car_id,
        user_id=user_id,
        public_only=public_only,
        mine=mine,
    )


@router.get("/{build_id}", response_model=BuildDetailRead)
def get_build(
    build_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal | None = Depends(get_current_principal),
):
    """Build with upgrades, settings and lap statistics."""
    return service.get_build(session, principal, build_id)


@router.post(
    "",
    response_model=BuildDetailRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def create_build(
    payload: BuildCreate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    return service.create_build(session, principal, payload)


@router.post(
    "/quick",
    response_model=BuildRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def quick_create_build(
    payload: QuickBuildCreate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    """Private build with just a name and car."""
    return service.quick_create(session, principal, payload)


@router.patch(
    "/{build_id}",
    response_model=BuildDetailRead,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def update_build(
    build_id: uuid.UUID,
    payload: BuildUpdate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    """
    Owner or admin. `upgrades` / `settings`, when sent, replace the whole
    set. Changing `user_id` is admin only.
    """
    return service.update_build(session, principal, build_id, payload)


@router.delete(
    "/{build_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def delete_build(
    build_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    service.delete_build(session, principal, build_id)
    return SuccessResponse()


@router.post(
    "/{build_id}/clone",
    response_model=BuildDetailRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def clone_build(
    build_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    """Private copy of a build the caller can see."""
    return service.clone_build(session, principal, build_id)
