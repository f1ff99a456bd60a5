# fridaygt/routers/run_lists.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from fridaygt.core.auth import get_current_principal, require_approved, require_auth
from fridaygt.core.permissions import Principal
from fridaygt.core.rate_limit import rate_limit
from fridaygt.database import get_session
from fridaygt.repositories.build_repo import BuildRepository
from fridaygt.repositories.catalog_repo import CarRepository, TrackRepository
from fridaygt.repositories.race_repo import RaceRepository
from fridaygt.repositories.run_list_repo import RunListRepository
from fridaygt.repositories.user_repo import UserRepository
from fridaygt.schemas.run_list import (
    ActiveRunListRead,
    RunListCreate,
    RunListDetailRead,
    RunListEntryCreate,
    RunListEntryRead,
    RunListEntryReorder,
    RunListEntryUpdate,
    RunListRead,
    RunListUpdate,
)
from fridaygt.schemas.user import SuccessResponse
from fridaygt.services.run_list_service import RunListService

router = APIRouter(prefix="/run-lists", tags=["Run lists"])

repo = RunListRepository()
service = RunListService(
    repo,
    TrackRepository(),
    CarRepository(),
    BuildRepository(),
    RaceRepository(),
    UserRepository(),
)


# -------- Run lists --------


@router.get(
    "",
    response_model=list[RunListRead],
    dependencies=[Depends(rate_limit("query"))],
)
def list_run_lists(
    session: Session = Depends(get_session),
    principal: Principal | None = Depends(get_current_principal),
    mine: bool = False,
    public_only: bool = Query(default=False, alias="public"),
    created_by_id: uuid.UUID | None = None,
):
    """Private lists are hidden from everyone but their creator and admins."""
    return service.list_run_lists(
        session,
        principal,
        mine=mine,
        public_only=public_only,
        created_by_id=created_by_id,
    )


@router.get(
    "/active",
    response_model=ActiveRunListRead,
    dependencies=[Depends(rate_limit("query"))],
)
def get_active_run_list(
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_auth),
):
    """The caller's active list with entries, or {"run_list": null}."""
    return service.get_active(session, principal)


@router.get("/{run_list_id}", response_model=RunListDetailRead)
def get_run_list(
    run_list_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal | None = Depends(get_current_principal),
):
    """Run list with entries in order, each with its cars."""
    return service.get_run_list(session, principal, run_list_id)


@router.post(
    "",
    response_model=RunListRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def create_run_list(
    payload: RunListCreate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    return service.create_run_list(session, principal, payload)


@router.patch(
    "/{run_list_id}",
    response_model=RunListRead,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def update_run_list(
    run_list_id: uuid.UUID,
    payload: RunListUpdate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    """
    Creator or admin.

    is_active=true deactivates the creator's other lists; is_live=true
    takes the live flag from whichever list had it.
    """
    return service.update_run_list(session, principal, run_list_id, payload)


@router.delete(
    "/{run_list_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def delete_run_list(
    run_list_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    service.delete_run_list(session, principal, run_list_id)
    return SuccessResponse()


# -------- Entries --------


@router.post(
    "/{run_list_id}/entries",
    response_model=RunListEntryRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def add_entry(
    run_list_id: uuid.UUID,
    payload: RunListEntryCreate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    """Append an entry at the end of the list."""
    return service.add_entry(session, principal, run_list_id, payload)


@router.patch(
    "/{run_list_id}/entries/{entry_id}",
    response_model=RunListEntryRead,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def update_entry(
    run_list_id: uuid.UUID,
    entry_id: uuid.UUID,
    payload: RunListEntryUpdate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    return service.update_entry(session, principal, run_list_id, entry_id, payload)


@router.delete(
    "/{run_list_id}/entries/{entry_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def delete_entry(
    run_list_id: uuid.UUID,
    entry_id: uuid.UUID,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    """Remove an entry; the rest are renumbered 1..n."""
    service.delete_entry(session, principal, run_list_id, entry_id)
    return SuccessResponse()


@router.patch(
    "/{run_list_id}/reorder",
    response_model=RunListDetailRead,
    dependencies=[Depends(rate_limit("mutation", require_approved))],
)
def reorder_entry(
    run_list_id: uuid.UUID,
    payload: RunListEntryReorder,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_approved),
):
    """Move an entry to `new_order`; every entry is renumbered 1..n."""
    return service.reorder_entry(session, principal, run_list_id, payload)
