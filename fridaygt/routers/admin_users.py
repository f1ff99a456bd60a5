# fridaygt/routers/admin_users.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from fridaygt.core.auth import require_admin
from fridaygt.core.permissions import Principal
from fridaygt.core.rate_limit import rate_limit
from fridaygt.database import get_session
from fridaygt.repositories.user_repo import UserRepository
from fridaygt.schemas.user import (
    AdminUserCreate,
    AdminUserUpdate,
    RejectUserRequest,
    Role,
    SuccessResponse,
    UserRead,
)
from fridaygt.services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["Admin"])

repo = UserRepository()
service = UserService(repo)


# -------- Users --------


@router.get(
    "/users",
    response_model=list[UserRead],
    dependencies=[Depends(require_admin)],
)
def list_users(
    session: Session = Depends(get_session),
    role: Role | None = None,
    skip: int = 0,
    limit: int = 100,
):
    """List application users, newest first (admin only)."""
    return service.list_users(session, role=role, skip=skip, limit=limit)


@router.post(
    "/users",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("mutation", require_admin))],
)
def create_user(
    payload: AdminUserCreate,
    session: Session = Depends(get_session),
    admin: Principal = Depends(require_admin),
):
    """Create an application user for an email with any starting role."""
    return service.create_user(session, admin, payload)


@router.patch(
    "/users/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(rate_limit("mutation", require_admin))],
)
def update_user(
    user_id: uuid.UUID,
    payload: AdminUserUpdate,
    session: Session = Depends(get_session),
    admin: Principal = Depends(require_admin),
):
    """
    Update role, name or gamertag (admin only).

    PENDING -> USER sends the approval email.
    """
    return service.update_user(session, admin, user_id, payload)


@router.delete(
    "/users/{user_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(rate_limit("expensive", require_admin))],
)
def delete_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: Principal = Depends(require_admin),
):
    """
    Delete a user and everything they own in one transaction.

    Deleting the same id again is a 404.
    """
    service.delete_user(session, admin, user_id)
    return SuccessResponse()


# -------- Pending approvals --------


@router.get(
    "/pending-users",
    response_model=list[UserRead],
    dependencies=[Depends(require_admin)],
)
def list_pending_users(session: Session = Depends(get_session)):
    return service.list_pending(session)


@router.post(
    "/pending-users/{user_id}/approve",
    response_model=UserRead,
    dependencies=[Depends(rate_limit("mutation", require_admin))],
)
def approve_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: Principal = Depends(require_admin),
):
    """PENDING -> USER. Anything else is a 400."""
    return service.approve(session, admin, user_id)


@router.post(
    "/pending-users/{user_id}/reject",
    response_model=SuccessResponse,
    dependencies=[Depends(rate_limit("mutation", require_admin))],
)
def reject_user(
    user_id: uuid.UUID,
    payload: RejectUserRequest | None = None,
    session: Session = Depends(get_session),
    admin: Principal = Depends(require_admin),
):
    """Delete a PENDING user (full cascade) and email the reason."""
    service.reject(session, admin, user_id, payload or RejectUserRequest())
    return SuccessResponse()
