# fridaygt/routers/users.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from fridaygt.core.auth import require_auth
from fridaygt.core.permissions import Principal
from fridaygt.core.rate_limit import rate_limit
from fridaygt.database import get_session
from fridaygt.repositories.user_repo import UserRepository
from fridaygt.schemas.user import ProfileUpdate, UserRead
from fridaygt.services.user_service import UserService

router = APIRouter(prefix="/user", tags=["Users"])

repo = UserRepository()
service = UserService(repo)


@router.get("/profile", response_model=UserRead)
def read_profile(
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_auth),
):
    """
    Return the caller's application profile.

    404 while the account has no application user yet.
    """
    return service.get_profile(session, principal)


@router.patch(
    "/profile",
    response_model=UserRead,
    dependencies=[Depends(rate_limit("mutation", require_auth))],
)
def update_profile(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_auth),
):
    """
    Set gamertag and/or name.

    Open to PENDING users too, so they can pick a gamertag before approval.
    Never changes role.
    """
    return service.update_profile(session, principal, payload)
