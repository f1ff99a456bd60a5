# fridaygt/routers/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials
from sqlmodel import Session

from fridaygt.core.auth import (
    bearer_scheme,
    decode_session_token,
    extract_token,
    get_current_principal,
)
from fridaygt.core.config import get_settings
from fridaygt.core.permissions import Principal
from fridaygt.core.rate_limit import rate_limit
from fridaygt.database import get_session
from fridaygt.repositories.auth_repo import AuthRepository
from fridaygt.schemas.auth import (
    SessionRead,
    SessionTokenRead,
    SessionUserRead,
    SignInRequest,
)
from fridaygt.schemas.user import SuccessResponse
from fridaygt.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

settings = get_settings()
logger = logging.getLogger(__name__)

repo = AuthRepository()
service = AuthService(repo)


@router.post(
    "/signin",
    response_model=SuccessResponse,
    dependencies=[Depends(rate_limit("auth"))],
)
def sign_in(
    payload: SignInRequest,
    session: Session = Depends(get_session),
):
    """
    Email a single-use sign-in link.

    Always answers 200 so the endpoint cannot reveal which addresses exist;
    delivery problems are logged server-side.
    """
    service.request_magic_link(session, payload.email)
    return SuccessResponse(message="Check your email for a sign-in link")


@router.get("/callback", response_model=SessionTokenRead)
def callback(
    token: str,
    email: str,
    response: Response,
    session: Session = Depends(get_session),
):
    """
    Consume a magic link, open a session and set the session cookie.

    The token is also returned for clients that prefer a Bearer header.
    """
    session_token, expires = service.complete_sign_in(session, email, token)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_token,
        max_age=settings.SESSION_MAX_AGE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=not settings.is_development,
        samesite="lax",
    )
    return SessionTokenRead(token=session_token, expires=expires)


@router.post("/signout", response_model=SuccessResponse)
def sign_out(
    request: Request,
    response: Response,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
):
    """Revoke the server-side session (if the token is still valid) and clear the cookie."""
    token = extract_token(request, credentials)
    sid = None
    if token:
        try:
            sid = decode_session_token(token).get("sid")
        except HTTPException:
            logger.info("Sign-out with an invalid or expired token")

    service.sign_out(session, sid)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return SuccessResponse()


@router.get("/session", response_model=SessionRead)
def read_session(principal: Principal | None = Depends(get_current_principal)):
    """Current session user, or `{"user": null}` for anonymous callers."""
    if principal is None:
        return SessionRead(user=None)
    return SessionRead(
        user=SessionUserRead(
            id=principal.user_id,
            email=principal.email,
            name=principal.name,
            role=principal.role,
            gamertag=principal.gamertag,
        )
    )
