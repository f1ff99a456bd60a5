# fridaygt/core/auth.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from fridaygt.core.config import get_settings
from fridaygt.core.log_utils import mask_email
from fridaygt.core.permissions import (
    Principal,
    ROLE_ADMIN,
    ROLE_PENDING,
    enforce,
)
from fridaygt.database import get_session
from fridaygt.repositories.auth_repo import AuthRepository
from fridaygt.repositories.user_repo import UserRepository

settings = get_settings()
logger = logging.getLogger(__name__)

# auto_error=False => a missing Authorization header does not raise, so
# anonymous callers reach public read endpoints.
bearer_scheme = HTTPBearer(auto_error=False)

user_repo = UserRepository()
auth_repo = AuthRepository()


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


def create_session_token(
    identity_id: uuid.UUID,
    email: str,
    session_token: str,
    expires: datetime,
) -> str:
    """
    Sign a session JWT.

    Claims:
      - sub: auth identity id
      - email: verified email
      - sid: server-side session token (revocable)
      - exp: expiry
    """
    claims = {
        "sub": str(identity_id),
        "email": email,
        "sid": session_token,
        "exp": int(as_utc(expires).timestamp()),
    }
    return jwt.encode(claims, settings.AUTH_SECRET, algorithm=settings.AUTH_JWT_ALG)


def decode_session_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry of a session JWT.

    Raises:
        HTTPException(401): if the token is invalid or expired.
    """
    try:
        return jwt.decode(
            token,
            settings.AUTH_SECRET,
            algorithms=[settings.AUTH_JWT_ALG],
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )


def extract_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    """Bearer header first, then the session cookie."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


# ---------------------------------------------------------------------------
# Role resolution
# ---------------------------------------------------------------------------


def resolve_session_user(
    session: Session,
    email: str,
    identity_id: uuid.UUID | None = None,
) -> Principal:
    """
    Merge the application User (if any) into the session.

    - User row found  -> its id, role and gamertag
    - no User row     -> PENDING, no gamertag; nothing is created
    - lookup fails    -> PENDING (fail closed), error logged

    An existing row whose email equals DEFAULT_ADMIN_EMAIL is promoted
    to ADMIN on resolution; a missing row is never created for it.
    """
    email = email.strip().lower()
    try:
        user = user_repo.get_by_email(session, email)
        if user is None:
            return Principal(email=email, role=ROLE_PENDING, identity_id=identity_id)

        admin_email = (settings.DEFAULT_ADMIN_EMAIL or "").strip().lower()
        if admin_email and user.email == admin_email and user.role != ROLE_ADMIN:
            logger.info("Promoting default admin %s", mask_email(user.email))
            user.role = ROLE_ADMIN
            user.updated_at = datetime.now(timezone.utc)
            user = user_repo.update(session, user)

        return Principal(
            email=email,
            role=user.role,
            user_id=user.id,
            gamertag=user.gamertag,
            name=user.name,
            identity_id=identity_id,
        )
    except SQLAlchemyError:
        logger.exception("Session role lookup failed for %s", mask_email(email))
        session.rollback()
        return Principal(email=email, role=ROLE_PENDING, identity_id=identity_id)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_current_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Principal | None:
    """
    Resolve the caller from the session token.

    Flow:
      1. No token => anonymous => None.
      2. Verify JWT, require sub/email/sid claims.
      3. `sid` must match an unexpired next_auth.sessions row.
      4. Resolve role/gamertag from the application users table.

    Raises:
        HTTPException(401): malformed, expired or revoked token.
    """
    token = extract_token(request, credentials)
    if token is None:
        return None

    payload = decode_session_token(token)
    sub = payload.get("sub")
    email = payload.get("email")
    sid = payload.get("sid")

    if not sub or not email or not sid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub/email/sid",
        )

    try:
        identity_id = uuid.UUID(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    auth_session = auth_repo.get_session_by_token(session, sid)
    if (
        auth_session is None
        or auth_session.user_id != identity_id
        or as_utc(auth_session.expires) <= datetime.now(timezone.utc)
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired or revoked",
        )

    return resolve_session_user(session, email, identity_id)


def require_auth(principal: Principal | None = Depends(get_current_principal)) -> Principal:
    """
    Reject anonymous callers with 401.
    """
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return principal


def require_approved(principal: Principal = Depends(require_auth)) -> Principal:
    """
    Gate for every mutating domain route.

    PENDING callers get 403; so do approved callers without a gamertag
    while REQUIRE_GAMERTAG_FOR_WRITES is on.
    """
    enforce(principal, "create")
    return principal


def require_admin(principal: Principal = Depends(require_auth)) -> Principal:
    """
    Route is accessible only if role == "ADMIN".

    Raises:
        HTTPException(403): otherwise.
    """
    enforce(principal, "administer")
    return principal
