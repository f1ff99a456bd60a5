# fridaygt/routers/cron.py
import logging
import secrets
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlmodel import Session

from fridaygt.core.auth import bearer_scheme
from fridaygt.core.config import get_settings
from fridaygt.database import get_session
from fridaygt.repositories.auth_repo import AuthRepository
from fridaygt.schemas.auth import TokenCleanupRead
from fridaygt.services.auth_service import AuthService

router = APIRouter(prefix="/cron", tags=["Cron"])

settings = get_settings()
logger = logging.getLogger(__name__)

service = AuthService(AuthRepository())


def require_cron_secret(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> None:
    """
    Scheduled callers send "Authorization: Bearer <CRON_SECRET>".

    Missing CRON_SECRET is a deployment error (500), not an auth failure.
    """
    if not settings.CRON_SECRET:
        logger.error("CRON_SECRET is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        )
    if credentials is None or not secrets.compare_digest(
        credentials.credentials.encode(), settings.CRON_SECRET.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


@router.get(
    "/cleanup-tokens",
    response_model=TokenCleanupRead,
    dependencies=[Depends(require_cron_secret)],
)
def cleanup_tokens(session: Session = Depends(get_session)):
    """Delete expired magic-link tokens."""
    deleted = service.cleanup_expired_tokens(session)
    return TokenCleanupRead(
        message="Expired tokens cleaned up successfully",
        deleted=deleted,
        timestamp=datetime.now(timezone.utc),
    )
