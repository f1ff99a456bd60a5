# fridaygt/services/auth_service.py
import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from fastapi import HTTPException, status
from sqlmodel import Session

from fridaygt.core.auth import as_utc, create_session_token
from fridaygt.core.config import get_settings
from fridaygt.core.log_utils import mask_email
from fridaygt.models.auth import (
    AuthAccount,
    AuthIdentity,
    AuthSession,
    VerificationToken,
)
from fridaygt.repositories.auth_repo import AuthRepository
from fridaygt.services.notification_service import NotificationService

logger = logging.getLogger(__name__)
settings = get_settings()

EMAIL_PROVIDER = "email"


def hash_token(token: str) -> str:
    """Verification tokens are stored as SHA-256(token + secret)."""
    return hashlib.sha256(f"{token}{settings.AUTH_SECRET}".encode()).hexdigest()


class AuthService:
    """
    Passwordless sign-in against the next_auth schema.

    Responsibilities:
      - issue magic links (hashed, single-use, short-lived)
      - on callback: find/create the AuthIdentity and its email account,
        open a server-side session, sign a session JWT
      - sign out (revoke the session row)

    This service never creates an application User; approval is a
    separate, admin-driven step.
    """

    def __init__(
        self,
        repo: AuthRepository,
        notifications: NotificationService | None = None,
    ):
        self.repo = repo
        self.notifications = notifications or NotificationService()

    def request_magic_link(self, session: Session, email: str) -> str:
        """
        Store a verification token and email the link.

        Returns the sign-in link (delivery failures are only logged).
        """
        raw_token = secrets.token_urlsafe(32)
        expires = datetime.now(timezone.utc) + timedelta(
            minutes=settings.MAGIC_LINK_TTL_MINUTES
        )

        self.repo.add(
            session,
            VerificationToken(
                token=hash_token(raw_token),
                identifier=email,
                expires=expires,
            ),
        )
        session.commit()

        query = urlencode({"token": raw_token, "email": email})
        link = f"{settings.APP_URL.rstrip('/')}{settings.API_PREFIX}/auth/callback?{query}"

        logger.info("Magic link issued for %s", mask_email(email))
        self.notifications.send_magic_link(email, link)
        return link

    def complete_sign_in(
        self,
        session: Session,
        email: str,
        token: str,
    ) -> tuple[str, datetime]:
        """
        Consume a magic-link token and open a session.

        Returns:
            (signed session JWT, expiry)

        Raises:
            HTTPException(400): unknown, used or expired token.
        """
        email = email.strip().lower()
        record = self.repo.get_verification_token(session, email, hash_token(token))
        if record is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or already used sign-in link",
            )

        # Single use: consumed even when expired
        expired = as_utc(record.expires) <= datetime.now(timezone.utc)
        self.repo.delete_verification_token(session, record)
        if expired:
            session.commit()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Sign-in link has expired",
            )

        now = datetime.now(timezone.utc)
        identity = self.repo.get_identity_by_email(session, email)
        if identity is None:
            identity = AuthIdentity(email=email, email_verified=now)
            logger.info("New auth identity for %s", mask_email(email))
        else:
            identity.email_verified = now
        self.repo.add(session, identity)

        if self.repo.get_account(session, EMAIL_PROVIDER, email) is None:
            self.repo.add(
                session,
                AuthAccount(
                    user_id=identity.id,
                    type=EMAIL_PROVIDER,
                    provider=EMAIL_PROVIDER,
                    provider_account_id=email,
                ),
            )

        expires = now + timedelta(days=settings.SESSION_MAX_AGE_DAYS)
        auth_session = AuthSession(
            session_token=secrets.token_urlsafe(32),
            user_id=identity.id,
            expires=expires,
        )
        self.repo.add(session, auth_session)
        session.commit()

        token_str = create_session_token(
            identity.id, email, auth_session.session_token, expires
        )
        return token_str, expires

    def sign_out(self, session: Session, sid: str | None) -> None:
        if not sid:
            return
        self.repo.delete_session_by_token(session, sid)
        session.commit()

    def cleanup_expired_tokens(self, session: Session) -> int:
        """Delete magic-link tokens past their expiry. Returns the count."""
        deleted = self.repo.delete_expired_verification_tokens(
            session, datetime.now(timezone.utc)
        )
        session.commit()
        logger.info("Removed %d expired verification token(s)", deleted)
        return deleted
