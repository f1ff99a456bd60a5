# fridaygt/repositories/auth_repo.py
import uuid
from datetime import datetime

from sqlalchemy import delete
from sqlmodel import Session, select

from fridaygt.models.auth import (
    AuthAccount,
    AuthIdentity,
    AuthSession,
    VerificationToken,
)


class AuthRepository:
    """
    Data access for the auth-provider schema (next_auth).

    NOTE:
      - No commits here; sign-in and cascade delete are multi-step
        transactions. The calling service commits.
    """

    # ---- Identities ----

    def get_identity_by_email(self, session: Session, email: str) -> AuthIdentity | None:
        stmt = select(AuthIdentity).where(AuthIdentity.email == email)
        return session.exec(stmt).first()

    def add(self, session: Session, row) -> None:
        session.add(row)
        session.flush()

    # ---- Accounts ----

    def get_account(
        self,
        session: Session,
        provider: str,
        provider_account_id: str,
    ) -> AuthAccount | None:
        stmt = select(AuthAccount).where(
            AuthAccount.provider == provider,
            AuthAccount.provider_account_id == provider_account_id,
        )
        return session.exec(stmt).first()

    # ---- Sessions ----

    def get_session_by_token(self, session: Session, session_token: str) -> AuthSession | None:
        stmt = select(AuthSession).where(AuthSession.session_token == session_token)
        return session.exec(stmt).first()

    def delete_session_by_token(self, session: Session, session_token: str) -> int:
        result = session.execute(
            delete(AuthSession).where(AuthSession.session_token == session_token)
        )
        return result.rowcount or 0

    # ---- Verification tokens ----

    def get_verification_token(
        self,
        session: Session,
        identifier: str,
        token_hash: str,
    ) -> VerificationToken | None:
        stmt = select(VerificationToken).where(
            VerificationToken.identifier == identifier,
            VerificationToken.token == token_hash,
        )
        return session.exec(stmt).first()

    def delete_verification_token(self, session: Session, token: VerificationToken) -> None:
        session.delete(token)
        session.flush()

    def delete_expired_verification_tokens(self, session: Session, now: datetime) -> int:
        result = session.execute(
            delete(VerificationToken).where(VerificationToken.expires < now)
        )
        return result.rowcount or 0

    # ---- Cascade support ----

    def delete_identity_by_email(self, session: Session, email: str) -> int:
        """
        Remove outstanding magic links, sessions, accounts, then the
        identity for `email`.

        Returns the number of identities removed (0 or 1).
        """
        session.execute(
            delete(VerificationToken).where(VerificationToken.identifier == email)
        )

        identity_ids: list[uuid.UUID] = list(
            session.exec(select(AuthIdentity.id).where(AuthIdentity.email == email)).all()
        )
        if not identity_ids:
            return 0

        session.execute(delete(AuthSession).where(AuthSession.user_id.in_(identity_ids)))
        session.execute(delete(AuthAccount).where(AuthAccount.user_id.in_(identity_ids)))
        session.execute(delete(AuthIdentity).where(AuthIdentity.id.in_(identity_ids)))
        return len(identity_ids)
