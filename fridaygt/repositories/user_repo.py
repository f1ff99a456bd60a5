# fridaygt/repositories/user_repo.py
from __future__ import annotations

import uuid

from sqlmodel import Session, select

from fridaygt.models.user import User


class UserRepository:
    """
    Data access layer for application users.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        return session.get(User, user_id)

    def get_by_email(self, session: Session, email: str) -> User | None:
        """Emails are stored lowercase."""
        stmt = select(User).where(User.email == email.strip().lower())
        return session.exec(stmt).first()

    def get_by_gamertag(self, session: Session, gamertag: str) -> User | None:
        stmt = select(User).where(User.gamertag == gamertag)
        return session.exec(stmt).first()

    def list(
        self,
        session: Session,
        role: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[User]:
        """Users newest first, optionally filtered by role."""
        stmt = select(User)
        if role is not None:
            stmt = stmt.where(User.role == role)
        stmt = stmt.order_by(User.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def create(self, session: Session, user: User) -> User:
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def update(self, session: Session, user: User) -> User:
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
