# fridaygt/services/user_service.py
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from fastapi import HTTPException, status
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from fridaygt.core.log_utils import mask_email, mask_id
from fridaygt.core.permissions import Principal, ROLE_ADMIN, ROLE_PENDING, ROLE_USER
from fridaygt.models.build import CarBuild
from fridaygt.models.lap_time import LapTime
from fridaygt.models.race import Race
from fridaygt.models.run_list import RunList
from fridaygt.models.user import User
from fridaygt.repositories.auth_repo import AuthRepository
from fridaygt.repositories.build_repo import BuildRepository
from fridaygt.repositories.race_repo import RaceRepository
from fridaygt.repositories.run_list_repo import RunListRepository
from fridaygt.repositories.run_session_repo import RunSessionRepository
from fridaygt.repositories.user_repo import UserRepository
from fridaygt.schemas.user import (
    AdminUserCreate,
    AdminUserUpdate,
    ProfileUpdate,
    RejectUserRequest,
)
from fridaygt.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

build_repo = BuildRepository()
race_repo = RaceRepository()
run_list_repo = RunListRepository()
run_session_repo = RunSessionRepository()
auth_repo = AuthRepository()


# ---------------------------------------------------------------------------
# Cascade delete
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CascadeStep:
    name: str
    run: Callable[[Session, User], None]


def _delete_lap_times(session: Session, user: User) -> None:
    session.execute(delete(LapTime).where(LapTime.user_id == user.id))


def _delete_builds(session: Session, user: User) -> None:
    build_ids = list(session.exec(select(CarBuild.id).where(CarBuild.user_id == user.id)).all())
    build_repo.detach_references(session, build_ids)
    build_repo.delete_builds(session, build_ids)


def _delete_run_lists(session: Session, user: User) -> None:
    run_list_ids = list(
        session.exec(select(RunList.id).where(RunList.created_by_id == user.id)).all()
    )
    run_list_repo.delete_run_lists(session, run_list_ids)


def _delete_attendance(session: Session, user: User) -> None:
    run_session_repo.delete_attendance_for_user(session, user.id)


def _delete_races(session: Session, user: User) -> None:
    race_ids = list(session.exec(select(Race.id).where(Race.created_by_id == user.id)).all())
    race_repo.delete_races(session, race_ids)


def _delete_auth_records(session: Session, user: User) -> None:
    auth_repo.delete_identity_by_email(session, user.email)


def _delete_user_row(session: Session, user: User) -> None:
    session.delete(user)
    session.flush()


# Children before parents. Runs inside one transaction.
USER_CASCADE: tuple[CascadeStep, ...] = (
    CascadeStep("lap_times", _delete_lap_times),
    CascadeStep("builds", _delete_builds),
    CascadeStep("run_lists", _delete_run_lists),
    CascadeStep("session_attendance", _delete_attendance),
    CascadeStep("races", _delete_races),
    CascadeStep("auth_records", _delete_auth_records),
    CascadeStep("user", _delete_user_row),
)


class UserService:
    """
    Business logic for application users.

    Responsibilities:
      - self-service profile (name, gamertag)
      - admin approval state machine (PENDING -> USER, USER <-> ADMIN)
      - ordered, transactional cascade delete
    """

    def __init__(
        self,
        repo: UserRepository,
        notifications: NotificationService | None = None,
        cascade: tuple[CascadeStep, ...] = USER_CASCADE,
    ):
        self.repo = repo
        self.notifications = notifications or NotificationService()
        self.cascade = cascade

    # ----- Helpers -----

    def _ensure_gamertag_free(
        self,
        session: Session,
        gamertag: str,
        user_id: uuid.UUID,
    ) -> None:
        existing = self.repo.get_by_gamertag(session, gamertag)
        if existing is not None and existing.id != user_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Gamertag is already taken",
            )

    def _touch(self, user: User) -> None:
        user.updated_at = datetime.now(timezone.utc)

    # ----- Self profile -----

    def get_profile(self, session: Session, principal: Principal) -> User:
        """
        Raises:
            HTTPException(404): signed in but no application User row.
        """
        user = self.repo.get_by_email(session, principal.email)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    def update_profile(
        self,
        session: Session,
        principal: Principal,
        payload: ProfileUpdate,
    ) -> User:
        """
        Set name and/or gamertag.

        Never touches role: completing a profile does not approve it.
        """
        user = self.get_profile(session, principal)
        data = payload.model_dump(exclude_unset=True)

        if "gamertag" in data:
            if data["gamertag"] is not None:
                self._ensure_gamertag_free(session, data["gamertag"], user.id)
            user.gamertag = data["gamertag"]

        if "name" in data:
            user.name = data["name"]

        self._touch(user)
        return self.repo.update(session, user)

    # ----- Admin: listing / creation -----

    def list_users(
        self,
        session: Session,
        role: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[User]:
        return self.repo.list(session, role=role, skip=skip, limit=limit)

    def list_pending(self, session: Session) -> list[User]:
        return self.repo.list(session, role=ROLE_PENDING, limit=1000)

    def get_user(self, session: Session, user_id: uuid.UUID) -> User:
        """
        Raises:
            HTTPException(404): if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    def create_user(
        self,
        session: Session,
        admin: Principal,
        payload: AdminUserCreate,
    ) -> User:
        """
        Out-of-band creation of an application user for an email.

        The admin picks the starting role.
        """
        if self.repo.get_by_email(session, payload.email) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A user with this email already exists",
            )
        if payload.gamertag:
            existing = self.repo.get_by_gamertag(session, payload.gamertag)
            if existing is not None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Gamertag is already taken",
                )

        user = User(
            email=payload.email,
            name=payload.name,
            gamertag=payload.gamertag,
            role=payload.role,
        )
        user = self.repo.create(session, user)
        logger.info(
            "Admin %s created user %s (%s) as %s",
            mask_id(admin.user_id),
            mask_id(user.id),
            mask_email(user.email),
            user.role,
        )
        return user

    # ----- Admin: state machine -----

    def update_user(
        self,
        session: Session,
        admin: Principal,
        user_id: uuid.UUID,
        payload: AdminUserUpdate,
    ) -> User:
        """
        Admin edit, including the single "set role" transition.

        Any of PENDING/USER/ADMIN may be set (schema-validated). A
        PENDING -> USER change sends the approval email.
        """
        user = self.get_user(session, user_id)
        data = payload.model_dump(exclude_unset=True)
        previous_role = user.role

        if "gamertag" in data:
            if data["gamertag"] is not None:
                self._ensure_gamertag_free(session, data["gamertag"], user.id)
            user.gamertag = data["gamertag"]

        if "name" in data:
            user.name = data["name"]

        if data.get("role") is not None:
            user.role = data["role"]

        self._touch(user)
        user = self.repo.update(session, user)

        if user.role != previous_role:
            logger.info(
                "Admin %s changed role of %s: %s -> %s",
                mask_id(admin.user_id),
                mask_id(user.id),
                previous_role,
                user.role,
            )
            if previous_role == ROLE_PENDING and user.role == ROLE_USER:
                self.notifications.send_approval(user.email, approved=True)

        return user

    def _get_pending(self, session: Session, user_id: uuid.UUID) -> User:
        user = self.get_user(session, user_id)
        if user.role != ROLE_PENDING:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User is not pending",
            )
        return user

    def approve(self, session: Session, admin: Principal, user_id: uuid.UUID) -> User:
        """PENDING -> USER; anything else is a 400."""
        user = self._get_pending(session, user_id)
        user.role = ROLE_USER
        self._touch(user)
        user = self.repo.update(session, user)

        logger.info("Admin %s approved %s", mask_id(admin.user_id), mask_id(user.id))
        self.notifications.send_approval(user.email, approved=True)
        return user

    def reject(
        self,
        session: Session,
        admin: Principal,
        user_id: uuid.UUID,
        payload: RejectUserRequest,
    ) -> None:
        """PENDING -> (deleted), with the full cascade."""
        user = self._get_pending(session, user_id)
        email = user.email
        self._run_cascade(session, user)

        logger.info("Admin %s rejected %s", mask_id(admin.user_id), mask_id(user_id))
        self.notifications.send_approval(email, approved=False, reason=payload.reason)

    # ----- Admin: delete -----

    def delete_user(self, session: Session, admin: Principal, user_id: uuid.UUID) -> None:
        """
        Remove a user and everything they own.

        A second delete of the same id is a 404.
        """
        user = self.get_user(session, user_id)
        email = user.email
        self._run_cascade(session, user)

        logger.info("Admin %s deleted %s", mask_id(admin.user_id), mask_id(user_id))

        other_admins = [
            u.email
            for u in self.repo.list(session, role=ROLE_ADMIN, limit=1000)
            if u.email != admin.email
        ]
        self.notifications.send_user_removed(other_admins, email, admin.email)

    def _run_cascade(self, session: Session, user: User) -> None:
        """
        Apply every CascadeStep in order, then commit once.

        Any failure rolls back the whole delete.
        """
        user_id = user.id
        step_name = None
        try:
            for step in self.cascade:
                step_name = step.name
                step.run(session, user)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception(
                "User delete failed at step '%s' for %s", step_name, mask_id(user_id)
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete user",
            )
