# fridaygt/services/lap_time_service.py
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from fridaygt.core.permissions import Principal, ResourceRef, enforce
from fridaygt.models.lap_time import LapTime
from fridaygt.repositories.build_repo import BuildRepository
from fridaygt.repositories.catalog_repo import CarRepository, TrackRepository
from fridaygt.repositories.lap_time_repo import LapTimeRepository
from fridaygt.repositories.run_session_repo import RunSessionRepository
from fridaygt.schemas.lap_time import LapTimeCreate, LapTimeUpdate
from fridaygt.services.build_service import build_ref


class LapTimeService:
    """
    Business logic for lap times.

    Responsibilities:
      - validate track / car / build / session references
      - snapshot the build name at creation
      - owner-or-admin edit and delete
    """

    def __init__(
        self,
        repo: LapTimeRepository,
        track_repo: TrackRepository,
        car_repo: CarRepository,
        build_repo: BuildRepository,
        session_repo: RunSessionRepository,
    ):
        self.repo = repo
        self.track_repo = track_repo
        self.car_repo = car_repo
        self.build_repo = build_repo
        self.session_repo = session_repo

    def _get(self, session: Session, lap_time_id: uuid.UUID) -> LapTime:
        lap_time = self.repo.get_by_id(session, lap_time_id)
        if not lap_time:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Lap time not found",
            )
        return lap_time

    def list_own(
        self,
        session: Session,
        principal: Principal,
        track_id: uuid.UUID | None = None,
        car_id: uuid.UUID | None = None,
        limit: int | None = None,
    ) -> list[LapTime]:
        """
        Caller's laps, newest first.

        Raises:
            HTTPException(400): limit < 1.
        """
        if limit is not None and limit < 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Limit must be a positive number",
            )
        if principal.user_id is None:
            return []
        return self.repo.list_for_user(
            session, principal.user_id, track_id=track_id, car_id=car_id, limit=limit
        )

    def create(
        self,
        session: Session,
        principal: Principal,
        payload: LapTimeCreate,
    ) -> LapTime:
        """
        Record a lap for the caller.

        - track and car must exist (404)
        - a build must exist (404), be visible to the caller (403) and be
          for the same car (400)
        - build_name is copied from the build now, not looked up later
        """
        enforce(principal, "create")

        if self.track_repo.get_by_id(session, payload.track_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Track not found",
            )
        if self.car_repo.get_by_id(session, payload.car_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Car not found",
            )

        build_name = None
        if payload.build_id is not None:
            build = self.build_repo.get_by_id(session, payload.build_id)
            if build is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Build not found",
                )
            enforce(principal, "view", build_ref(build))
            if build.car_id != payload.car_id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Build is for a different car",
                )
            build_name = build.name

        if payload.session_id is not None:
            if self.session_repo.get_by_id(session, payload.session_id) is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Session not found",
                )

        lap_time = LapTime(
            user_id=principal.user_id,
            track_id=payload.track_id,
            car_id=payload.car_id,
            build_id=payload.build_id,
            build_name=build_name,
            time_ms=payload.time_ms,
            session_type=payload.session_type,
            session_id=payload.session_id,
            notes=payload.notes,
            conditions=payload.conditions,
        )
        return self.repo.save(session, lap_time)

    def update(
        self,
        session: Session,
        principal: Principal,
        lap_time_id: uuid.UUID,
        payload: LapTimeUpdate,
    ) -> LapTime:
        lap_time = self._get(session, lap_time_id)
        enforce(principal, "edit", ResourceRef(owner_id=lap_time.user_id))

        for key, value in payload.model_dump(exclude_unset=True).items():
            if key in ("time_ms", "session_type") and value is None:
                continue
            setattr(lap_time, key, value)

        lap_time.updated_at = datetime.now(timezone.utc)
        return self.repo.save(session, lap_time)

    def delete(
        self,
        session: Session,
        principal: Principal,
        lap_time_id: uuid.UUID,
    ) -> None:
        lap_time = self._get(session, lap_time_id)
        enforce(principal, "delete", ResourceRef(owner_id=lap_time.user_id))
        self.repo.delete(session, lap_time)
