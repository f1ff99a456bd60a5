# fridaygt/repositories/lap_time_repo.py
import uuid

from sqlmodel import Session, select

from fridaygt.models.lap_time import LapTime


class LapTimeRepository:
    """
    Data access layer for lap times.
    """

    def get_by_id(self, session: Session, lap_time_id: uuid.UUID) -> LapTime | None:
        return session.get(LapTime, lap_time_id)

    def list_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        track_id: uuid.UUID | None = None,
        car_id: uuid.UUID | None = None,
        limit: int | None = None,
    ) -> list[LapTime]:
        stmt = select(LapTime).where(LapTime.user_id == user_id)
        if track_id is not None:
            stmt = stmt.where(LapTime.track_id == track_id)
        if car_id is not None:
            stmt = stmt.where(LapTime.car_id == car_id)
        stmt = stmt.order_by(LapTime.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return session.exec(stmt).all()

    def list_for_track(
        self,
        session: Session,
        track_id: uuid.UUID,
        car_ids: list[uuid.UUID] | None = None,
    ) -> list[LapTime]:
        stmt = select(LapTime).where(LapTime.track_id == track_id)
        if car_ids is not None:
            stmt = stmt.where(LapTime.car_id.in_(car_ids))
        stmt = stmt.order_by(LapTime.created_at.desc())
        return session.exec(stmt).all()

    def list_for_build(self, session: Session, build_id: uuid.UUID) -> list[LapTime]:
        stmt = select(LapTime).where(LapTime.build_id == build_id)
        return session.exec(stmt).all()

    def list_for_session(self, session: Session, session_id: uuid.UUID) -> list[LapTime]:
        stmt = (
            select(LapTime)
            .where(LapTime.session_id == session_id)
            .order_by(LapTime.time_ms)
        )
        return session.exec(stmt).all()

    def save(self, session: Session, lap_time: LapTime) -> LapTime:
        session.add(lap_time)
        session.commit()
        session.refresh(lap_time)
        return lap_time

    def delete(self, session: Session, lap_time: LapTime) -> None:
        session.delete(lap_time)
        session.commit()
