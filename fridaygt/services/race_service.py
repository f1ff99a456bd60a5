# fridaygt/services/race_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from fridaygt.core.log_utils import mask_id
from fridaygt.core.permissions import ACTIVE_ROLES, Principal, ResourceRef, enforce
from fridaygt.models.race import Race, RaceCar
from fridaygt.repositories.build_repo import BuildRepository
from fridaygt.repositories.catalog_repo import CarRepository, TrackRepository
from fridaygt.repositories.lap_time_repo import LapTimeRepository
from fridaygt.repositories.race_repo import RaceRepository
from fridaygt.repositories.user_repo import UserRepository
from fridaygt.schemas.race import (
    LeaderboardEntry,
    RaceCarRead,
    RaceCreate,
    RaceDetailRead,
    RaceRead,
    RaceUpdate,
)
from fridaygt.services.build_service import build_ref
from fridaygt.services.stats import compute_lap_statistics

logger = logging.getLogger(__name__)


def race_ref(race: Race) -> ResourceRef:
    # Races are community content: readable by anyone.
    return ResourceRef(owner_id=race.created_by_id, is_public=True)


class RaceService:
    """
    Business logic for races.

    Responsibilities:
      - race + race cars (one per build, car taken from the build)
      - creator-or-admin edits, admin-only creator transfer
      - leaderboard: best lap per user/car/build on the race's track
    """

    def __init__(
        self,
        repo: RaceRepository,
        track_repo: TrackRepository,
        car_repo: CarRepository,
        build_repo: BuildRepository,
        lap_repo: LapTimeRepository,
        user_repo: UserRepository,
    ):
        self.repo = repo
        self.track_repo = track_repo
        self.car_repo = car_repo
        self.build_repo = build_repo
        self.lap_repo = lap_repo
        self.user_repo = user_repo

    # ----- Helpers -----

    def _get(self, session: Session, race_id: uuid.UUID) -> Race:
        race = self.repo.get_by_id(session, race_id)
        if not race:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Race not found",
            )
        return race

    def _cars_for_builds(
        self,
        session: Session,
        principal: Principal,
        race_id: uuid.UUID,
        build_ids: list[uuid.UUID],
    ) -> list[RaceCar]:
        unique_ids = list(dict.fromkeys(build_ids))
        builds = {b.id: b for b in self.build_repo.get_many(session, unique_ids)}
        missing = [str(b) for b in unique_ids if b not in builds]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Builds not found: {', '.join(missing)}",
            )
        for build in builds.values():
            enforce(principal, "view", build_ref(build))
        return [
            RaceCar(race_id=race_id, car_id=builds[b].car_id, build_id=b)
            for b in unique_ids
        ]

    def _read_models(self, session: Session, races: list[Race]) -> list[RaceRead]:
        """Attach track names and cars; display name falls back to the track."""
        race_cars = self.repo.list_cars(session, [r.id for r in races])
        cars = {c.id: c for c in self.car_repo.get_many(session, list({rc.car_id for rc in race_cars}))}
        builds = {
            b.id: b
            for b in self.build_repo.get_many(
                session, list({rc.build_id for rc in race_cars if rc.build_id})
            )
        }

        by_race: dict[uuid.UUID, list[RaceCarRead]] = {}
        for rc in race_cars:
            by_race.setdefault(rc.race_id, []).append(
                RaceCarRead(
                    id=rc.id,
                    car_id=rc.car_id,
                    build_id=rc.build_id,
                    car_name=cars[rc.car_id].name if rc.car_id in cars else None,
                    build_name=builds[rc.build_id].name if rc.build_id in builds else None,
                )
            )

        result: list[RaceRead] = []
        for race in races:
            track = self.track_repo.get_by_id(session, race.track_id)
            track_name = track.name if track else None
            result.append(
                RaceRead(
                    **race.model_dump(),
                    track_name=track_name,
                    display_name=race.name or track_name or "Race",
                    cars=by_race.get(race.id, []),
                )
            )
        return result

    # ----- Queries -----

    def list_races(self, session: Session) -> list[RaceRead]:
        """Active races first, then by display name."""
        reads = self._read_models(session, self.repo.list(session))
        reads.sort(key=lambda r: (not r.is_active, r.display_name.lower()))
        return reads

    def get_race(self, session: Session, race_id: uuid.UUID) -> RaceDetailRead:
        race = self._get(session, race_id)
        base = self._read_models(session, [race])[0]

        car_ids = list({c.car_id for c in base.cars})
        laps = self.lap_repo.list_for_track(session, race.track_id, car_ids=car_ids)

        best: dict[tuple, dict] = {}
        for lap in laps:
            key = (lap.user_id, lap.car_id, lap.build_id)
            row = best.get(key)
            if row is None:
                best[key] = {"lap": lap, "total": 1}
            else:
                row["total"] += 1
                if lap.time_ms < row["lap"].time_ms:
                    row["lap"] = lap

        users = {}
        for user_id in {k[0] for k in best}:
            user = self.user_repo.get_by_id(session, user_id)
            if user is not None:
                users[user_id] = user

        ranked = sorted(best.values(), key=lambda r: r["lap"].time_ms)
        leaderboard = []
        for position, row in enumerate(ranked, start=1):
            lap = row["lap"]
            user = users.get(lap.user_id)
            leaderboard.append(
                LeaderboardEntry(
                    position=position,
                    user_id=lap.user_id,
                    user_name=user.name if user else None,
                    gamertag=user.gamertag if user else None,
                    car_id=lap.car_id,
                    build_id=lap.build_id,
                    build_name=lap.build_name,
                    best_time_ms=lap.time_ms,
                    total_laps=row["total"],
                    best_lap_id=lap.id,
                )
            )

        return RaceDetailRead(
            **base.model_dump(),
            leaderboard=leaderboard,
            statistics=compute_lap_statistics(laps),
        )

    # ----- Mutations -----

    def create_race(
        self,
        session: Session,
        principal: Principal,
        payload: RaceCreate,
    ) -> RaceRead:
        enforce(principal, "create")
        if self.track_repo.get_by_id(session, payload.track_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Track not found",
            )

        race = self.repo.add(
            session,
            Race(
                track_id=payload.track_id,
                name=payload.name,
                description=payload.description,
                created_by_id=principal.user_id,
                laps=payload.laps,
                weather=payload.weather,
                is_active=payload.is_active,
            ),
        )
        self.repo.replace_cars(
            session, race.id, self._cars_for_builds(session, principal, race.id, payload.build_ids)
        )
        session.commit()
        session.refresh(race)
        return self._read_models(session, [race])[0]

    def update_race(
        self,
        session: Session,
        principal: Principal,
        race_id: uuid.UUID,
        payload: RaceUpdate,
    ) -> RaceRead:
        race = self._get(session, race_id)
        enforce(principal, "edit", race_ref(race))

        data = payload.model_dump(exclude_unset=True)
        new_creator = data.pop("created_by_id", None)
        build_ids = data.pop("build_ids", None)

        if new_creator is not None and new_creator != race.created_by_id:
            enforce(principal, "transfer", race_ref(race))
            user = self.user_repo.get_by_id(session, new_creator)
            if user is None or user.role not in ACTIVE_ROLES:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="New creator must be an approved user",
                )
            logger.info(
                "Race %s transferred to %s by %s",
                mask_id(race.id),
                mask_id(new_creator),
                mask_id(principal.user_id),
            )
            race.created_by_id = new_creator

        for key, value in data.items():
            if key == "is_active" and value is None:
                continue
            setattr(race, key, value)

        if build_ids is not None:
            self.repo.replace_cars(
                session, race.id, self._cars_for_builds(session, principal, race.id, build_ids)
            )

        race.updated_at = datetime.now(timezone.utc)
        session.add(race)
        session.commit()
        session.refresh(race)
        return self._read_models(session, [race])[0]

    def delete_race(
        self,
        session: Session,
        principal: Principal,
        race_id: uuid.UUID,
    ) -> None:
        """
        Raises:
            HTTPException(409): still used by run-list entries.
        """
        race = self._get(session, race_id)
        enforce(principal, "delete", race_ref(race))

        in_use = self.repo.count_entry_references(session, race.id)
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Race is used in {in_use} run list entr{'y' if in_use == 1 else 'ies'}",
            )

        self.repo.delete_races(session, [race.id])
        session.commit()
