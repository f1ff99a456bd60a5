# fridaygt/services/run_list_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from fridaygt.core.log_utils import mask_id
from fridaygt.core.permissions import ACTIVE_ROLES, Principal, ResourceRef, enforce
from fridaygt.models.run_list import RunList, RunListEntry, RunListEntryCar
from fridaygt.repositories.build_repo import BuildRepository
from fridaygt.repositories.catalog_repo import CarRepository, TrackRepository
from fridaygt.repositories.race_repo import RaceRepository
from fridaygt.repositories.run_list_repo import RunListRepository
from fridaygt.repositories.user_repo import UserRepository
from fridaygt.schemas.run_list import (
    ActiveRunListRead,
    EntryCarInput,
    EntryCarRead,
    RunListCreate,
    RunListDetailRead,
    RunListEntryCreate,
    RunListEntryRead,
    RunListEntryReorder,
    RunListEntryUpdate,
    RunListUpdate,
)
from fridaygt.services.build_service import build_ref

logger = logging.getLogger(__name__)


def run_list_ref(run_list: RunList) -> ResourceRef:
    return ResourceRef(owner_id=run_list.created_by_id, is_public=run_list.is_public)


class RunListService:
    """
    Business logic for run lists and their ordered entries.

    Rules:
      - is_active: one active list per creator
      - is_live: one live list site-wide
      - entry order is 1..n; new entries go last, deletes renumber
    """

    def __init__(
        self,
        repo: RunListRepository,
        track_repo: TrackRepository,
        car_repo: CarRepository,
        build_repo: BuildRepository,
        race_repo: RaceRepository,
        user_repo: UserRepository,
    ):
        self.repo = repo
        self.track_repo = track_repo
        self.car_repo = car_repo
        self.build_repo = build_repo
        self.race_repo = race_repo
        self.user_repo = user_repo

    # ----- Helpers -----

    def _get(self, session: Session, run_list_id: uuid.UUID) -> RunList:
        run_list = self.repo.get_by_id(session, run_list_id)
        if not run_list:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Run list not found",
            )
        return run_list

    def _get_entry(self, session: Session, run_list: RunList, entry_id: uuid.UUID) -> RunListEntry:
        entry = self.repo.get_entry(session, entry_id)
        if not entry or entry.run_list_id != run_list.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Entry not found",
            )
        return entry

    def _touch(self, session: Session, run_list: RunList) -> None:
        run_list.updated_at = datetime.now(timezone.utc)
        session.add(run_list)

    def _check_refs(
        self,
        session: Session,
        principal: Principal,
        track_id: uuid.UUID | None,
        race_id: uuid.UUID | None,
        cars: list[EntryCarInput] | None,
    ) -> None:
        if track_id is not None and self.track_repo.get_by_id(session, track_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Track not found",
            )
        if race_id is not None and self.race_repo.get_by_id(session, race_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Race not found",
            )
        if cars:
            car_ids = {c.car_id for c in cars}
            if len(self.car_repo.get_many(session, list(car_ids))) != len(car_ids):
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="One or more cars not found",
                )
            build_ids = {c.build_id for c in cars if c.build_id is not None}
            builds = {b.id: b for b in self.build_repo.get_many(session, list(build_ids))}
            for c in cars:
                if c.build_id is None:
                    continue
                build = builds.get(c.build_id)
                if build is None:
                    raise HTTPException(
                        status_code=status.HTTP_404_NOT_FOUND,
                        detail="Build not found",
                    )
                enforce(principal, "view", build_ref(build))
                if build.car_id != c.car_id:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail="Build is for a different car",
                    )

    def _entry_cars(self, entry_id: uuid.UUID, cars: list[EntryCarInput]) -> list[RunListEntryCar]:
        return [
            RunListEntryCar(entry_id=entry_id, car_id=c.car_id, build_id=c.build_id)
            for c in cars
        ]

    def _entry_reads(self, session: Session, entries: list[RunListEntry]) -> list[RunListEntryRead]:
        cars = self.repo.list_entry_cars(session, [e.id for e in entries])
        by_entry: dict[uuid.UUID, list[EntryCarRead]] = {}
        for c in cars:
            by_entry.setdefault(c.entry_id, []).append(EntryCarRead.model_validate(c))
        return [
            RunListEntryRead(**e.model_dump(exclude={"created_at"}), cars=by_entry.get(e.id, []))
            for e in entries
        ]

    # ----- Queries -----

    def list_run_lists(
        self,
        session: Session,
        principal: Principal | None,
        mine: bool = False,
        public_only: bool = False,
        created_by_id: uuid.UUID | None = None,
    ) -> list[RunList]:
        """Private lists are only listed for their creator (and admins)."""
        if mine:
            if principal is None:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Unauthorized",
                )
            if principal.user_id is None:
                return []
            created_by_id = principal.user_id

        return self.repo.list(
            session,
            visible_to=principal.user_id if principal else None,
            include_all=bool(principal and principal.is_admin),
            created_by_id=created_by_id,
            public_only=public_only,
        )

    def _detail(self, session: Session, run_list: RunList) -> RunListDetailRead:
        entries = self.repo.list_entries(session, run_list.id)
        return RunListDetailRead(
            **run_list.model_dump(),
            entries=self._entry_reads(session, entries),
        )

    def get_run_list(
        self,
        session: Session,
        principal: Principal | None,
        run_list_id: uuid.UUID,
    ) -> RunListDetailRead:
        run_list = self._get(session, run_list_id)
        enforce(principal, "view", run_list_ref(run_list))
        return self._detail(session, run_list)

    def get_active(self, session: Session, principal: Principal) -> ActiveRunListRead:
        """The caller's own active list, or run_list=None when none is flagged."""
        if principal.user_id is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        run_list = self.repo.get_active_for(session, principal.user_id)
        if run_list is None:
            return ActiveRunListRead(run_list=None)
        return ActiveRunListRead(run_list=self._detail(session, run_list))

    # ----- Run list mutations -----

    def create_run_list(
        self,
        session: Session,
        principal: Principal,
        payload: RunListCreate,
    ) -> RunList:
        enforce(principal, "create")
        run_list = self.repo.add(
            session,
            RunList(
                name=payload.name,
                description=payload.description,
                is_public=payload.is_public,
                created_by_id=principal.user_id,
            ),
        )
        session.commit()
        session.refresh(run_list)
        return run_list

    def update_run_list(
        self,
        session: Session,
        principal: Principal,
        run_list_id: uuid.UUID,
        payload: RunListUpdate,
    ) -> RunList:
        run_list = self._get(session, run_list_id)
        enforce(principal, "edit", run_list_ref(run_list))

        data = payload.model_dump(exclude_unset=True)
        new_creator = data.pop("created_by_id", None)

        if new_creator is not None and new_creator != run_list.created_by_id:
            enforce(principal, "transfer", run_list_ref(run_list))
            user = self.user_repo.get_by_id(session, new_creator)
            if user is None or user.role not in ACTIVE_ROLES:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="New creator must be an approved user",
                )
            logger.info(
                "Run list %s transferred to %s by %s",
                mask_id(run_list.id),
                mask_id(new_creator),
                mask_id(principal.user_id),
            )
            run_list.created_by_id = new_creator

        for key, value in data.items():
            if value is None and key != "description":
                continue
            setattr(run_list, key, value)

        if data.get("is_active") is True:
            self.repo.deactivate_others(session, run_list.created_by_id, run_list.id)
        if data.get("is_live") is True:
            self.repo.clear_live_except(session, run_list.id)

        self._touch(session, run_list)
        session.commit()
        session.refresh(run_list)
        return run_list

    def delete_run_list(
        self,
        session: Session,
        principal: Principal,
        run_list_id: uuid.UUID,
    ) -> None:
        """Entries, entry cars, sessions and attendance go with it."""
        run_list = self._get(session, run_list_id)
        enforce(principal, "delete", run_list_ref(run_list))
        self.repo.delete_run_lists(session, [run_list.id])
        session.commit()

    # ----- Entries -----

    def add_entry(
        self,
        session: Session,
        principal: Principal,
        run_list_id: uuid.UUID,
        payload: RunListEntryCreate,
    ) -> RunListEntryRead:
        """Append an entry (order = current max + 1) with its cars."""
        run_list = self._get(session, run_list_id)
        enforce(principal, "edit", run_list_ref(run_list))
        self._check_refs(session, principal, payload.track_id, payload.race_id, payload.cars)

        entry = self.repo.add_entry(
            session,
            RunListEntry(
                run_list_id=run_list.id,
                order=self.repo.max_order(session, run_list.id) + 1,
                track_id=payload.track_id,
                race_id=payload.race_id,
                notes=payload.notes,
            ),
        )
        self.repo.replace_entry_cars(session, entry.id, self._entry_cars(entry.id, payload.cars))

        self._touch(session, run_list)
        session.commit()
        session.refresh(entry)
        return self._entry_reads(session, [entry])[0]

    def update_entry(
        self,
        session: Session,
        principal: Principal,
        run_list_id: uuid.UUID,
        entry_id: uuid.UUID,
        payload: RunListEntryUpdate,
    ) -> RunListEntryRead:
        run_list = self._get(session, run_list_id)
        enforce(principal, "edit", run_list_ref(run_list))
        entry = self._get_entry(session, run_list, entry_id)

        data = payload.model_dump(exclude_unset=True)
        cars = data.pop("cars", None)
        self._check_refs(session, principal, data.get("track_id"), data.get("race_id"), payload.cars)

        for key, value in data.items():
            if key == "track_id" and value is None:
                continue
            setattr(entry, key, value)
        session.add(entry)

        if cars is not None:
            self.repo.replace_entry_cars(
                session, entry.id, self._entry_cars(entry.id, payload.cars or [])
            )

        self._touch(session, run_list)
        session.commit()
        session.refresh(entry)
        return self._entry_reads(session, [entry])[0]

    def delete_entry(
        self,
        session: Session,
        principal: Principal,
        run_list_id: uuid.UUID,
        entry_id: uuid.UUID,
    ) -> None:
        """Remove an entry and renumber the rest 1..n."""
        run_list = self._get(session, run_list_id)
        enforce(principal, "edit", run_list_ref(run_list))
        entry = self._get_entry(session, run_list, entry_id)

        self.repo.delete_entry(session, entry)
        self.repo.renumber_entries(session, run_list.id)

        self._touch(session, run_list)
        session.commit()

    def reorder_entry(
        self,
        session: Session,
        principal: Principal,
        run_list_id: uuid.UUID,
        payload: RunListEntryReorder,
    ) -> RunListDetailRead:
        """
        Move one entry to position `new_order` and renumber the list 1..n.

        A position past the end moves the entry last. All orders are
        rewritten in one commit.
        """
        run_list = self._get(session, run_list_id)
        enforce(principal, "edit", run_list_ref(run_list))

        entries = list(self.repo.list_entries(session, run_list.id))
        moving = next((e for e in entries if e.id == payload.entry_id), None)
        if moving is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Entry not found",
            )
        entries.remove(moving)
        entries.insert(min(payload.new_order, len(entries) + 1) - 1, moving)

        self.repo.reorder_entries(session, entries)
        self._touch(session, run_list)
        session.commit()
        session.refresh(run_list)
        return self._detail(session, run_list)
