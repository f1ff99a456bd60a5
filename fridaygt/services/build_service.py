# fridaygt/services/build_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from fridaygt.core.log_utils import mask_id
from fridaygt.core.permissions import ACTIVE_ROLES, Principal, ResourceRef, enforce
from fridaygt.models.build import CarBuild, CarBuildSetting, CarBuildUpgrade
from fridaygt.repositories.build_repo import BuildRepository
from fridaygt.repositories.catalog_repo import (
    CarRepository,
    PartRepository,
    TuningRepository,
)
from fridaygt.repositories.lap_time_repo import LapTimeRepository
from fridaygt.repositories.user_repo import UserRepository
from fridaygt.schemas.build import (
    BuildCreate,
    BuildDetailRead,
    BuildUpdate,
    QuickBuildCreate,
    SettingInput,
    SettingRead,
    UpgradeInput,
    UpgradeRead,
)
from fridaygt.services.stats import compute_lap_statistics

logger = logging.getLogger(__name__)

NAME_MAX = 100
DESCRIPTION_MAX = 500
COPY_SUFFIX = " (Copy)"

GEAR_FIELDS = (
    "final_drive",
    "gear_1",
    "gear_2",
    "gear_3",
    "gear_4",
    "gear_5",
    "gear_6",
)


def build_ref(build: CarBuild) -> ResourceRef:
    return ResourceRef(owner_id=build.user_id, is_public=build.is_public)


class BuildService:
    """
    Business logic for car builds.

    Responsibilities:
      - visibility (public / own / admin) and owner-or-admin writes
      - snapshot part & setting names when a build is saved
      - replace-on-update of upgrades/settings in one transaction
      - clone and delete (delete detaches lap times, race cars and
        run-list entry cars instead of removing them)
    """

    def __init__(
        self,
        repo: BuildRepository,
        car_repo: CarRepository,
        part_repo: PartRepository,
        tuning_repo: TuningRepository,
        lap_repo: LapTimeRepository,
        user_repo: UserRepository,
    ):
        self.repo = repo
        self.car_repo = car_repo
        self.part_repo = part_repo
        self.tuning_repo = tuning_repo
        self.lap_repo = lap_repo
        self.user_repo = user_repo

    # ----- Helpers -----

    def _get(self, session: Session, build_id: uuid.UUID) -> CarBuild:
        build = self.repo.get_by_id(session, build_id)
        if not build:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Build not found",
            )
        return build

    def _ensure_car(self, session: Session, car_id: uuid.UUID) -> None:
        if self.car_repo.get_by_id(session, car_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Car not found",
            )

    def _resolve_upgrades(
        self,
        session: Session,
        build_id: uuid.UUID,
        items: list[UpgradeInput],
    ) -> list[CarBuildUpgrade]:
        """
        Turn inputs into rows with category/part names copied from the
        parts tables. Unknown part ids and incomplete free-text rows are
        skipped.
        """
        parts = {
            p.id: p
            for p in self.part_repo.get_many(
                session, [i.part_id for i in items if i.part_id is not None]
            )
        }
        categories = self.part_repo.get_categories(
            session, list({p.category_id for p in parts.values()})
        )

        rows: list[CarBuildUpgrade] = []
        for item in items:
            if item.part_id is not None:
                part = parts.get(item.part_id)
                if part is None:
                    continue
                category = categories.get(part.category_id)
                rows.append(
                    CarBuildUpgrade(
                        build_id=build_id,
                        part_id=part.id,
                        category=category.name if category else "",
                        part=part.name,
                        value=item.value,
                    )
                )
            elif item.category and item.part:
                rows.append(
                    CarBuildUpgrade(
                        build_id=build_id,
                        category=item.category.strip(),
                        part=item.part.strip(),
                        value=item.value,
                    )
                )
        return rows

    def _resolve_settings(
        self,
        session: Session,
        build_id: uuid.UUID,
        items: list[SettingInput],
    ) -> list[CarBuildSetting]:
        """Same as _resolve_upgrades for tuning values; a value is required."""
        settings = {
            s.id: s
            for s in self.tuning_repo.get_many(
                session, [i.setting_id for i in items if i.setting_id is not None]
            )
        }
        sections = self.tuning_repo.get_sections(
            session, list({s.section_id for s in settings.values()})
        )

        rows: list[CarBuildSetting] = []
        for item in items:
            if item.value is None:
                continue
            if item.setting_id is not None:
                setting = settings.get(item.setting_id)
                if setting is None:
                    continue
                section = sections.get(setting.section_id)
                rows.append(
                    CarBuildSetting(
                        build_id=build_id,
                        setting_id=setting.id,
                        category=section.name if section else "",
                        setting=setting.name,
                        value=item.value,
                    )
                )
            elif item.category and item.setting:
                rows.append(
                    CarBuildSetting(
                        build_id=build_id,
                        category=item.category.strip(),
                        setting=item.setting.strip(),
                        value=item.value,
                    )
                )
        return rows

    def _detail(self, session: Session, build: CarBuild) -> BuildDetailRead:
        upgrades = self.repo.list_upgrades(session, build.id)
        settings = self.repo.list_settings(session, build.id)
        laps = self.lap_repo.list_for_build(session, build.id)
        return BuildDetailRead(
            **build.model_dump(),
            upgrades=[UpgradeRead.model_validate(u) for u in upgrades],
            settings=[SettingRead.model_validate(s) for s in settings],
            statistics=compute_lap_statistics(laps),
        )

    # ----- Queries -----

    def list_builds(
        self,
        session: Session,
        principal: Principal | None,
        car_id: uuid.UUID | None = None,
        user_id: uuid.UUID | None = None,
        public_only: bool = False,
        mine: bool = False,
    ) -> list[CarBuild]:
        """
        Anonymous: public builds. Signed in: public + own. Admin: all.
        """
        if mine:
            if principal is None:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Unauthorized",
                )
            if principal.user_id is None:
                return []
            user_id = principal.user_id

        return self.repo.list(
            session,
            visible_to=principal.user_id if principal else None,
            include_all=bool(principal and principal.is_admin),
            car_id=car_id,
            user_id=user_id,
            public_only=public_only,
        )

    def get_build(
        self,
        session: Session,
        principal: Principal | None,
        build_id: uuid.UUID,
    ) -> BuildDetailRead:
        build = self._get(session, build_id)
        enforce(principal, "view", build_ref(build))
        return self._detail(session, build)

    # ----- Mutations -----

    def create_build(
        self,
        session: Session,
        principal: Principal,
        payload: BuildCreate,
    ) -> BuildDetailRead:
        """
        Create a build with its upgrades and settings in one commit.
        """
        enforce(principal, "create")
        self._ensure_car(session, payload.car_id)

        build = CarBuild(
            user_id=principal.user_id,
            car_id=payload.car_id,
            name=payload.name,
            description=payload.description,
            is_public=payload.is_public,
            **{f: getattr(payload, f) for f in GEAR_FIELDS},
        )
        build = self.repo.add(session, build)

        self.repo.replace_upgrades(
            session, build.id, self._resolve_upgrades(session, build.id, payload.upgrades)
        )
        self.repo.replace_settings(
            session, build.id, self._resolve_settings(session, build.id, payload.settings)
        )

        session.commit()
        session.refresh(build)
        return self._detail(session, build)

    def quick_create(
        self,
        session: Session,
        principal: Principal,
        payload: QuickBuildCreate,
    ) -> CarBuild:
        """Private, empty build; used when logging a lap for a new setup."""
        enforce(principal, "create")
        self._ensure_car(session, payload.car_id)

        build = self.repo.add(
            session,
            CarBuild(
                user_id=principal.user_id,
                car_id=payload.car_id,
                name=payload.name,
                description=payload.description,
                is_public=False,
            ),
        )
        session.commit()
        session.refresh(build)
        return build

    def update_build(
        self,
        session: Session,
        principal: Principal,
        build_id: uuid.UUID,
        payload: BuildUpdate,
    ) -> BuildDetailRead:
        """
        Owner/admin edit.

        - scalar fields patch
        - upgrades/settings, when present, replace the whole set
        - user_id change is an admin-only transfer to an approved user
        """
        build = self._get(session, build_id)
        enforce(principal, "edit", build_ref(build))

        data = payload.model_dump(exclude_unset=True)
        new_owner = data.pop("user_id", None)
        upgrades = data.pop("upgrades", None)
        settings = data.pop("settings", None)

        if new_owner is not None and new_owner != build.user_id:
            enforce(principal, "transfer", build_ref(build))
            owner = self.user_repo.get_by_id(session, new_owner)
            if owner is None or owner.role not in ACTIVE_ROLES:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="New owner must be an approved user",
                )
            logger.info(
                "Build %s transferred %s -> %s by %s",
                mask_id(build.id),
                mask_id(build.user_id),
                mask_id(new_owner),
                mask_id(principal.user_id),
            )
            build.user_id = new_owner

        for key, value in data.items():
            if key == "name" and value is None:
                continue
            if key == "is_public" and value is None:
                continue
            setattr(build, key, value)

        if upgrades is not None:
            self.repo.replace_upgrades(
                session,
                build.id,
                self._resolve_upgrades(session, build.id, payload.upgrades or []),
            )
        if settings is not None:
            self.repo.replace_settings(
                session,
                build.id,
                self._resolve_settings(session, build.id, payload.settings or []),
            )

        build.updated_at = datetime.now(timezone.utc)
        session.add(build)
        session.commit()
        session.refresh(build)
        return self._detail(session, build)

    def delete_build(
        self,
        session: Session,
        principal: Principal,
        build_id: uuid.UUID,
    ) -> None:
        build = self._get(session, build_id)
        enforce(principal, "delete", build_ref(build))

        self.repo.detach_references(session, [build.id])
        self.repo.delete_builds(session, [build.id])
        session.commit()

    def clone_build(
        self,
        session: Session,
        principal: Principal,
        build_id: uuid.UUID,
    ) -> BuildDetailRead:
        """
        Private copy owned by the caller.

        Name gets " (Copy)"; description notes whose build it came from.
        """
        enforce(principal, "create")
        source = self._get(session, build_id)
        enforce(principal, "view", build_ref(source))

        owner = self.user_repo.get_by_id(session, source.user_id)
        owner_label = "unknown"
        if owner is not None:
            owner_label = owner.gamertag or owner.name or owner.email
        note = f"Cloned from {owner_label}'s build"[:DESCRIPTION_MAX]
        room = max(DESCRIPTION_MAX - len(note) - 2, 0)
        if source.description and room:
            description = f"{source.description[:room]}\n\n{note}"
        else:
            description = note

        clone = CarBuild(
            user_id=principal.user_id,
            car_id=source.car_id,
            name=source.name[: NAME_MAX - len(COPY_SUFFIX)] + COPY_SUFFIX,
            description=description,
            is_public=False,
            **{f: getattr(source, f) for f in GEAR_FIELDS},
        )
        clone = self.repo.add(session, clone)

        self.repo.replace_upgrades(
            session,
            clone.id,
            [
                CarBuildUpgrade(
                    build_id=clone.id,
                    part_id=u.part_id,
                    category=u.category,
                    part=u.part,
                    value=u.value,
                )
                for u in self.repo.list_upgrades(session, source.id)
            ],
        )
        self.repo.replace_settings(
            session,
            clone.id,
            [
                CarBuildSetting(
                    build_id=clone.id,
                    setting_id=s.setting_id,
                    category=s.category,
                    setting=s.setting,
                    value=s.value,
                )
                for s in self.repo.list_settings(session, source.id)
            ],
        )

        session.commit()
        session.refresh(clone)
        return self._detail(session, clone)
