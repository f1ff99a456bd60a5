# fridaygt/routers/parts.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from fridaygt.database import get_session
from fridaygt.repositories.catalog_repo import PartRepository, TuningRepository
from fridaygt.schemas.catalog import (
    PartCategoryRead,
    PartRead,
    TuningSectionRead,
    TuningSettingRead,
)
from fridaygt.services.catalog_service import PartService

router = APIRouter(tags=["Parts & Tuning"])

service = PartService(PartRepository(), TuningRepository())


# -------- Parts --------


@router.get("/parts", response_model=list[PartRead])
def list_parts(
    session: Session = Depends(get_session),
    category_id: uuid.UUID | None = None,
    active: bool = True,
    include_inactive: bool = False,
):
    """
    Parts with their category name.

    Only active parts by default; include_inactive=true returns everything.
    """
    return service.list_parts(
        session,
        category_id=category_id,
        active=None if include_inactive else active,
    )


@router.get("/parts/categories", response_model=list[PartCategoryRead])
def list_part_categories(session: Session = Depends(get_session)):
    return service.list_part_categories(session)


# -------- Tuning --------


@router.get("/tuning-settings", response_model=list[TuningSettingRead])
def list_tuning_settings(
    session: Session = Depends(get_session),
    section_id: uuid.UUID | None = None,
):
    """Active tuning settings with their section name."""
    return service.list_tuning_settings(session, section_id=section_id)


@router.get("/tuning-settings/sections", response_model=list[TuningSectionRead])
def list_tuning_sections(session: Session = Depends(get_session)):
    return service.list_tuning_sections(session)
