# fridaygt/routers/cars.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from fridaygt.core.auth import require_admin
from fridaygt.core.rate_limit import rate_limit
from fridaygt.database import get_session
from fridaygt.repositories.catalog_repo import CarRepository
from fridaygt.schemas.catalog import CarCreate, CarListRead, CarRead
from fridaygt.services.catalog_service import CarService

router = APIRouter(prefix="/cars", tags=["Cars"])

repo = CarRepository()
service = CarService(repo)


@router.get(
    "",
    response_model=CarListRead,
    dependencies=[Depends(rate_limit("query"))],
)
def list_cars(
    session: Session = Depends(get_session),
    search: str | None = None,
    manufacturer: str | None = None,
    category: str | None = None,
    drive_type: str | None = None,
):
    """
    Filter cars by name/manufacturer search, manufacturer, category and
    drive type. `all` means no filter. Manufacturers are always the full list.
    """
    return service.list_cars(
        session,
        search=search,
        manufacturer=manufacturer,
        category=category,
        drive_type=drive_type,
    )


@router.get("/{slug}", response_model=CarRead)
def get_car(slug: str, session: Session = Depends(get_session)):
    return service.get_by_slug(session, slug)


@router.post(
    "",
    response_model=CarRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin), Depends(rate_limit("mutation", require_admin))],
)
def create_car(
    payload: CarCreate,
    session: Session = Depends(get_session),
):
    """Create a car (admin only). Slug defaults to manufacturer + name."""
    return service.create_car(session, payload)
