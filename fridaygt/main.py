# fridaygt/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from fridaygt.core.config import get_settings
from fridaygt.core.errors import register_exception_handlers
from fridaygt.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from fridaygt.models import auth as _auth_models  # noqa: F401
from fridaygt.models import user as _user_models  # noqa: F401
from fridaygt.models import catalog as _catalog_models  # noqa: F401
from fridaygt.models import build as _build_models  # noqa: F401
from fridaygt.models import lap_time as _lap_time_models  # noqa: F401
from fridaygt.models import race as _race_models  # noqa: F401
from fridaygt.models import run_list as _run_list_models  # noqa: F401
from fridaygt.models import run_session as _run_session_models  # noqa: F401

# Routers
from fridaygt.routers.auth import router as auth_router
from fridaygt.routers.users import router as users_router
from fridaygt.routers.admin_users import router as admin_users_router
from fridaygt.routers.tracks import router as tracks_router
from fridaygt.routers.cars import router as cars_router
from fridaygt.routers.parts import router as parts_router
from fridaygt.routers.builds import router as builds_router
from fridaygt.routers.lap_times import router as lap_times_router
from fridaygt.routers.races import router as races_router
from fridaygt.routers.run_lists import router as run_lists_router
from fridaygt.routers.sessions import router as sessions_router
from fridaygt.routers.cron import router as cron_router

settings = get_settings()

logging.basicConfig(level=logging.DEBUG if settings.is_development else logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create application tables.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception:
        logger.exception("Startup: DB connection FAILED")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for router in (
    auth_router,
    users_router,
    admin_users_router,
    tracks_router,
    cars_router,
    parts_router,
    builds_router,
    lap_times_router,
    races_router,
    run_lists_router,
    sessions_router,
    cron_router,
):
    app.include_router(router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "fridaygt-api"}
