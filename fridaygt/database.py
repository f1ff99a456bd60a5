# fridaygt/database.py
from sqlmodel import SQLModel, create_engine, Session

from fridaygt.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Postgres engine
#
# The hosted database sits behind a session-mode pooler with a
# small client cap, so each process holds a single connection
# (pool_size=1, no overflow) and pings it before use. SSL is
# forced unless the URL already sets sslmode.
#
# Anything else (sqlite in tests) gets a plain engine.
# ---------------------------------------------------------

# Schema owned by the auth provider (identities, accounts, sessions).
AUTH_SCHEMA = "next_auth"

db_url = settings.DATABASE_URL

if db_url.startswith("postgres"):
    # Append sslmode=require if it is not already present
    if "sslmode=" not in db_url:
        if "?" in db_url:
            db_url = db_url + "&sslmode=require"
        else:
            db_url = db_url + "?sslmode=require"

    engine = create_engine(
        db_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )
else:
    engine = create_engine(db_url, echo=False)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup. The auth schema itself
    is provisioned by the auth provider's migrations.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
