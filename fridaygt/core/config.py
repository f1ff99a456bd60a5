# fridaygt/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres connection string)
      - AUTH_SECRET (HS256 key used to sign session tokens)

    Optional:
      - DEFAULT_ADMIN_EMAIL (existing user with this email is promoted to ADMIN)
      - CRON_SECRET (Bearer secret for the scheduled cleanup endpoints)
      - REQUIRE_GAMERTAG_FOR_WRITES (approved users must set a gamertag
        before creating or editing content; default on)
    """

    PROJECT_NAME: str = "FridayGT API"
    API_PREFIX: str = "/api"

    # development | production
    ENVIRONMENT: str = "production"

    DATABASE_URL: str

    # Session tokens (backend-side)
    AUTH_SECRET: str
    AUTH_JWT_ALG: str = "HS256"
    SESSION_COOKIE_NAME: str = "fgt-session-token"
    SESSION_MAX_AGE_DAYS: int = 30
    MAGIC_LINK_TTL_MINUTES: int = 15

    # Public base URL used in magic links and notification emails
    APP_URL: str = "http://localhost:3000"

    DEFAULT_ADMIN_EMAIL: str | None = None

    REQUIRE_GAMERTAG_FOR_WRITES: bool = True

    # Scheduled jobs authenticate with "Authorization: Bearer <CRON_SECRET>"
    CRON_SECRET: str | None = None

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
