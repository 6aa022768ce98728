# snfoods/core/config.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_KEY (anon key)
      - DATABASE_URL (Supabase Postgres connection string)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Optional:
      - SUPABASE_SERVICE_ROLE_KEY (admin client, needed for the
        generate_order_number / generate_account_number RPCs)
      - SENDGRID_API_KEY (order approval emails)
    """

    PROJECT_NAME: str = "SN Foods Orders API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Supabase / DB config
    SUPABASE_URL: str
    SUPABASE_KEY: str
    DATABASE_URL: str

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Service role key bypasses RLS (backend only)
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    # Transactional email (SendGrid v3)
    SENDGRID_API_KEY: str | None = None
    SENDGRID_API_URL: str = "https://api.sendgrid.com/v3/mail/send"
    EMAIL_FROM_ADDRESS: str = "orders@snfoods.com.au"
    EMAIL_FROM_NAME: str = "SN Foods"

    # Upper bound for calls to remote collaborators
    REMOTE_TIMEOUT_SECONDS: float = 10.0
    DB_STATEMENT_TIMEOUT_MS: int = 15000

    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
