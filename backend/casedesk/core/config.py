"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Application ───────────────────────────
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # ── Storage ───────────────────────────────
    DATABASE_URL: str = "sqlite:///./casedesk.db"
    STORAGE_BACKEND: str = "sql"  # sql | memory
    USERS_KEY: str = "users"
    PROFILES_KEY: str = "profiles"
    SESSIONS_KEY: str = "sessions"

    # ── Bootstrap admin ───────────────────────
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin123"  # Change in production!
    ADMIN_FULL_NAME: str = "Commanding Officer"
    DEFAULT_STAFF_PASSWORD: str = "abc123@"
    SESSION_TTL_HOURS: int = 24

    # ── Workflow policy ───────────────────────
    APPROVAL_POLICY: str = "permissive"  # permissive | restricted
    PUSH_FLAG_POLICY: str = "first"  # first | overwrite
    CAS_MAX_ATTEMPTS: int = 5

    # ── External system push ──────────────────
    EXTERNAL_PUSH_URL: str = ""
    EXTERNAL_PUSH_TIMEOUT_SECONDS: float = 30.0

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"


settings = Settings()
