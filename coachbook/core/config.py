# coachbook/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
import urllib.parse

class Settings(BaseSettings):
    # Read env from .env; ignore unknown keys so extra lines don't crash startup
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Postgres ---
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "coachbook"
    POSTGRES_USER: str = "coachbook"
    POSTGRES_PASSWORD: str = ""

    # Full URL override (tests point this at sqlite+aiosqlite)
    DATABASE_URL: str | None = None

    # --- Identity ---
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    # --- Scheduling ---
    TIMEZONE: str = "UTC"  # calendar used for booking days and slot times
    SLOT_INTERVAL_MINUTES: int = 60
    UPCOMING_AVAILABILITY_LIMIT: int = 5

    # --- Pagination ---
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # --- Monitoring & Logging ---
    APP_ENV: str = "production"
    LOG_LEVEL: str = "INFO"
    LOG_REQUESTS: bool = False
    LOG_RESPONSES: bool = False
    MAX_LOG_LENGTH: int = 200
    SLOW_REQUEST_THRESHOLD: float = 2.0

    ALLOWED_CORS_ORIGINS: str = "*"  # comma-separated list, e.g. "http://localhost:3000,https://your.app"

    # Sync URI (Alembic)
    @property
    def sync_db_uri(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL.replace("+asyncpg", "").replace("+aiosqlite", "")
        pwd = urllib.parse.quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql://{self.POSTGRES_USER}:{pwd}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Async URI (SQLAlchemy engine)
    @property
    def async_db_uri(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        pwd = urllib.parse.quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{pwd}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() in ("production", "prod")

# Singleton
settings = Settings()
