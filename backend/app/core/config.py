from pathlib import Path

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


# config.py lives in backend/app/core/, the .env file is expected in backend/
_CONFIG_DIR = Path(__file__).parent.parent.parent
_ENV_FILE = _CONFIG_DIR / ".env"

_MIGRATIONS_DIR = Path(__file__).parent.parent / "db" / "migrations"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 5000
    log_level: str = "INFO"
    log_dir: str = ".data/logs"

    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "dashboard"
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_pool_size: int = 10

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24
    bcrypt_rounds: int = 10

    # Comma separated, only used outside dev
    cors_origins: str = "http://localhost:3000"

    run_migrations_on_startup: bool = True
    migrations_dir: str = str(_MIGRATIONS_DIR)

    # Notification cron
    enable_scheduler: bool = True
    notification_interval_seconds: int = 86400
    notification_lookahead_days: int = 30

    @property
    def async_database_url(self) -> str:
        """SQLAlchemy URL for psycopg 3 (async capable driver)."""
        return (
            f"postgresql+psycopg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()


class APIErrorResponse(BaseModel):
    detail: str
    code: str
