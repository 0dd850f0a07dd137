"""Application configuration loaded via pydantic settings."""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly-typed application settings with environment overrides."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Application
    APP_NAME: str = "TaskTrack User Service"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False  # tracebacks instead of the generic 500 body

    # Database
    DATABASE_URL: str = "sqlite:///./data/tasktrack.db"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_LEVELS: str = "TRACE,ERROR,WARNING,INFO"
    LOG_FILE_PATH: str = "./logs/tasktrack.log"

    # Seeding (development only)
    SEED_DEFAULT_ADMIN: bool = False
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@tasktrack.local"
    DEFAULT_ADMIN_FULL_NAME: str = "Default Admin"


settings = Settings()
