"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables (.env file).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Project Info
    PROJECT_NAME: str = "Health Metrics Ingestion & Daily Aggregation"
    VERSION: str = "0.1.0"

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = ""
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_DBNAME: str = "postgres"

    # Connection pool
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30  # seconds to wait for a connection
    DATABASE_STATEMENT_TIMEOUT_MS: int = 30000

    # Civil timezone used for day boundaries and time-of-day patterns
    HEALTH_TIMEZONE: str = "America/Chicago"
    # Zone whose midnight the iOS app stamps on pre-aggregated daily totals
    HEALTH_DAILY_TOTAL_TIMEZONE: str = "UTC"

    # Deadlock retry (batch sync)
    DEADLOCK_MAX_ATTEMPTS: int = 3
    DEADLOCK_BACKOFF_BASE_MS: int = 50

    RECENT_DATA_HOURS: int = 48
    SUMMARY_MAX_DAYS: int = 90

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def DATABASE_URL(self) -> str:
        return (f"postgresql+psycopg2://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}@{self.DATABASE_HOST}"
                f":{self.DATABASE_PORT}"
                f"/{self.DATABASE_DBNAME}")


# Global settings instance
settings = Settings()
