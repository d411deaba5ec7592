from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Core API Settings
    api_host: str = Field("0.0.0.0", alias="API_HOST")
    api_port: int = Field(8000, alias="API_PORT")
    environment: str = Field("development", alias="ENVIRONMENT")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Storage
    database_url: str = Field("sqlite:///./trackplan.db", alias="DATABASE_URL")
    db_echo: bool = Field(False, alias="DB_ECHO")

    # Catalog behaviour
    default_author: str = Field("system", alias="DEFAULT_AUTHOR")  # used when a request carries no X-Author
    auto_property_description: str = Field(
        "Auto-created from usage in events", alias="AUTO_PROPERTY_DESCRIPTION"
    )
    # Narrow product scans with a SQL LIKE before decoding payloads
    scan_prefilter_enabled: bool = Field(True, alias="SCAN_PREFILTER_ENABLED")
    # Create missing tables at API startup (dev convenience; alembic upgrade head in production)
    auto_create_schema: bool = Field(True, alias="AUTO_CREATE_SCHEMA")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "allow"  # Allow extra environment variables


@lru_cache
def get_settings() -> Settings:
    return Settings()


def reset_settings():
    """Clear cached settings (useful in tests when env vars change)."""
    get_settings.cache_clear()
