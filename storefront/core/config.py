from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DB_URL: str

    SUPABASE_URL: str
    SUPABASE_ANON_KEY: str

    ENVIRONMENT: Literal["development", "production", "test"] = Field(
        "development",
        validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"),
    )
    APP_VERSION: str = "1.0.0"

    # webhook receiving production error entries
    LOG_SINK_URL: Optional[str] = None
    # accepted so a configured DSN is reported at startup; no client is wired
    ERROR_TRACKING_DSN: Optional[str] = None

    UPSTREAM_TIMEOUT_SECONDS: float = 10.0

    RATE_LIMIT_WINDOW_MS: int = 15 * 60 * 1000
    RATE_LIMIT_READ_MAX: int = 100
    RATE_LIMIT_WRITE_MAX: int = 20
    RATE_LIMIT_DELETE_MAX: int = 10

    class Config:
        env_file = ".env"
        populate_by_name = True

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


settings = Settings()
