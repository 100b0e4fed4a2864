# config.py — environment-driven settings, read once at startup
import json
import logging
from typing import List, Optional

from pydantic_settings import BaseSettings

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./books.db"


class Settings(BaseSettings):
    database_url: str = DEFAULT_DATABASE_URL
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"

    # JSON list or comma separated
    cors_origins: str = "http://localhost:3000,http://localhost:3001"

    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max_requests: int = 10000

    # HTML views talk to the API in-process unless this points elsewhere
    api_base_url: Optional[str] = None

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def allowed_origins(self) -> List[str]:
        value = self.cors_origins.strip()
        if value.startswith("["):
            return json.loads(value)
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
