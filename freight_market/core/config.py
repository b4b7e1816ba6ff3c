from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    PROJECT_NAME: str = "API freight market"
    API_V1_PREFIX: str = "/api/v1"
    DATABASE_URL: str = "sqlite:////data/freight.db"
    SQL_ECHO: bool = False

    # Logs (ver freight_market/core/logging.py)
    LOG_DIR: str = "/logs"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_TO_FILE: bool = True

    CORS_ORIGINS: List[str] = ["http://localhost:3000"]


settings = Settings()
