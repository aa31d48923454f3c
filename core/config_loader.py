"""
Application settings (Pydantic Settings).
"""
from pathlib import Path
from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./tutoring.db"
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    BACKEND_CORS_ORIGINS: List[str] = []
    LOG_LEVEL: str = "INFO"

    # lock wait for booking transactions (applied on PostgreSQL only)
    LOCK_TIMEOUT_MS: int = 5000
    SLOT_GRANULARITY_MINUTES: int = 30

    FRONTEND_URL: str = "http://localhost:5173"
    EMAIL_FROM: str = "noreply@tutoring.local"
    CALENDAR_NAME: str = "Tutoring Session"

    model_config = SettingsConfigDict(env_file=_env_path, extra="ignore")

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @field_validator("FRONTEND_URL", mode="after")
    @classmethod
    def strip_slash(cls, v: str) -> str:
        return v.rstrip("/")


settings = Settings()
