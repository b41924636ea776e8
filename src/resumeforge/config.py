from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "resumeforge"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 3000
    log_level: str = "INFO"

    secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expires_min: int = 15
    jwt_refresh_expires_min: int = 7 * 24 * 60

    database_url: str = "sqlite:///./data/resumeforge.db"
    data_dir: Path = Path("./data")

    upload_dir: Path = Path("./data/uploads")
    site_url: str = "http://localhost:3000"
    max_file_size: int = 5 * 1024 * 1024
    allowed_file_types: str = "image/jpeg,image/png,image/gif,application/pdf,text/plain"

    cors_origins: str = "http://localhost:5173"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def allowed_file_type_list(self) -> list[str]:
        return [item.strip() for item in self.allowed_file_types.split(",") if item.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
