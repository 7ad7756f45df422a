"""Application settings loaded from the environment."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Musefolio API"
    app_env: str = "local"
    log_level: str = "INFO"
    sql_echo: bool = False

    database_url: str = "sqlite+aiosqlite:///./musefolio.db"

    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    allow_insecure_http_cookies: bool = False

    cors_origins: list[str] = ["http://localhost:5173"]

    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_bucket: str = "musefolio"
    minio_secure: bool = False

    upload_max_bytes: int = 32 * 1024 * 1024
    media_url_prefix: str = "/media"


settings = Settings()
