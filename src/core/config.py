# src/core/config.py
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Database
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "userauth"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "password"
    DB_SSL_MODE: str = "disable"
    # Full SQLAlchemy URL, takes precedence over the DB_* parts (e.g. sqlite for local runs)
    DATABASE_URL_OVERRIDE: Optional[str] = None

    # Google
    GOOGLE_CLIENT_ID: str
    GOOGLE_ISSUER: str = "https://accounts.google.com"

    # Sessions
    SESSION_SECRET_KEY: str
    SESSION_COOKIE_NAME: str = "user-session"
    SESSION_TTL_DAYS: int = Field(30, gt=0)
    SESSION_COOKIE_SECURE: bool = False
    # Use the ID token's own `exp` as the initial session expiry. Off unless explicitly enabled.
    SESSION_USE_TOKEN_EXPIRY: bool = False

    # Server
    FRONTEND_URLS: list[str] = ["http://localhost:4200"]
    LOG_LEVEL: str = "INFO"
    BACKGROUND_WORKERS: int = 4

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            f"?sslmode={self.DB_SSL_MODE}"
        )

    @property
    def SESSION_TTL_SECONDS(self) -> int:
        return self.SESSION_TTL_DAYS * 24 * 3600

# Single settings instance; components receive the values they need at construction
settings = Settings()
