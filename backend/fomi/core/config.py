from pydantic_settings import BaseSettings
from typing import List
import logging
import os

logger = logging.getLogger("fomi")


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Fomi"
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = False
    TESTING: bool = False

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite+aiosqlite:///./fomi.db"
    )

    # JWT session tokens
    JWT_SECRET: str = os.getenv("JWT_SECRET", "your-secret-key-change-in-production")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24 * 7

    # Magic link sign-in
    MAGIC_LINK_EXPIRATION_MINUTES: int = 15
    APP_BASE_URL: str = os.getenv("APP_BASE_URL", "http://localhost:3000")

    # Outbound email (Resend)
    RESEND_API_KEY: str = os.getenv("RESEND_API_KEY", "")
    RESEND_API_URL: str = "https://api.resend.com/emails"
    MAIL_FROM: str = "Fomi <no-reply@fomi.app>"

    # Editor session
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000")
    AUTOSAVE_DEBOUNCE_SECONDS: float = 30.0

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    class Config:
        env_file = ".env"


settings = Settings()
