import os
from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# .env lives next to this file, not in whatever directory uvicorn was started from
BASE_DIR = Path(__file__).resolve().parent
ENV_PATH = Path(os.getenv("PORTFOLIO_ENV_FILE", BASE_DIR / ".env"))

DEFAULT_JWT_SECRET = "fallback-secret-for-development"


class Settings(BaseSettings):
    # --- Admin account ---
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "password"  # development only
    # A pbkdf2_sha256 hash wins over the plain password when both are set
    ADMIN_PASSWORD_HASH: Optional[str] = None

    # --- Tokens ---
    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # --- Content storage ---
    CONTENT_BACKEND: Literal["file", "database"] = "file"
    CONTENT_DIR: Path = Path("content/blog")
    POST_EXTENSION: str = ".mdx"
    RESUME_FILE: Path = Path("content/resume.json")
    DATABASE_URL: str = "sqlite:///./portfolio.db"
    DATABASE_ECHO: bool = False

    DEFAULT_IMAGE: str = "/images/blog-placeholder.jpg"

    # --- Runtime ---
    CORS_ORIGINS: List[str] = ["*"]
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def weak_secret(self) -> bool:
        return self.JWT_SECRET == DEFAULT_JWT_SECRET or len(self.JWT_SECRET) < 32


@lru_cache
def get_settings() -> Settings:
    return Settings()
