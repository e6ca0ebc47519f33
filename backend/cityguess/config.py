from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Security
    JWT_SECRET: str
    ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_HOURS: int = 8
    COOKIE_SECURE: bool = False

    # Database
    DATABASE_URL: str
    DB_ISOLATION_LEVEL: str = "SERIALIZABLE"  # ignored for SQLite

    # Google Maps
    GOOGLE_KEY: str = ""

    # City data, defaults to the bundled resources/cities.json
    CITY_FILE: Optional[str] = None

    # Game Configuration
    MAX_POINTS: int = 5000
    SCORE_DECAY_KM: float = 2000.0
    LEADERBOARD_SIZE: int = 100
    LEADERBOARD_TIMEOUT_SECONDS: float = 5.0

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
