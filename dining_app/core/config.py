"""Configuration settings for the dining application."""
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings."""
    APP_NAME: str = "Campus Dining"
    DEBUG: bool = True
    # "production" turns on cron-secret checks for GET maintenance endpoints
    ENVIRONMENT: str = "development"
    # Use file-backed SQLite by default so the server processes share the same DB.
    DATABASE_URL: str = "sqlite:///./dining.db"
    LOG_LEVEL: str = "INFO"

    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"

    DINING_API_BASE: str = "https://web.housing.illinois.edu/DiningMenus/api/DiningMenu"
    DINING_API_TIMEOUT: float = 20.0

    CRON_SECRET: Optional[str] = None
    SCRAPE_SCHEDULE_ENABLED: bool = False
    SCRAPE_INTERVAL_HOURS: int = 24

    # Look-back window for "recently eaten" items used to de-prioritize repeats
    RECENT_HISTORY_DAYS: int = 14

    # Allow extra environment variables (so .env can contain unrelated vars)
    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
