# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./inventory.db"
    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    # Daily low-stock sweep (local wall-clock time)
    RECONCILIATION_ENABLED: bool = True
    RECONCILIATION_HOUR: int = 2
    RECONCILIATION_MINUTE: int = 0

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
