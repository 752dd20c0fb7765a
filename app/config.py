"""
Application configuration
"""
import logging
import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Settings from environment variables"""

    # Storage
    DATABASE_PATH: str = os.getenv("DATABASE_PATH", "crease.db")

    # Match defaults
    DEFAULT_TOTAL_OVERS: int = int(os.getenv("DEFAULT_TOTAL_OVERS", "20"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Rebuild each innings from its ball log after every change and log mismatches
    VERIFY_REPLAY: bool = os.getenv("VERIFY_REPLAY", "0") == "1"

    # Extra CORS origins (comma-separated)
    CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]


settings = Settings()


def configure_logging(level: str = None) -> None:
    logging.basicConfig(
        level=level or settings.LOG_LEVEL,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
