import logging
import os
import sys
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseModel):
    log_level: str = "INFO"
    log_file: Optional[str] = None
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    host: str = "0.0.0.0"
    port: int = 8000
    datasource_provider: str = "postgresql"
    database_url_env: str = "DATABASE_URL"


_settings: Optional[Settings] = None


def _load_settings() -> Settings:
    """Build settings from the environment (and .env)"""
    values = {}

    if os.getenv("LOG_LEVEL"):
        values["log_level"] = os.getenv("LOG_LEVEL")
    if os.getenv("LOG_FILE"):
        values["log_file"] = os.getenv("LOG_FILE")
    if os.getenv("CORS_ORIGINS"):
        values["cors_origins"] = [o.strip() for o in os.getenv("CORS_ORIGINS").split(",") if o.strip()]
    if os.getenv("HOST"):
        values["host"] = os.getenv("HOST")
    if os.getenv("PORT"):
        values["port"] = os.getenv("PORT")
    if os.getenv("PRISMA_PROVIDER"):
        values["datasource_provider"] = os.getenv("PRISMA_PROVIDER")
    if os.getenv("PRISMA_DATABASE_URL_ENV"):
        values["database_url_env"] = os.getenv("PRISMA_DATABASE_URL_ENV")

    return Settings(**values)


def get_settings() -> Settings:
    """Return the current settings, loading them on first use"""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings


def reset_settings():
    """Forget cached settings so the next call re-reads the environment"""
    global _settings
    _settings = None


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure console (and optional file) logging for the converter.

    Args:
        level: Logging level name, defaults to LOG_LEVEL
        log_file: Optional path for a file handler, defaults to LOG_FILE
    """
    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    log_file = log_file or settings.log_file

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
