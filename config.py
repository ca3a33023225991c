import os
import logging
from pathlib import Path
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_SECRET_KEY = "dev-secret-change-me"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Runtime settings for the storefront API"""

    # Database settings
    MONGO_URL: str = os.getenv("MONGO_URL") or os.getenv("atlas_URL") or "mongodb://localhost:27017"
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "UserDB")

    # Auth settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", DEFAULT_SECRET_KEY)
    TOKEN_TTL_HOURS: int = int(os.getenv("TOKEN_TTL_HOURS", "24"))

    # Checkout: reject the whole cart when any line cannot be decremented
    STRICT_CHECKOUT: bool = _env_bool("STRICT_CHECKOUT")

    # Server settings
    PORT: int = int(os.getenv("PORT", "3000"))
    CORS_ORIGINS: List[str] = [
        origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Paths
    STATIC_DIR = BASE_DIR / "static"


def setup_logging(level: str = None):
    """Configure logging settings"""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    logging.basicConfig(
        level=getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO),
        format=log_format,
        handlers=[logging.StreamHandler()],
    )
