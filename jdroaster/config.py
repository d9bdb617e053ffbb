"""
JD Roaster Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_CATALOG_PATH = str(Path(__file__).resolve().parent / "data" / "rule_catalog.json")


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Versioning ---
    VERSION: str = "1.0.0"
    API_VERSION: str = "1"

    # --- Rule Catalog ---
    CATALOG_PATH: str = os.getenv("JDROASTER_CATALOG_PATH", _DEFAULT_CATALOG_PATH)

    # --- Request limits ---
    MIN_TEXT_LENGTH: int = int(os.getenv("JDROASTER_MIN_TEXT_LENGTH", "40"))
    MAX_TEXT_LENGTH: int = int(os.getenv("JDROASTER_MAX_TEXT_LENGTH", "50000"))
    MAX_BODY_BYTES: int = int(os.getenv("JDROASTER_MAX_BODY_BYTES", "1048576"))

    # --- Server ---
    HOST: str = os.getenv("JDROASTER_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("JDROASTER_PORT", "8000"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("JDROASTER_CORS_ORIGINS", "*")


settings = Settings()
