"""Configuration module for the QuizHub backend.

This module provides centralized configuration management, including directory
paths, API server settings, database location and authentication settings.
All configuration values can be overridden via environment variables.
"""

import os
import re
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from quizhub.core.exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.parent.resolve()

# Data directory name; override DATA_DIR when the package is not installed
# from a source checkout
DATA_DIR_NAME = "data"
DATA_DIR = Path(os.getenv("DATA_DIR", ROOT_DIR / DATA_DIR_NAME)).resolve()

# --- Runtime Configuration ---

APP_ENV: str = os.getenv("APP_ENV", "development")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "3001"))
API_PREFIX: str = "/api/v1"

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Database Configuration ---

DATABASE_URL: str = os.getenv(
    "DATABASE_URL", f"sqlite:///{DATA_DIR}/quizhub.db"
)

# --- Authentication Configuration ---

# Access and refresh tokens must be signed with different secrets. Both are
# required; the application refuses to start without them.
JWT_SECRET: Optional[str] = os.getenv("JWT_SECRET")
JWT_REFRESH_SECRET: Optional[str] = os.getenv("JWT_REFRESH_SECRET")
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_IN: str = os.getenv("JWT_EXPIRES_IN", "15m")
JWT_REFRESH_EXPIRES_IN: str = os.getenv("JWT_REFRESH_EXPIRES_IN", "7d")

# Bcrypt cost factor for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Failed login/registration attempts allowed per client address; successful
# requests are not counted
AUTH_RATE_LIMIT: str = os.getenv("AUTH_RATE_LIMIT", "5 per 15 minutes")


_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


def parse_duration(value: str) -> timedelta:
    """Parse a short duration string such as ``15m`` or ``7d``.

    Args:
        value: Number followed by an optional unit (s, m, h, d). A bare
            number is read as seconds.

    Returns:
        The duration as a timedelta.

    Raises:
        ConfigurationError: If the value cannot be parsed.
    """
    match = _DURATION_PATTERN.match(value or "")
    if not match:
        raise ConfigurationError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})


def validate_runtime_config() -> None:
    """Fail fast on configuration the server cannot run with."""
    if not JWT_SECRET or not JWT_REFRESH_SECRET:
        raise ConfigurationError(
            "JWT_SECRET and JWT_REFRESH_SECRET must both be set."
        )
    parse_duration(JWT_EXPIRES_IN)
    parse_duration(JWT_REFRESH_EXPIRES_IN)
