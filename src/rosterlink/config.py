"""Configuration module for the roster linking service.

This module provides centralized configuration management, including directory
paths, API server settings, identity token verification and roster limits.
All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.parent.resolve()

# Data directory (holds the default SQLite database)
DATA_DIR_NAME = "data"
DATA_DIR = Path(os.getenv("DATA_DIR", str(ROOT_DIR / DATA_DIR_NAME)))

# --- Store Configuration ---

DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR}/rosterlink.db")

# Disjunctive "field in [...]" lookups accept at most this many values.
# Larger id sets must be sharded by the caller.
STORE_IN_QUERY_LIMIT: int = int(os.getenv("STORE_IN_QUERY_LIMIT", "10"))

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:8081,http://127.0.0.1:8081,http://localhost:19006",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Identity Provider Configuration ---

# Shared secret used to verify identity tokens issued by the identity provider.
IDENTITY_TOKEN_SECRET: str = os.getenv(
    "IDENTITY_TOKEN_SECRET", "your-secret-key-change-in-production"
)
IDENTITY_TOKEN_ALGORITHM: str = os.getenv("IDENTITY_TOKEN_ALGORITHM", "HS256")
IDENTITY_TOKEN_AUDIENCE: Optional[str] = os.getenv("IDENTITY_TOKEN_AUDIENCE") or None

# Only link children/classes to accounts whose email the provider verified
REQUIRE_VERIFIED_EMAIL: bool = (
    os.getenv("REQUIRE_VERIFIED_EMAIL", "true").lower() == "true"
)

# --- Roster Configuration ---

MAX_GUARDIANS_PER_ENTRY: int = int(os.getenv("MAX_GUARDIANS_PER_ENTRY", "2"))

ACCOUNT_ROLES: List[str] = ["teacher", "guardian"]

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
