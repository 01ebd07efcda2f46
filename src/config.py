"""
Campus Events — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Firebase project (Web API key is what the Identity Toolkit REST API wants)
    FIREBASE_API_KEY: str
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_STORAGE_BUCKET: str = ""      # empty → images stored as plain URIs
    FIREBASE_CREDENTIALS_PATH: str = "firebase_key.json"

    # Firestore collections
    EVENTS_COLLECTION: str = "events"
    USERS_COLLECTION: str = "users"

    # Local preferences (theme)
    DATABASE_PATH: str = "data/preferences.db"
    DEFAULT_THEME: str = "light"

    # HTTP
    REQUEST_TIMEOUT_SECONDS: float = 10

    # Entry point sign-in (optional)
    CAMPUS_EMAIL: str = ""
    CAMPUS_PASSWORD: str = ""

    @field_validator("DEFAULT_THEME", mode="before")
    @classmethod
    def parse_theme(cls, v: str) -> str:
        v = (v or "").strip().lower()
        return v if v in ("light", "dark") else "light"

    @field_validator("REQUEST_TIMEOUT_SECONDS", mode="before")
    @classmethod
    def parse_timeout(cls, v: str | float) -> float:
        return float(v)


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    api_key = os.getenv("FIREBASE_API_KEY", "")

    if not api_key or api_key.startswith("your-"):
        print("ERROR: FIREBASE_API_KEY is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        FIREBASE_API_KEY=api_key,
        FIREBASE_PROJECT_ID=os.getenv("FIREBASE_PROJECT_ID", ""),
        FIREBASE_STORAGE_BUCKET=os.getenv("FIREBASE_STORAGE_BUCKET", ""),
        FIREBASE_CREDENTIALS_PATH=os.getenv("FIREBASE_CREDENTIALS_PATH", "firebase_key.json"),
        EVENTS_COLLECTION=os.getenv("EVENTS_COLLECTION", "events"),
        USERS_COLLECTION=os.getenv("USERS_COLLECTION", "users"),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/preferences.db"),
        DEFAULT_THEME=os.getenv("DEFAULT_THEME", "light"),
        REQUEST_TIMEOUT_SECONDS=os.getenv("REQUEST_TIMEOUT_SECONDS", "10"),
        CAMPUS_EMAIL=os.getenv("CAMPUS_EMAIL", ""),
        CAMPUS_PASSWORD=os.getenv("CAMPUS_PASSWORD", ""),
    )


# Singleton — imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
