"""
Campus Events — Preferences Database.

The only durable client-side state: the light/dark theme choice. Everything
else lives in Firebase. Read once at startup, written on toggle.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

THEME_KEY = "campus_theme"
THEMES = ("light", "dark")


class PreferencesDB:
    """SQLite-backed key/value store for local app preferences."""

    def __init__(self, db_path: str | None = None, default_theme: str | None = None) -> None:
        if db_path is None or default_theme is None:
            from src.config import settings
            db_path = db_path if db_path is not None else settings.DATABASE_PATH
            default_theme = default_theme if default_theme is not None else settings.DEFAULT_THEME

        self._db_path = db_path
        self._default_theme = default_theme if default_theme in THEMES else "light"
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS preferences (
                    key   TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
        logger.debug("Preferences table initialized at %s", self._db_path)

    def get(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM preferences WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row is not None else None

    def set(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO preferences (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )

    def get_theme(self) -> str:
        """Saved theme, or the default when nothing valid is stored."""
        theme = self.get(THEME_KEY)
        if theme in THEMES:
            return theme
        return self._default_theme

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme!r}")
        self.set(THEME_KEY, theme)
        logger.info("Theme set to %s", theme)

    def toggle_theme(self) -> str:
        """Switch light ↔ dark, persist it, and return the new theme."""
        new_theme = "dark" if self.get_theme() == "light" else "light"
        self.set_theme(new_theme)
        return new_theme
