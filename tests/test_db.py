"""Tests for src.data.db — PreferencesDB (SQLite storage)."""

import sqlite3

import pytest

from src.data.db import THEME_KEY, PreferencesDB


class TestPreferencesKeyValue:
    def test_get_missing_returns_none(self, prefs_db):
        assert prefs_db.get("nothing") is None

    def test_set_then_get(self, prefs_db):
        prefs_db.set("lang", "en")
        assert prefs_db.get("lang") == "en"

    def test_set_overwrites(self, prefs_db):
        prefs_db.set("lang", "en")
        prefs_db.set("lang", "he")
        assert prefs_db.get("lang") == "he"

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "prefs.db"
        PreferencesDB(db_path=str(path), default_theme="light")
        assert path.exists()


class TestTheme:
    def test_default_when_unset(self, prefs_db):
        assert prefs_db.get_theme() == "light"

    def test_dark_default(self, tmp_path):
        db = PreferencesDB(db_path=str(tmp_path / "p.db"), default_theme="dark")
        assert db.get_theme() == "dark"

    def test_invalid_default_becomes_light(self, tmp_path):
        db = PreferencesDB(db_path=str(tmp_path / "p.db"), default_theme="purple")
        assert db.get_theme() == "light"

    def test_set_theme_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "p.db")
        PreferencesDB(db_path=path, default_theme="light").set_theme("dark")
        assert PreferencesDB(db_path=path, default_theme="light").get_theme() == "dark"

    def test_set_unknown_theme_rejected(self, prefs_db):
        with pytest.raises(ValueError):
            prefs_db.set_theme("sepia")
        assert prefs_db.get(THEME_KEY) is None

    def test_corrupt_stored_value_ignored(self, prefs_db):
        prefs_db.set(THEME_KEY, "neon")
        assert prefs_db.get_theme() == "light"

    def test_toggle_flips_and_returns_new_theme(self, prefs_db):
        assert prefs_db.toggle_theme() == "dark"
        assert prefs_db.get_theme() == "dark"
        assert prefs_db.toggle_theme() == "light"
        assert prefs_db.get(THEME_KEY) == "light"


def test_schema_is_single_table(tmp_path):
    path = tmp_path / "p.db"
    PreferencesDB(db_path=str(path), default_theme="light")
    conn = sqlite3.connect(path)
    try:
        tables = [r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")]
    finally:
        conn.close()
    assert tables == ["preferences"]
