"""
config.py — Central settings for the CME Tracker
================================================
All configuration is loaded from environment variables / .env file.
Copy .env.example → .env and adjust the values you need.

The badge engine itself takes no configuration: its thresholds are fixed
design constants in badge_engine.py.  Settings here only cover the
collaborators around it (record store, logging, console defaults).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env into os.environ (no-op if already set, safe to call multiple times)
load_dotenv(override=False)

# Default database file lives in the workspace root
_DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent.parent / "cme_tracker_data.db"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ─── Helpers ────────────────────────────────────────────────────────────────

def _parse_pinned_date(value: str) -> Optional[date]:
    """Return the ISO date in *value*, or None if blank."""
    value = value.strip()
    if not value:
        return None
    return date.fromisoformat(value[:10])


# ─── Record store ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StorageConfig:
    db_path: Path


# ─── App-level settings ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AppConfig:
    log_level:             str
    default_credit_system: str
    pinned_today:          Optional[date]   # CME_TODAY pins "now" for demos

    def today(self) -> date:
        """The date the app should treat as "now"."""
        return self.pinned_today or date.today()


# ─── Master settings object ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    storage: StorageConfig
    app:     AppConfig

    def status_summary(self) -> dict[str, str]:
        """Return a dict of setting → display value for the CLI."""
        pinned = self.app.pinned_today.isoformat() if self.app.pinned_today else "system clock"
        return {
            "Database":      str(self.storage.db_path),
            "Log level":     self.app.log_level,
            "Credit system": self.app.default_credit_system,
            "Today":         pinned,
        }


def get_settings() -> Settings:
    """Load all configuration from environment variables."""
    _str = lambda k, d="": os.getenv(k, d).strip()

    level = _str("CME_LOG_LEVEL", "WARNING").upper()
    if level not in _LOG_LEVELS:
        level = "WARNING"

    db_path = _str("CME_DB_PATH")

    return Settings(
        storage=StorageConfig(
            db_path = Path(db_path).expanduser() if db_path else _DEFAULT_DB_PATH,
        ),
        app=AppConfig(
            log_level             = level,
            default_credit_system = _str("CME_DEFAULT_CREDIT_SYSTEM", "CME") or "CME",
            pinned_today          = _parse_pinned_date(_str("CME_TODAY")),
        ),
    )
