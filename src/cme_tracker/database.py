"""
cme_tracker/database.py — SQLite record store
=============================================
Holds the records the badge engine reads: the license profile, the
append-only activity log, uploaded certificates, and a small key/value
settings table (e.g. the date badges were last checked).

Design decisions
----------------
- **Single local profile** — the tracker is personal; `users` holds one
  row (id = 1) that `save_profile` overwrites.
- **Dates as ISO TEXT** — `date_attended` and the cycle dates are stored
  as `YYYY-MM-DD`, so SQL ordering matches calendar ordering.
- **Connection per call** — every function opens and closes its own
  connection; nothing is shared between callers.
- **Computed badge state is never stored** — callers re-run the engine.

Database file location
----------------------
`CME_DB_PATH` from the environment, else `cme_tracker_data.db` in the
workspace root.  Every public function also accepts `db_path=` so tests
can point at a temporary file.

Public API
----------
  init_db()                         create tables if they don't exist
  save_profile(profile)             insert or replace the LicenseProfile
  load_profile()                    → LicenseProfile | None
  add_entry(record)                 → entry id
  get_entries()                     → list[ActivityRecord]   (date order)
  delete_entry(entry_id)
  add_certificate(cert)             → certificate id
  get_certificates()                → list[CertificateRecord]
  get_setting(key) / set_setting(key, value)
  get_last_badge_check() / set_last_badge_check(day)
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from pathlib import Path
from typing import Optional, Union

from cme_tracker.config import get_settings
from cme_tracker.models import ActivityRecord, CertificateRecord, LicenseProfile

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

LAST_BADGE_CHECK_KEY = "last_badge_check"


def _resolve_path(db_path: Optional[PathLike]) -> Path:
    return Path(db_path) if db_path is not None else get_settings().storage.db_path


def _get_conn(db_path: Optional[PathLike] = None) -> sqlite3.Connection:
    """Return a connection with row_factory set and foreign keys enforced."""
    conn = sqlite3.connect(str(_resolve_path(db_path)))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: Optional[PathLike] = None) -> None:
    """Create tables if they don't exist."""
    path = _resolve_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = _get_conn(path)
    conn.executescript("""
    CREATE TABLE IF NOT EXISTS users (
        id                  INTEGER PRIMARY KEY,
        profession          TEXT    DEFAULT '',
        credit_system       TEXT    DEFAULT 'CME',
        annual_requirement  REAL    NOT NULL DEFAULT 0,
        requirement_period  INTEGER NOT NULL DEFAULT 1,
        cycle_start_date    TEXT,
        cycle_end_date      TEXT,
        profile_name        TEXT,
        created_at          TEXT    DEFAULT (datetime('now')),
        updated_at          TEXT    DEFAULT (datetime('now'))
    );
    CREATE TABLE IF NOT EXISTS cme_entries (
        id                INTEGER PRIMARY KEY AUTOINCREMENT,
        title             TEXT    NOT NULL,
        provider          TEXT    NOT NULL,
        date_attended     TEXT    NOT NULL,
        credits_earned    REAL    NOT NULL,
        category          TEXT    NOT NULL,
        notes             TEXT,
        certificate_path  TEXT,
        created_at        TEXT    DEFAULT (datetime('now'))
    );
    CREATE INDEX IF NOT EXISTS idx_cme_entries_date_attended
        ON cme_entries (date_attended);
    CREATE TABLE IF NOT EXISTS certificates (
        id            INTEGER PRIMARY KEY AUTOINCREMENT,
        file_path     TEXT    NOT NULL,
        file_name     TEXT    NOT NULL,
        file_size     INTEGER NOT NULL DEFAULT 0,
        mime_type     TEXT    NOT NULL DEFAULT 'application/pdf',
        cme_entry_id  INTEGER REFERENCES cme_entries (id) ON DELETE SET NULL,
        created_at    TEXT    DEFAULT (datetime('now'))
    );
    CREATE TABLE IF NOT EXISTS app_settings (
        key         TEXT PRIMARY KEY,
        value       TEXT NOT NULL,
        updated_at  TEXT DEFAULT (datetime('now'))
    );
    """)
    conn.commit()
    conn.close()


def _iso(day: Optional[date]) -> Optional[str]:
    return day.isoformat() if day is not None else None


# ─── Profile ─────────────────────────────────────────────────────────────────

def save_profile(profile: LicenseProfile, db_path: Optional[PathLike] = None) -> None:
    """Insert or replace the single local profile."""
    conn = _get_conn(db_path)
    conn.execute("""
        INSERT INTO users (id, profession, credit_system, annual_requirement,
                           requirement_period, cycle_start_date, cycle_end_date,
                           profile_name)
        VALUES (1, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            profession         = excluded.profession,
            credit_system      = excluded.credit_system,
            annual_requirement = excluded.annual_requirement,
            requirement_period = excluded.requirement_period,
            cycle_start_date   = excluded.cycle_start_date,
            cycle_end_date     = excluded.cycle_end_date,
            profile_name       = excluded.profile_name,
            updated_at         = datetime('now')
    """, (
        profile.profession,
        profile.credit_system,
        profile.annual_requirement,
        profile.requirement_period,
        _iso(profile.cycle_start_date),
        _iso(profile.cycle_end_date),
        profile.profile_name,
    ))
    conn.commit()
    conn.close()
    logger.info("Saved profile (annual requirement %.1f)", profile.annual_requirement)


def load_profile(db_path: Optional[PathLike] = None) -> Optional[LicenseProfile]:
    """Fetch the local profile. Returns None before onboarding."""
    conn = _get_conn(db_path)
    row = conn.execute("SELECT * FROM users WHERE id = 1").fetchone()
    conn.close()
    if row is None:
        return None
    return LicenseProfile(
        annual_requirement = row["annual_requirement"],
        requirement_period = row["requirement_period"],
        cycle_start_date   = row["cycle_start_date"],
        cycle_end_date     = row["cycle_end_date"],
        credit_system      = row["credit_system"] or "CME",
        profession         = row["profession"] or "",
        profile_name       = row["profile_name"],
    )


# ─── Activity log ────────────────────────────────────────────────────────────

def add_entry(record: ActivityRecord, db_path: Optional[PathLike] = None) -> int:
    """Append an activity, return its id."""
    conn = _get_conn(db_path)
    cur = conn.execute("""
        INSERT INTO cme_entries (title, provider, date_attended, credits_earned,
                                 category, notes, certificate_path)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """, (
        record.title,
        record.provider,
        record.date_attended.isoformat(),
        record.credits_earned,
        record.category,
        record.notes,
        record.certificate_path,
    ))
    conn.commit()
    entry_id = cur.lastrowid
    conn.close()
    logger.info("Added entry %d: %.1f credits on %s", entry_id,
                record.credits_earned, record.date_attended.isoformat())
    return entry_id


def get_entries(db_path: Optional[PathLike] = None) -> list[ActivityRecord]:
    """All activities, oldest first (insertion order within a day)."""
    conn = _get_conn(db_path)
    rows = conn.execute(
        "SELECT * FROM cme_entries ORDER BY date_attended, id"
    ).fetchall()
    conn.close()
    return [
        ActivityRecord(
            id               = r["id"],
            title            = r["title"],
            provider         = r["provider"],
            date_attended    = r["date_attended"],
            credits_earned   = r["credits_earned"],
            category         = r["category"],
            notes            = r["notes"],
            certificate_path = r["certificate_path"],
        )
        for r in rows
    ]


def delete_entry(entry_id: int, db_path: Optional[PathLike] = None) -> None:
    """Delete an activity record."""
    conn = _get_conn(db_path)
    conn.execute("DELETE FROM cme_entries WHERE id = ?", (entry_id,))
    conn.commit()
    conn.close()
    logger.info("Deleted entry %d", entry_id)


# ─── Certificates ────────────────────────────────────────────────────────────

def add_certificate(cert: CertificateRecord, db_path: Optional[PathLike] = None) -> int:
    """Store a certificate record, return its id."""
    conn = _get_conn(db_path)
    cur = conn.execute("""
        INSERT INTO certificates (file_path, file_name, file_size, mime_type, cme_entry_id)
        VALUES (?, ?, ?, ?, ?)
    """, (cert.file_path, cert.file_name, cert.file_size, cert.mime_type, cert.cme_entry_id))
    conn.commit()
    cert_id = cur.lastrowid
    conn.close()
    logger.info("Added certificate %d (%s)", cert_id, cert.file_name)
    return cert_id


def get_certificates(db_path: Optional[PathLike] = None) -> list[CertificateRecord]:
    conn = _get_conn(db_path)
    rows = conn.execute("SELECT * FROM certificates ORDER BY id").fetchall()
    conn.close()
    return [
        CertificateRecord(
            id           = r["id"],
            file_name    = r["file_name"],
            file_path    = r["file_path"],
            file_size    = r["file_size"],
            mime_type    = r["mime_type"],
            cme_entry_id = r["cme_entry_id"],
        )
        for r in rows
    ]


# ─── App settings ────────────────────────────────────────────────────────────

def get_setting(key: str, db_path: Optional[PathLike] = None) -> Optional[str]:
    conn = _get_conn(db_path)
    row = conn.execute("SELECT value FROM app_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row is not None else None


def set_setting(key: str, value: str, db_path: Optional[PathLike] = None) -> None:
    conn = _get_conn(db_path)
    conn.execute("""
        INSERT INTO app_settings (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = datetime('now')
    """, (key, value))
    conn.commit()
    conn.close()


def get_last_badge_check(db_path: Optional[PathLike] = None) -> Optional[date]:
    """Date badges were last reviewed; feeds BadgeEngine.newly_earned_since()."""
    value = get_setting(LAST_BADGE_CHECK_KEY, db_path)
    return date.fromisoformat(value) if value else None


def set_last_badge_check(day: date, db_path: Optional[PathLike] = None) -> None:
    set_setting(LAST_BADGE_CHECK_KEY, day.isoformat(), db_path)
