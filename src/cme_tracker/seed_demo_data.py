"""
seed_demo_data.py
─────────────────
Populate the SQLite record store with a realistic demo physician: a
two-year cycle, a year and a half of conference, journal and online
activities, and a handful of certificates.  Dates are relative to
"today" so the streak and recently-earned badges always have something
to show.

Run once (safe to re-run — seeding is skipped when entries already exist):
    cme-tracker seed
or:
    python -m cme_tracker.seed_demo_data
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from cme_tracker.database import (
    PathLike,
    add_certificate,
    add_entry,
    get_entries,
    init_db,
    save_profile,
)
from cme_tracker.models import ActivityRecord, CertificateRecord, LicenseProfile

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Helper: tiny builder so the activity table stays readable
# ─────────────────────────────────────────────────────────────────────────────

def _entry(
    today: date,
    days_ago: int,
    title: str,
    provider: str,
    credits: float,
    category: str,
) -> ActivityRecord:
    return ActivityRecord(
        title          = title,
        provider       = provider,
        date_attended  = today - timedelta(days=days_ago),
        credits_earned = credits,
        category       = category,
    )


def demo_profile(today: date) -> LicenseProfile:
    return LicenseProfile(
        annual_requirement = 50,
        requirement_period = 2,
        cycle_start_date   = today - timedelta(days=540),
        cycle_end_date     = today + timedelta(days=190),
        credit_system      = "CME",
        profession         = "Physician",
        profile_name       = "Dr. Amara Okafor",
    )


def demo_activities(today: date) -> list[ActivityRecord]:
    return [
        _entry(today, 520, "Annual Cardiology Update",          "ACC",           12.0, "Conference"),
        _entry(today, 470, "Sepsis Management Grand Rounds",    "City Hospital",  1.5, "Grand Rounds"),
        _entry(today, 410, "NEJM Case Challenges",              "NEJM Group",     4.0, "Journal"),
        _entry(today, 355, "Point-of-Care Ultrasound Workshop", "SCCM",           8.0, "Workshop"),
        _entry(today, 300, "Antimicrobial Stewardship Module",  "CDC TRAIN",      3.0, "Online Course"),
        _entry(today, 240, "Internal Medicine Board Review",    "ACP",           16.0, "Conference"),
        _entry(today, 150, "Diabetes Guidelines Webinar",       "ADA",            1.0, "Online Course"),
        _entry(today,  60, "Ethics in Clinical Practice",       "AMA Ed Hub",     2.0, "Online Course"),
        _entry(today,  20, "Heart Failure Journal Club",        "City Hospital",  1.0, "Journal"),
        _entry(today,  12, "ECG Interpretation Refresher",      "AMA Ed Hub",     1.5, "Online Course"),
        _entry(today,   9, "Stroke Protocol Grand Rounds",      "City Hospital",  1.0, "Grand Rounds"),
        _entry(today,   5, "Hypertension Update Podcast",       "JAMA Network",   0.5, "Online Course"),
        _entry(today,   3, "Simulation Lab: Airway",            "SimCenter",      4.0, "Workshop"),
        _entry(today,   1, "Morning Report Teaching Session",   "City Hospital",  1.0, "Teaching"),
    ]


def seed_demo(db_path: Optional[PathLike] = None, today: Optional[date] = None) -> int:
    """Write the demo profile, entries and certificates. Returns entries added."""
    today = today or date.today()
    init_db(db_path)
    if get_entries(db_path):
        logger.info("Record store already has entries; demo seed skipped")
        return 0

    save_profile(demo_profile(today), db_path)
    entry_ids = [add_entry(a, db_path) for a in demo_activities(today)]

    for n, entry_id in enumerate(entry_ids[:6], start=1):
        add_certificate(CertificateRecord(
            file_name    = f"certificate_{n:02d}.pdf",
            file_path    = f"certificates/certificate_{n:02d}.pdf",
            file_size    = 180_000 + n * 1_000,
            cme_entry_id = entry_id,
        ), db_path)

    return len(entry_ids)


if __name__ == "__main__":
    added = seed_demo()
    print(f"✅ Seeded {added} demo entries.")
