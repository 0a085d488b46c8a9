"""
cme_tracker — Continuing-Education Tracker & Achievement Progress Engine
========================================================================
Package containing the badge engine, record models, integrity checks,
persistence and reporting utilities for the CME/CPD tracker.

Module map
----------
  models.py            Record models (pydantic), enums, the badge catalog
                       and the credit-terminology registry.
  config.py            Settings loaded from .env.
  badge_engine.py      Achievement Progress Engine: badge snapshot,
                       earned-date reconstruction, statistics.
  guardrails.py        Record integrity rules (R-01..R-11).
  database.py          SQLite record store (profile, entries, certificates).
  report.py            Plain-text progress report with achievement section.
  seed_demo_data.py    Demo profile + activity log for the CLI.
  cli.py               Rich console front end (`cme-tracker`).

Data flow
---------
  record store → ActivityGuardrails / ProfileGuardrails
  → BadgeEngine.evaluate() → snapshot
  → newly_earned_since() / almost_earned() / statistics()
  → report.py / cli.py
"""
__version__ = "0.1.0"
