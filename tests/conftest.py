"""
Shared pytest fixtures for the CME Tracker test suite.
All engines use a pinned "today" (factories.TODAY) so date windows are
deterministic.  Factory helpers live in tests/factories.py so they can be
imported directly by test modules as well as being used here.
"""
import sys
import os

_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)


import pytest

from factories import TODAY, make_engine, make_profile

from cme_tracker.database import init_db
from cme_tracker.seed_demo_data import demo_activities, demo_profile


# ─── pytest fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def engine():
    return make_engine()


@pytest.fixture
def profile():
    return make_profile(annual_requirement=50.0)


@pytest.fixture
def demo_records():
    """(profile, activities) of the seeded demo physician, relative to TODAY."""
    return demo_profile(TODAY), demo_activities(TODAY)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "cme_test.db"
    init_db(path)
    return path
