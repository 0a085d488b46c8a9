"""
Tests for data models: ActivityRecord, LicenseProfile, CertificateRecord,
the badge catalog and the credit terminology registry.
"""
from datetime import date, datetime

import pytest
from factories import make_activity, make_badge, make_profile
from pydantic import ValidationError

from cme_tracker.models import (
    BADGE_IDS,
    CERTIFICATION_BADGES,
    ActivityRecord,
    BadgeDefinition,
    BadgeKind,
    CertificateRecord,
    LicenseProfile,
    get_badge,
    get_credit_terminology,
)


# ─── ActivityRecord ───────────────────────────────────────────────────────────

class TestActivityRecord:
    def test_iso_string_date(self):
        assert make_activity(on="2024-03-05").date_attended == date(2024, 3, 5)

    def test_timestamp_string_keeps_calendar_date(self):
        assert make_activity(on="2024-03-05T23:45:00Z").date_attended == date(2024, 3, 5)

    def test_datetime_keeps_calendar_date(self):
        assert make_activity(on=datetime(2024, 3, 5, 8, 30)).date_attended == date(2024, 3, 5)

    def test_unparseable_date_rejected(self):
        with pytest.raises(ValidationError):
            make_activity(on="not-a-date")

    def test_negative_credits_rejected(self):
        with pytest.raises(ValidationError):
            make_activity(credits=-1)

    def test_zero_credits_allowed(self):
        assert make_activity(credits=0).credits_earned == 0

    def test_optional_fields_default(self):
        record = ActivityRecord(date_attended="2024-01-01", credits_earned=1)
        assert record.id is None
        assert record.notes is None
        assert record.title == ""


# ─── LicenseProfile ───────────────────────────────────────────────────────────

class TestLicenseProfile:
    def test_has_cycle_requires_both_dates(self):
        assert not make_profile().has_cycle
        assert not make_profile(cycle_end=date(2025, 1, 1)).has_cycle
        assert make_profile(cycle_start=date(2024, 1, 1), cycle_end=date(2025, 1, 1)).has_cycle

    def test_blank_cycle_dates_become_none(self):
        profile = LicenseProfile(annual_requirement=20, cycle_start_date="", cycle_end_date="")
        assert profile.cycle_start_date is None
        assert profile.cycle_end_date is None

    def test_negative_requirement_rejected(self):
        with pytest.raises(ValidationError):
            make_profile(annual_requirement=-5)

    def test_period_must_be_positive(self):
        with pytest.raises(ValidationError):
            LicenseProfile(annual_requirement=20, requirement_period=0)

    def test_defaults(self):
        profile = LicenseProfile(annual_requirement=20)
        assert profile.credit_system == "CME"
        assert profile.requirement_period == 1


class TestCertificateRecord:
    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            CertificateRecord(file_path="c.pdf", file_size=-1)

    def test_default_mime_type(self):
        assert CertificateRecord(file_path="c.pdf").mime_type == "application/pdf"


# ─── Badge catalog ────────────────────────────────────────────────────────────

class TestBadgeCatalog:
    def test_twelve_unique_badges(self):
        assert len(CERTIFICATION_BADGES) == 12
        assert len(set(BADGE_IDS)) == 12

    def test_catalog_order(self):
        assert BADGE_IDS == [
            "first_steps", "dedicated_learner", "knowledge_seeker",
            "expert_practitioner", "master_educator",
            "annual_achiever", "early_bird", "overachiever",
            "consistent_learner", "learning_machine",
            "category_explorer", "certificate_collector",
        ]

    def test_kind_counts(self):
        kinds = [b.kind for b in CERTIFICATION_BADGES]
        assert kinds.count(BadgeKind.CREDITS) == 5
        assert kinds.count(BadgeKind.MILESTONE) == 3
        assert kinds.count(BadgeKind.STREAK) == 2
        assert kinds.count(BadgeKind.SPECIAL) == 2

    def test_requirements_positive(self):
        assert all(b.requirement > 0 for b in CERTIFICATION_BADGES)

    def test_overachiever_is_fractional(self):
        assert get_badge("overachiever").requirement == 1.5

    def test_get_badge_unknown(self):
        assert get_badge("nope") is None

    @pytest.mark.parametrize("requirement", [0, -1])
    def test_non_positive_requirement_rejected(self, requirement):
        with pytest.raises(ValueError):
            make_badge("bad", requirement)

    def test_definitions_are_frozen(self):
        badge = get_badge("first_steps")
        with pytest.raises(AttributeError):
            badge.requirement = 2

    def test_badge_definition_positional(self):
        badge = BadgeDefinition("x", "X", "desc", "🏅", ("#000", "#fff"), 2, BadgeKind.STREAK)
        assert badge.kind == BadgeKind.STREAK


# ─── Credit terminology ───────────────────────────────────────────────────────

class TestCreditTerminology:
    @pytest.mark.parametrize("system,plural", [
        ("CME", "credits"), ("CPD", "points"), ("CE", "units"),
        ("Hours", "hours"), ("Points", "points"),
    ])
    def test_known_systems(self, system, plural):
        assert get_credit_terminology(system).plural == plural

    def test_unknown_system_falls_back_to_cme(self):
        assert get_credit_terminology("ECTS") == get_credit_terminology("CME")
