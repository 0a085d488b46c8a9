"""
Tests for the record integrity layer (R-01 – R-11) and check_integrity().
Run: python -m pytest tests/ -v
"""
from datetime import date

import pytest
from factories import TODAY, days_ago, make_activity, make_certificates, make_profile

from cme_tracker.guardrails import (
    ActivityGuardrails,
    CertificateGuardrails,
    GuardrailLevel,
    GuardrailResult,
    GuardrailViolation,
    ProfileGuardrails,
    check_integrity,
)
from cme_tracker.models import CertificateRecord


def codes(result: GuardrailResult) -> list[str]:
    return [v.code for v in result.violations]


class TestActivityRequiredFields:
    """R-01: title, provider and category must be non-empty."""

    def setup_method(self):
        self.guard = ActivityGuardrails()

    def test_clean_record_passes(self):
        result = self.guard.check(make_activity(on=days_ago(3)), TODAY)
        assert result.passed
        assert result.violations == []

    @pytest.mark.parametrize("field_name", ["title", "provider", "category"])
    def test_blank_field_blocks(self, field_name):
        record = make_activity(on=days_ago(3)).model_copy(update={field_name: "   "})
        result = self.guard.check(record, TODAY)
        assert not result.passed
        assert result.blocked
        violation = result.errors[0]
        assert violation.code == "R-01"
        assert violation.field == field_name

    def test_message_names_the_entry(self):
        record = make_activity(on=days_ago(3), title="", entry_id=42)
        result = self.guard.check(record, TODAY)
        assert result.errors[0].message == "Entry 42: missing title."

    def test_every_missing_field_reported(self):
        record = make_activity(on=days_ago(3), title="", provider="", category="")
        assert codes(self.guard.check(record, TODAY)) == ["R-01", "R-01", "R-01"]


class TestActivityCredits:
    """R-02 / R-03: credits must be positive and are flagged above 100."""

    def setup_method(self):
        self.guard = ActivityGuardrails()

    def test_zero_credits_block(self):
        result = self.guard.check(make_activity(on=days_ago(1), credits=0), TODAY)
        assert codes(result) == ["R-02"]
        assert result.errors[0].level == GuardrailLevel.BLOCK

    def test_high_credits_warn_only(self):
        result = self.guard.check(make_activity(on=days_ago(1), credits=120), TODAY)
        assert result.passed
        assert codes(result) == ["R-03"]
        assert result.warnings[0].level == GuardrailLevel.WARN

    def test_exactly_100_credits_is_fine(self):
        result = self.guard.check(make_activity(on=days_ago(1), credits=100), TODAY)
        assert result.violations == []


class TestActivityDates:
    """R-04 / R-05: future dates and entries over ten years old are flagged."""

    def setup_method(self):
        self.guard = ActivityGuardrails()

    def test_future_date_warns(self):
        result = self.guard.check(make_activity(on=date(2024, 6, 16)), TODAY)
        assert result.passed
        assert codes(result) == ["R-04"]

    def test_today_is_not_future(self):
        assert self.guard.check(make_activity(on=TODAY), TODAY).violations == []

    def test_very_old_entry_warns(self):
        result = self.guard.check(make_activity(on=date(2014, 6, 14)), TODAY)
        assert codes(result) == ["R-05"]

    def test_exactly_ten_years_is_fine(self):
        assert self.guard.check(make_activity(on=date(2014, 6, 15)), TODAY).violations == []

    def test_leap_day_today(self):
        result = self.guard.check(make_activity(on=date(2014, 2, 27)), date(2024, 2, 29))
        assert codes(result) == ["R-05"]


class TestCertificateGuardrails:
    """R-06 – R-08."""

    def setup_method(self):
        self.guard = CertificateGuardrails()

    def test_clean_certificate(self):
        (cert,) = make_certificates(1)
        assert self.guard.check(cert).passed

    def test_missing_path_blocks(self):
        cert = CertificateRecord(id=3, file_name="x.pdf", file_path="")
        result = self.guard.check(cert)
        assert result.blocked
        assert result.errors[0].message == "Certificate 3: missing file path."

    def test_orphaned_link_warns(self):
        cert = CertificateRecord(file_path="c.pdf", cme_entry_id=99)
        result = self.guard.check(cert, known_activity_ids=[1, 2])
        assert result.passed
        assert codes(result) == ["R-07"]

    def test_orphan_check_skipped_without_known_ids(self):
        cert = CertificateRecord(file_path="c.pdf", cme_entry_id=99)
        assert self.guard.check(cert).violations == []

    def test_large_file_warns(self):
        cert = CertificateRecord(file_path="big.pdf", file_size=60 * 1024 * 1024)
        result = self.guard.check(cert)
        assert codes(result) == ["R-08"]
        assert "60MB" in result.warnings[0].message


class TestProfileGuardrails:
    """R-09 – R-11."""

    def setup_method(self):
        self.guard = ProfileGuardrails()

    def test_full_profile_clean(self):
        profile = make_profile(cycle_start=date(2024, 1, 1), cycle_end=date(2025, 12, 31))
        assert self.guard.check(profile).violations == []

    def test_zero_requirement_warns(self):
        profile = make_profile(
            annual_requirement=0, cycle_start=date(2024, 1, 1), cycle_end=date(2025, 12, 31),
        )
        result = self.guard.check(profile)
        assert result.passed
        assert codes(result) == ["R-09"]

    @pytest.mark.parametrize("end", [date(2024, 1, 1), date(2023, 12, 31)])
    def test_cycle_end_not_after_start_blocks(self, end):
        profile = make_profile(cycle_start=date(2024, 1, 1), cycle_end=end)
        result = self.guard.check(profile)
        assert result.blocked
        assert codes(result) == ["R-10"]

    def test_missing_cycle_is_info(self):
        result = self.guard.check(make_profile())
        assert result.passed
        assert result.infos[0].code == "R-11"


class TestGuardrailResult:
    def test_summary_when_clean(self):
        assert GuardrailResult(passed=True).summary() == "✅ All integrity checks passed."

    def test_summary_lists_each_violation(self):
        result = GuardrailResult(passed=False, violations=[
            GuardrailViolation("R-02", GuardrailLevel.BLOCK, "Entry: invalid credits (0)."),
            GuardrailViolation("R-04", GuardrailLevel.WARN, "Entry: future date (2030-01-01)."),
        ])
        lines = result.summary().splitlines()
        assert lines == [
            "🚫 [R-02] Entry: invalid credits (0).",
            "⚠️ [R-04] Entry: future date (2030-01-01).",
        ]

    def test_extend_recomputes_passed(self):
        combined = GuardrailResult(passed=True)
        combined.extend(GuardrailResult(passed=True, violations=[
            GuardrailViolation("R-11", GuardrailLevel.INFO, "info"),
        ]))
        assert combined.passed
        combined.extend(GuardrailResult(passed=False, violations=[
            GuardrailViolation("R-06", GuardrailLevel.BLOCK, "blocked"),
        ]))
        assert not combined.passed
        assert len(combined.violations) == 2


class TestCheckIntegrity:
    def test_healthy_demo_records(self, demo_records):
        profile, acts = demo_records
        acts = [a.model_copy(update={"id": i}) for i, a in enumerate(acts, start=1)]
        certs = [c.model_copy(update={"cme_entry_id": c.id}) for c in make_certificates(6)]
        report = check_integrity(profile, acts, certs, today=TODAY)
        assert report.result.passed
        assert report.result.violations == []
        assert report.total_entries == 14
        assert report.total_credits == pytest.approx(56.5)
        assert report.orphaned_certificates == 0

    def test_aggregates_problems(self):
        profile = make_profile()                       # R-11
        acts = [
            make_activity(on=days_ago(1), credits=5, entry_id=1),
            make_activity(on=days_ago(2), credits=0, entry_id=2),        # R-02
            make_activity(on=date(2030, 1, 1), credits=3, entry_id=3),   # R-04
        ]
        certs = [
            CertificateRecord(id=1, file_path="a.pdf", cme_entry_id=1),
            CertificateRecord(id=2, file_path="b.pdf", cme_entry_id=77),  # R-07
        ]
        report = check_integrity(profile, acts, certs, today=TODAY)
        assert not report.result.passed
        assert sorted(codes(report.result)) == ["R-02", "R-04", "R-07", "R-11"]
        assert report.total_credits == pytest.approx(8.0)
        assert report.orphaned_certificates == 1
