"""
Tests for the plain-text progress report.
"""
from datetime import date

import pytest
from factories import TODAY, make_activity, make_badge, make_certificates, make_engine, make_profile

from cme_tracker.report import category_breakdown, generate_progress_report


@pytest.fixture
def demo_report(engine, demo_records):
    profile, acts = demo_records
    return generate_progress_report(profile, acts, make_certificates(6), today=TODAY, engine=engine)


class TestCategoryBreakdown:
    def test_sorted_largest_first(self):
        acts = [
            make_activity(category="Journal", credits=1),
            make_activity(category="Conference", credits=5),
            make_activity(category="Journal", credits=2),
        ]
        assert category_breakdown(acts) == [("Conference", 5.0), ("Journal", 3.0)]

    def test_ties_keep_first_seen_order(self):
        acts = [make_activity(category="B"), make_activity(category="A")]
        assert [name for name, _ in category_breakdown(acts)] == ["B", "A"]

    def test_empty(self):
        assert category_breakdown([]) == []


class TestDemoReport:
    def test_header_and_profile(self, demo_report):
        lines = demo_report.splitlines()
        assert lines[0] == "CME TRACKER PROGRESS REPORT"
        assert lines[1] == "Generated: June 15, 2024"
        assert "Name: Dr. Amara Okafor" in lines
        assert "Profession: Physician" in lines
        assert "Annual Requirement: 50 credits" in lines
        assert "Requirement Period: 2 years" in lines

    def test_progress_summary_counts_this_year_only(self, demo_report):
        lines = demo_report.splitlines()
        assert "2024 PROGRESS SUMMARY" in lines
        assert "Total Credits Earned: 12.0" in lines
        assert "Progress: 24.0% of annual requirement" in lines
        assert "Total Entries: 8" in lines
        assert "Certificates Uploaded: 6" in lines

    def test_category_breakdown_section(self, demo_report):
        lines = demo_report.splitlines()
        start = lines.index("CATEGORY BREAKDOWN") + 2
        assert lines[start:start + 5] == [
            "Online Course: 5.0 credits",
            "Workshop: 4.0 credits",
            "Journal: 1.0 credits",
            "Grand Rounds: 1.0 credits",
            "Teaching: 1.0 credits",
        ]

    def test_badge_section(self, demo_report):
        lines = demo_report.splitlines()
        assert "ACHIEVEMENT BADGES" in lines
        assert "Total Badges Available: 12" in lines
        assert "Badges Earned: 6" in lines
        assert "Completion Rate: 50.0%" in lines
        assert "✅ Knowledge Seeker - Earn 50 CME credits (earned 2024-06-03)" in lines
        assert "🎯 Consistent Learner - 85.7% complete" in lines


class TestEdgeCases:
    def test_empty_log(self, engine):
        report = generate_progress_report(make_profile(), [], [], today=TODAY, engine=engine)
        lines = report.splitlines()
        assert "No activities recorded this year" in lines
        assert "Badges Earned: 0" in lines
        assert "None yet" in lines

    def test_zero_requirement_progress(self, engine):
        profile = make_profile(annual_requirement=0)
        report = generate_progress_report(profile, [make_activity(on=TODAY)], [], today=TODAY, engine=engine)
        assert "Progress: 0% of annual requirement" in report.splitlines()

    def test_credit_system_wording(self, engine):
        profile = make_profile(annual_requirement=30, credit_system="CPD")
        acts = [make_activity(on=date(2024, 2, 1), credits=3, category="Reflection")]
        lines = generate_progress_report(profile, acts, [], today=TODAY, engine=engine).splitlines()
        assert "Annual Requirement: 30 points" in lines
        assert "Total Points Earned: 3.0" in lines
        assert "Reflection: 3.0 points" in lines

    def test_all_badges_earned(self, profile):
        engine = make_engine(catalog=[make_badge("one", 1)])
        report = generate_progress_report(profile, [make_activity(on=TODAY)], [], today=TODAY, engine=engine)
        assert "All badges earned! 🎉" in report.splitlines()

    def test_uses_engine_clock_when_today_omitted(self, demo_records):
        profile, acts = demo_records
        report = generate_progress_report(profile, acts, [], engine=make_engine(today=TODAY))
        lines = report.splitlines()
        assert lines[1] == "Generated: June 15, 2024"
        assert "2024 PROGRESS SUMMARY" in lines
        assert "Badges Earned: 6" in lines
