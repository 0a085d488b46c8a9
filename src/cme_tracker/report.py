"""
report.py – Plain-text progress report
======================================
  generate_progress_report(profile, activities, certificates) → str

Sections
--------
  PROFILE INFORMATION       name, profession, credit system, requirement
  <YEAR> PROGRESS SUMMARY   credits this calendar year vs the requirement
  CATEGORY BREAKDOWN        this year's credits per category, largest first
  ACHIEVEMENT BADGES        totals, completion rate, earned list, next badge

Credit wording ("credits", "points", "hours", …) follows the profile's
credit system.  The badge section is produced by BadgeEngine; nothing is
persisted.
"""

from __future__ import annotations

import textwrap
from collections import defaultdict
from collections.abc import Sequence
from datetime import date
from typing import Optional

from cme_tracker.badge_engine import BadgeEngine, BadgeProgress, BadgeStatistics
from cme_tracker.models import (
    ActivityRecord,
    CertificateRecord,
    LicenseProfile,
    get_credit_terminology,
)


def category_breakdown(activities: Sequence[ActivityRecord]) -> list[tuple[str, float]]:
    """Credits per category, largest first (ties keep first-seen order)."""
    totals: dict[str, float] = defaultdict(float)
    for a in activities:
        totals[a.category] += a.credits_earned
    return sorted(totals.items(), key=lambda kv: kv[1], reverse=True)


def _badge_section(snapshot: Sequence[BadgeProgress], stats: BadgeStatistics) -> str:
    earned_lines = [
        f"✅ {bp.badge.name} - {bp.badge.description}"
        + (f" (earned {bp.earned_date.isoformat()})" if bp.earned_date else "")
        for bp in snapshot if bp.earned
    ] or ["None yet"]

    if stats.next_badge is not None:
        nb = stats.next_badge
        next_line = f"🎯 {nb.badge.name} - {nb.progress * 100:.1f}% complete"
    else:
        next_line = "All badges earned! 🎉"

    return "\n".join([
        "ACHIEVEMENT BADGES",
        "==================",
        f"Total Badges Available: {stats.total_badges}",
        f"Badges Earned: {stats.earned_badges}",
        f"Completion Rate: {stats.completion_rate:.1f}%",
        "",
        "Earned Badges:",
        *earned_lines,
        "",
        "Next Badge Progress:",
        next_line,
    ])


def generate_progress_report(
    profile: LicenseProfile,
    activities: Sequence[ActivityRecord],
    certificates: Sequence[CertificateRecord],
    today: Optional[date] = None,
    engine: Optional[BadgeEngine] = None,
) -> str:
    """Return the full report as plain text."""
    engine = engine or BadgeEngine()
    today = engine.today(today)
    terms = get_credit_terminology(profile.credit_system)

    # ── 1. This year's progress ─────────────────────────────────────────────
    year_entries = [a for a in activities if a.date_attended.year == today.year]
    year_credits = sum(a.credits_earned for a in year_entries)
    if profile.annual_requirement > 0:
        pct = f"{year_credits / profile.annual_requirement * 100:.1f}"
    else:
        pct = "0"

    # ── 2. Badges ───────────────────────────────────────────────────────────
    snapshot = engine.evaluate(profile, activities, certificates, today)
    stats = engine.statistics(snapshot, today)

    profile_lines = [
        f"Name: {profile.profile_name}" if profile.profile_name else "",
        f"Profession: {profile.profession or 'Not set'}",
        f"Credit System: {profile.credit_system}",
        f"Annual Requirement: {profile.annual_requirement:g} {terms.plural}",
    ]
    if profile.requirement_period > 1:
        profile_lines.append(f"Requirement Period: {profile.requirement_period} years")
    if profile.has_cycle:
        profile_lines.append(
            f"Current Cycle: {profile.cycle_start_date.isoformat()} to "
            f"{profile.cycle_end_date.isoformat()}"
        )

    categories = category_breakdown(year_entries)
    category_lines = [
        f"{name}: {credits:.1f} {terms.plural}" for name, credits in categories
    ] or ["No activities recorded this year"]

    header = textwrap.dedent(f"""\
        CME TRACKER PROGRESS REPORT
        Generated: {today.strftime("%B %d, %Y")}

        PROFILE INFORMATION
        ===================""")

    return "\n".join([
        header,
        *[line for line in profile_lines if line],
        "",
        f"{today.year} PROGRESS SUMMARY",
        "=====================",
        f"Total {terms.unit} Earned: {year_credits:.1f}",
        f"Progress: {pct}% of annual requirement",
        f"Total Entries: {len(year_entries)}",
        f"Certificates Uploaded: {len(certificates)}",
        "",
        "CATEGORY BREAKDOWN",
        "==================",
        *category_lines,
        "",
        _badge_section(snapshot, stats),
        "",
    ])
