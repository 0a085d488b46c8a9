"""
badge_engine.py – Achievement Progress Engine
=============================================
Turns a user's activity log into a snapshot of badge states.

  BadgeEngine.evaluate(profile, activities, certificates) → list[BadgeProgress]
    • One BadgeProgress per catalog entry: earned flag, progress in [0, 1],
      and the reconstructed date the badge was earned.
    • Sorted earned-first, then by progress (desc), then by requirement (asc).
      The sort is stable, so exact ties keep catalog order.

  BadgeEngine.newly_earned_since(snapshot, last_checked) → list[BadgeProgress]
  BadgeEngine.almost_earned(snapshot)                   → list[BadgeProgress]
  BadgeEngine.statistics(snapshot)                      → BadgeStatistics

Rule dispatch
-------------
Each badge is scored by a pure rule function looked up first by badge id,
then by badge kind:

  credits     kind rule   lifetime credit total vs requirement
  streak      kind rule   distinct active days in the trailing 30 days
  annual_achiever / overachiever   annual progress vs requirement
  early_bird                       annual requirement met ≥ 6 months early
  category_explorer                distinct categories vs requirement
  certificate_collector            certificate count vs requirement

New rules are registered with the @badge_rule decorator.

Earned dates
------------
Credit badges and the annual milestones report the *first crossing*: the
date of the activity whose running total first reached the target.  Every
other kind has no single crossing event and falls back to the last
positive-credit activity (or today when there is none).

Purity
------
No I/O, no shared state.  "Today" is the only implicit input; pass
``today=`` per call or ``clock=`` to the engine to pin it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from cme_tracker.models import (
    CERTIFICATION_BADGES,
    ActivityRecord,
    BadgeDefinition,
    BadgeKind,
    CertificateRecord,
    LicenseProfile,
)

logger = logging.getLogger(__name__)


# ─── Design constants ────────────────────────────────────────────────────────

ALMOST_EARNED_THRESHOLD = 0.8   # progress at which an unearned badge is "close"
ACTIVITY_WINDOW_DAYS    = 30    # streak window and "recently earned" window
EARLY_COMPLETION_MONTHS = 6     # early_bird: months before cycle end


# ─── Output models ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class BadgeProgress:
    """State of one badge within a single snapshot."""
    badge:       BadgeDefinition
    earned:      bool
    progress:    float                 # 0–1, 1.0 whenever earned
    earned_date: Optional[date] = None # set iff earned


@dataclass
class BadgeStatistics:
    """Aggregate view of a snapshot, consumed by the report and CLI."""
    total_badges:    int
    earned_badges:   int
    completion_rate: float                    # 0–100
    next_badge:      Optional[BadgeProgress]  # closest unearned badge
    recently_earned: list[BadgeProgress] = field(default_factory=list)


# ─── Evaluation context ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class EvaluationContext:
    """
    Facts derived once per evaluate() call and shared by every rule.
    `chronological` holds only positive-credit activities, oldest first.
    """
    profile:             LicenseProfile
    today:               date
    total_credits:       float
    annual_progress:     float
    distinct_categories: int
    certificate_count:   int
    recent_active_days:  int
    chronological:       tuple[ActivityRecord, ...]


RuleResult = tuple[bool, float]      # (earned, progress)
BadgeRule  = Callable[[BadgeDefinition, EvaluationContext], RuleResult]

_RULES_BY_ID:   dict[str, BadgeRule]       = {}
_RULES_BY_KIND: dict[BadgeKind, BadgeRule] = {}


def badge_rule(*badge_ids: str, kind: Optional[BadgeKind] = None):
    """Register a rule for specific badge ids and/or as a kind-wide default."""
    def register(fn: BadgeRule) -> BadgeRule:
        for badge_id in badge_ids:
            _RULES_BY_ID[badge_id] = fn
        if kind is not None:
            _RULES_BY_KIND[kind] = fn
        return fn
    return register


def resolve_rule(badge: BadgeDefinition) -> Optional[BadgeRule]:
    """Id-specific rule first, then the kind default."""
    return _RULES_BY_ID.get(badge.id) or _RULES_BY_KIND.get(badge.kind)


# ─── Pure helpers ────────────────────────────────────────────────────────────

def _threshold(value: float, requirement: float) -> RuleResult:
    return value >= requirement, min(value / requirement, 1.0)


def _window_start(today: date) -> date:
    """Dates strictly after this fall inside the trailing activity window."""
    return today - timedelta(days=ACTIVITY_WINDOW_DAYS)


def early_completion_cutoff(cycle_end: date) -> date:
    """Last day on which crossing the requirement still counts as early."""
    # relativedelta clamps month ends (Aug 31 -> Feb 29), it does not roll over into March.
    return cycle_end - relativedelta(months=EARLY_COMPLETION_MONTHS)


def chronological_activities(activities: Iterable[ActivityRecord]) -> list[ActivityRecord]:
    """Positive-credit activities sorted oldest first; same-day entries keep input order."""
    return sorted(
        (a for a in activities if a.credits_earned > 0),
        key=lambda a: a.date_attended,
    )


def first_crossing(chronological: Sequence[ActivityRecord], target: float) -> Optional[date]:
    """Date on which the running credit total first reaches *target*."""
    running = 0.0
    for activity in chronological:
        running += activity.credits_earned
        if running >= target:
            return activity.date_attended
    return None


def annual_progress(total_credits: float, annual_requirement: float) -> float:
    """Fraction of the annual requirement completed; 0 when no requirement is set."""
    if annual_requirement <= 0:
        return 0.0
    return total_credits / annual_requirement


def recent_active_days(activities: Iterable[ActivityRecord], today: date) -> int:
    # Distinct active days in the window, not consecutive days: activity on
    # day 1 and day 30 only counts as 2.
    start = _window_start(today)
    return len({a.date_attended for a in activities if a.date_attended > start})


# ─── Rules ───────────────────────────────────────────────────────────────────

@badge_rule(kind=BadgeKind.CREDITS)
def _credits_rule(badge: BadgeDefinition, ctx: EvaluationContext) -> RuleResult:
    return _threshold(ctx.total_credits, badge.requirement)


@badge_rule(kind=BadgeKind.STREAK)
def _streak_rule(badge: BadgeDefinition, ctx: EvaluationContext) -> RuleResult:
    return _threshold(ctx.recent_active_days, badge.requirement)


@badge_rule("annual_achiever", "overachiever")
def _annual_multiple_rule(badge: BadgeDefinition, ctx: EvaluationContext) -> RuleResult:
    return _threshold(ctx.annual_progress, badge.requirement)


@badge_rule("early_bird")
def _early_bird_rule(badge: BadgeDefinition, ctx: EvaluationContext) -> RuleResult:
    requirement_met = ctx.annual_progress >= badge.requirement
    progress = 1.0 if requirement_met else 0.0
    profile = ctx.profile
    if not requirement_met or not profile.has_cycle:
        return False, progress

    completed_on = first_crossing(
        ctx.chronological, profile.annual_requirement * badge.requirement,
    )
    cutoff = early_completion_cutoff(profile.cycle_end_date)
    return completed_on is not None and completed_on <= cutoff, progress


@badge_rule("category_explorer")
def _category_rule(badge: BadgeDefinition, ctx: EvaluationContext) -> RuleResult:
    return _threshold(ctx.distinct_categories, badge.requirement)


@badge_rule("certificate_collector")
def _certificate_rule(badge: BadgeDefinition, ctx: EvaluationContext) -> RuleResult:
    return _threshold(ctx.certificate_count, badge.requirement)


# Badges whose earned date is a first crossing of some credit target.
_ANNUAL_CROSSING_IDS = frozenset({"annual_achiever", "overachiever"})


def _crossing_target(badge: BadgeDefinition, annual_requirement: float) -> Optional[float]:
    if badge.kind == BadgeKind.CREDITS:
        return badge.requirement
    if badge.kind == BadgeKind.MILESTONE and badge.id in _ANNUAL_CROSSING_IDS:
        return annual_requirement * badge.requirement
    return None


def reconstruct_earned_date(
    badge: BadgeDefinition,
    chronological: Sequence[ActivityRecord],
    annual_requirement: float,
    today: date,
) -> date:
    """
    When was *badge* earned?  Only meaningful for earned badges.
    *chronological* must come from chronological_activities().
    """
    target = _crossing_target(badge, annual_requirement)
    if target is not None:
        crossed = first_crossing(chronological, target)
        if crossed is not None:
            return crossed
    if chronological:
        return chronological[-1].date_attended
    return today


# ─── Engine ──────────────────────────────────────────────────────────────────

DateLike = Union[date, str]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


class BadgeEngine:
    """
    Stateless evaluator over a read-only badge catalog.

    Every call recomputes from the records it is given; nothing is cached
    between calls, so one engine can be shared across call sites.
    """

    def __init__(
        self,
        catalog: Sequence[BadgeDefinition] = CERTIFICATION_BADGES,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._catalog = tuple(catalog)
        self._clock = clock

    @property
    def catalog(self) -> tuple[BadgeDefinition, ...]:
        return self._catalog

    def today(self, today: Optional[date] = None) -> date:
        """*today* if given, else the engine clock."""
        return today if today is not None else self._clock()

    # ── Snapshot ────────────────────────────────────────────────────────────

    def build_context(
        self,
        profile: LicenseProfile,
        activities: Sequence[ActivityRecord],
        certificates: Sequence[CertificateRecord],
        today: Optional[date] = None,
    ) -> EvaluationContext:
        today = self.today(today)
        total = sum(a.credits_earned for a in activities)
        return EvaluationContext(
            profile             = profile,
            today               = today,
            total_credits       = total,
            annual_progress     = annual_progress(total, profile.annual_requirement),
            distinct_categories = len({a.category for a in activities}),
            certificate_count   = len(certificates),
            recent_active_days  = recent_active_days(activities, today),
            chronological       = tuple(chronological_activities(activities)),
        )

    def evaluate(
        self,
        profile: LicenseProfile,
        activities: Sequence[ActivityRecord],
        certificates: Sequence[CertificateRecord],
        today: Optional[date] = None,
    ) -> list[BadgeProgress]:
        # ── 1. Derive shared facts once ─────────────────────────────────────
        ctx = self.build_context(profile, activities, certificates, today)

        # ── 2. Score each badge in catalog order ────────────────────────────
        snapshot: list[BadgeProgress] = []
        for badge in self._catalog:
            rule = resolve_rule(badge)
            if rule is None:
                logger.debug("No rule registered for badge %s (%s)", badge.id, badge.kind.value)
                earned, progress = False, 0.0
            else:
                earned, progress = rule(badge, ctx)

            earned_on = None
            if earned:
                earned_on = reconstruct_earned_date(
                    badge, ctx.chronological, profile.annual_requirement, ctx.today,
                )
            snapshot.append(BadgeProgress(
                badge       = badge,
                earned      = earned,
                progress    = float(progress),
                earned_date = earned_on,
            ))

        # ── 3. Earned first, closest next, smallest requirement first ───────
        snapshot.sort(key=lambda bp: (not bp.earned, -bp.progress, bp.badge.requirement))

        logger.debug(
            "Evaluated %d badges: %d earned, %.1f total credits, %d active days in window",
            len(snapshot), sum(bp.earned for bp in snapshot),
            ctx.total_credits, ctx.recent_active_days,
        )
        return snapshot

    def earned_date(
        self,
        badge: BadgeDefinition,
        activities: Sequence[ActivityRecord],
        profile: LicenseProfile,
        today: Optional[date] = None,
    ) -> date:
        """Reconstruct when *badge* was earned from the raw activity log."""
        return reconstruct_earned_date(
            badge,
            chronological_activities(activities),
            profile.annual_requirement,
            self.today(today),
        )

    # ── Snapshot queries ────────────────────────────────────────────────────

    @staticmethod
    def newly_earned_since(
        snapshot: Sequence[BadgeProgress],
        last_checked: Optional[DateLike] = None,
    ) -> list[BadgeProgress]:
        cutoff = _as_date(last_checked) if last_checked is not None else None
        return [
            bp for bp in snapshot
            if bp.earned
            and bp.earned_date is not None
            and (cutoff is None or bp.earned_date > cutoff)
        ]

    @staticmethod
    def almost_earned(snapshot: Sequence[BadgeProgress]) -> list[BadgeProgress]:
        return [
            bp for bp in snapshot
            if not bp.earned and bp.progress >= ALMOST_EARNED_THRESHOLD
        ]

    def statistics(
        self,
        snapshot: Sequence[BadgeProgress],
        today: Optional[date] = None,
    ) -> BadgeStatistics:
        if not snapshot:
            raise ValueError("Cannot compute badge statistics for an empty snapshot")

        earned = [bp for bp in snapshot if bp.earned]
        unearned = [bp for bp in snapshot if not bp.earned]

        # max() keeps the first of equal candidates, i.e. snapshot order
        next_badge = max(unearned, key=lambda bp: bp.progress) if unearned else None

        start = _window_start(self.today(today))
        recently = [
            bp for bp in earned
            if bp.earned_date is not None and bp.earned_date > start
        ]

        return BadgeStatistics(
            total_badges    = len(snapshot),
            earned_badges   = len(earned),
            completion_rate = len(earned) / len(snapshot) * 100,
            next_badge      = next_badge,
            recently_earned = recently,
        )

    # ── Record-level conveniences ───────────────────────────────────────────

    def newly_earned_badges(
        self,
        profile: LicenseProfile,
        activities: Sequence[ActivityRecord],
        certificates: Sequence[CertificateRecord],
        last_checked: Optional[DateLike] = None,
        today: Optional[date] = None,
    ) -> list[BadgeProgress]:
        snapshot = self.evaluate(profile, activities, certificates, today)
        return self.newly_earned_since(snapshot, last_checked)

    def almost_earned_badges(
        self,
        profile: LicenseProfile,
        activities: Sequence[ActivityRecord],
        certificates: Sequence[CertificateRecord],
        today: Optional[date] = None,
    ) -> list[BadgeProgress]:
        return self.almost_earned(self.evaluate(profile, activities, certificates, today))

    def badge_statistics(
        self,
        profile: LicenseProfile,
        activities: Sequence[ActivityRecord],
        certificates: Sequence[CertificateRecord],
        today: Optional[date] = None,
    ) -> BadgeStatistics:
        today = self.today(today)
        snapshot = self.evaluate(profile, activities, certificates, today)
        return self.statistics(snapshot, today)
