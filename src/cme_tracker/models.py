"""
Data models for the CME Tracker.

Record models (what the record store hands to the engine) are pydantic
models so malformed dates and negative credits are rejected at the
boundary.  The badge catalog is a fixed, ordered tuple of frozen
dataclasses; engine outputs live in badge_engine.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# ─── Enumerations ────────────────────────────────────────────────────────────

class BadgeKind(str, Enum):
    """How a badge's requirement is interpreted."""
    CREDITS   = "credits"    # lifetime credit total
    MILESTONE = "milestone"  # relative to the annual requirement
    STREAK    = "streak"     # distinct active days in the trailing window
    SPECIAL   = "special"    # per-badge rule (categories, certificates)


class CreditSystem(str, Enum):
    """Regulatory credit systems; numerically equivalent, worded differently."""
    CME    = "CME"
    CPD    = "CPD"
    CE     = "CE"
    HOURS  = "Hours"
    POINTS = "Points"


def _coerce_calendar_date(value):
    """Reduce datetimes and ISO timestamps to their calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return value.strip().split("T")[0]
    return value


# ─── Record models (owned by the record store) ──────────────────────────────

class ActivityRecord(BaseModel):
    """One continuing-education activity.  Time of day is irrelevant."""
    id:               Optional[int] = None
    title:            str   = ""
    provider:         str   = ""
    date_attended:    date
    credits_earned:   float = Field(ge=0.0, description="Credits awarded for the activity")
    category:         str   = ""
    notes:            Optional[str] = None
    certificate_path: Optional[str] = None

    @field_validator("date_attended", mode="before")
    @classmethod
    def date_only(cls, value):
        return _coerce_calendar_date(value)


class LicenseProfile(BaseModel):
    """
    The user's licensing requirements.  Only the annual requirement and the
    cycle dates affect badges; the rest is display information.
    """
    annual_requirement: float = Field(ge=0.0, description="Credits required per cycle")
    requirement_period: int   = Field(default=1, ge=1, description="Cycle length in years")
    cycle_start_date:   Optional[date] = None
    cycle_end_date:     Optional[date] = None
    credit_system:      str = CreditSystem.CME.value
    profession:         str = ""
    profile_name:       Optional[str] = None

    @field_validator("cycle_start_date", "cycle_end_date", mode="before")
    @classmethod
    def cycle_dates_only(cls, value):
        if value == "":
            return None
        return _coerce_calendar_date(value)

    @property
    def has_cycle(self) -> bool:
        return self.cycle_start_date is not None and self.cycle_end_date is not None


class CertificateRecord(BaseModel):
    """An uploaded certificate file.  The engine only counts these."""
    id:           Optional[int] = None
    file_name:    str = ""
    file_path:    str = ""
    file_size:    int = Field(default=0, ge=0)
    mime_type:    str = "application/pdf"
    cme_entry_id: Optional[int] = None


# ─── Badge catalog ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class BadgeDefinition:
    """A static catalog entry.  Never mutated at runtime."""
    id:          str
    name:        str
    description: str
    icon:        str
    colors:      tuple[str, str]
    requirement: float
    kind:        BadgeKind

    def __post_init__(self) -> None:
        if self.requirement <= 0:
            raise ValueError(
                f"Badge '{self.id}' requirement must be positive, got {self.requirement}"
            )


# Catalog order matters: it is the tie-break order of the badge snapshot.
CERTIFICATION_BADGES: tuple[BadgeDefinition, ...] = (
    # Credit-based badges
    BadgeDefinition("first_steps", "First Steps",
                    "Complete your first CME activity", "🎯",
                    ("#4F46E5", "#7C3AED"), 1, BadgeKind.CREDITS),
    BadgeDefinition("dedicated_learner", "Dedicated Learner",
                    "Earn 25 CME credits", "📚",
                    ("#059669", "#10B981"), 25, BadgeKind.CREDITS),
    BadgeDefinition("knowledge_seeker", "Knowledge Seeker",
                    "Earn 50 CME credits", "🔍",
                    ("#DC2626", "#EF4444"), 50, BadgeKind.CREDITS),
    BadgeDefinition("expert_practitioner", "Expert Practitioner",
                    "Earn 100 CME credits", "⭐",
                    ("#D97706", "#F59E0B"), 100, BadgeKind.CREDITS),
    BadgeDefinition("master_educator", "Master Educator",
                    "Earn 200 CME credits", "👑",
                    ("#7C2D12", "#EA580C"), 200, BadgeKind.CREDITS),

    # Milestone badges (requirement is a multiple of the annual requirement)
    BadgeDefinition("annual_achiever", "Annual Achiever",
                    "Complete your annual requirement", "🏆",
                    ("#1E40AF", "#3B82F6"), 1, BadgeKind.MILESTONE),
    BadgeDefinition("early_bird", "Early Bird",
                    "Complete requirement 6 months early", "🐦",
                    ("#0D9488", "#14B8A6"), 1, BadgeKind.MILESTONE),
    BadgeDefinition("overachiever", "Overachiever",
                    "Complete 150% of requirement", "🚀",
                    ("#BE185D", "#EC4899"), 1.5, BadgeKind.MILESTONE),

    # Streak badges
    BadgeDefinition("consistent_learner", "Consistent Learner",
                    "7-day learning streak", "🔥",
                    ("#DC2626", "#F87171"), 7, BadgeKind.STREAK),
    BadgeDefinition("learning_machine", "Learning Machine",
                    "30-day learning streak", "⚡",
                    ("#7C2D12", "#F97316"), 30, BadgeKind.STREAK),

    # Special badges
    BadgeDefinition("category_explorer", "Category Explorer",
                    "Complete activities in 5 different categories", "🧭",
                    ("#581C87", "#8B5CF6"), 5, BadgeKind.SPECIAL),
    BadgeDefinition("certificate_collector", "Certificate Collector",
                    "Upload 10 certificates", "📋",
                    ("#166534", "#22C55E"), 10, BadgeKind.SPECIAL),
)

BADGE_IDS = [b.id for b in CERTIFICATION_BADGES]


def get_badge(badge_id: str) -> Optional[BadgeDefinition]:
    """Return the catalog entry for *badge_id*, or None."""
    return next((b for b in CERTIFICATION_BADGES if b.id == badge_id), None)


# ─── Credit terminology registry ─────────────────────────────────────────────

@dataclass(frozen=True)
class CreditTerminology:
    singular: str
    plural:   str
    unit:     str
    title:    str
    label:    str


CREDIT_TERMINOLOGY: dict[str, CreditTerminology] = {
    CreditSystem.CME.value:    CreditTerminology("credit", "credits", "Credits",
                                                 "Credit Requirements", "Number of Credits"),
    CreditSystem.CPD.value:    CreditTerminology("point", "points", "Points",
                                                 "Point Requirements", "Number of Points"),
    CreditSystem.CE.value:     CreditTerminology("unit", "units", "Units",
                                                 "Unit Requirements", "Number of Units"),
    CreditSystem.HOURS.value:  CreditTerminology("hour", "hours", "Hours",
                                                 "Hour Requirements", "Number of Hours"),
    CreditSystem.POINTS.value: CreditTerminology("point", "points", "Points",
                                                 "Point Requirements", "Number of Points"),
}


def get_credit_terminology(credit_system: str) -> CreditTerminology:
    """Return wording for *credit_system*, falling back to CME."""
    return CREDIT_TERMINOLOGY.get(credit_system, CREDIT_TERMINOLOGY[CreditSystem.CME.value])
