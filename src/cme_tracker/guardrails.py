"""
guardrails.py – Record Integrity Layer
======================================
Validates activity records, certificates and the license profile before
they are stored or handed to the badge engine.  The engine assumes clean
input; this layer is where bad records are caught and surfaced.

Guardrail levels
----------------
BLOCK   – Hard-stop: the record must not be stored.
WARN    – Soft-stop: the record is accepted with a visible warning.
INFO    – Advisory: shown in the integrity summary only.

Rules implemented
-----------------
Activity rules (ActivityGuardrails):
  R-01  Title, provider and category are non-empty
  R-02  Credits earned are positive
  R-03  Credits above 100 are unusually high
  R-04  Activity date is in the future
  R-05  Activity date is more than 10 years old

Certificate rules (CertificateGuardrails):
  R-06  File path is non-empty
  R-07  Linked activity exists (orphaned certificate otherwise)
  R-08  File is not larger than 50 MB

Profile rules (ProfileGuardrails):
  R-09  Annual requirement of 0 disables the annual milestones
  R-10  Cycle end date falls after the cycle start date
  R-11  No cycle dates: early-completion tracking is off

Unparseable dates and negative credits never reach these rules: the
pydantic record models reject them on construction.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta

from cme_tracker.models import ActivityRecord, CertificateRecord, LicenseProfile


# ─── Enums & data models ─────────────────────────────────────────────────────

class GuardrailLevel(str, Enum):
    BLOCK = "BLOCK"
    WARN  = "WARN"
    INFO  = "INFO"


@dataclass
class GuardrailViolation:
    code:    str
    level:   GuardrailLevel
    message: str
    field:   str = ""   # which field triggered the violation


@dataclass
class GuardrailResult:
    passed:     bool
    violations: list[GuardrailViolation] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return any(v.level == GuardrailLevel.BLOCK for v in self.violations)

    @property
    def errors(self) -> list[GuardrailViolation]:
        return [v for v in self.violations if v.level == GuardrailLevel.BLOCK]

    @property
    def warnings(self) -> list[GuardrailViolation]:
        return [v for v in self.violations if v.level == GuardrailLevel.WARN]

    @property
    def infos(self) -> list[GuardrailViolation]:
        return [v for v in self.violations if v.level == GuardrailLevel.INFO]

    def extend(self, other: "GuardrailResult") -> None:
        self.violations.extend(other.violations)
        self.passed = not self.blocked

    def summary(self) -> str:
        if not self.violations:
            return "✅ All integrity checks passed."
        icon = {GuardrailLevel.BLOCK: "🚫", GuardrailLevel.WARN: "⚠️", GuardrailLevel.INFO: "ℹ️"}
        return "\n".join(f"{icon[v.level]} [{v.code}] {v.message}" for v in self.violations)


def _result(violations: list[GuardrailViolation]) -> GuardrailResult:
    return GuardrailResult(
        passed=not any(v.level == GuardrailLevel.BLOCK for v in violations),
        violations=violations,
    )


# ─── Constants ───────────────────────────────────────────────────────────────

MAX_TYPICAL_CREDITS   = 100
MAX_ENTRY_AGE_YEARS   = 10
MAX_CERTIFICATE_BYTES = 50 * 1024 * 1024


# ─── Guardrail checks ─────────────────────────────────────────────────────────

class ActivityGuardrails:
    """R-01 – R-05: Validates one ActivityRecord before it is stored."""

    def check(self, record: ActivityRecord, today: Optional[date] = None) -> GuardrailResult:
        today = today or date.today()
        label = f"Entry {record.id}" if record.id is not None else "Entry"
        violations: list[GuardrailViolation] = []

        # R-01 Required text fields
        for field_name in ("title", "provider", "category"):
            if not getattr(record, field_name).strip():
                violations.append(GuardrailViolation(
                    code="R-01", level=GuardrailLevel.BLOCK,
                    field=field_name,
                    message=f"{label}: missing {field_name}.",
                ))

        # R-02 / R-03 Credits
        if record.credits_earned <= 0:
            violations.append(GuardrailViolation(
                code="R-02", level=GuardrailLevel.BLOCK,
                field="credits_earned",
                message=f"{label}: invalid credits ({record.credits_earned:g}).",
            ))
        elif record.credits_earned > MAX_TYPICAL_CREDITS:
            violations.append(GuardrailViolation(
                code="R-03", level=GuardrailLevel.WARN,
                field="credits_earned",
                message=f"{label}: unusually high credits ({record.credits_earned:g}).",
            ))

        # R-04 / R-05 Date sanity
        if record.date_attended > today:
            violations.append(GuardrailViolation(
                code="R-04", level=GuardrailLevel.WARN,
                field="date_attended",
                message=f"{label}: future date ({record.date_attended.isoformat()}).",
            ))
        elif record.date_attended < today - relativedelta(years=MAX_ENTRY_AGE_YEARS):
            violations.append(GuardrailViolation(
                code="R-05", level=GuardrailLevel.WARN,
                field="date_attended",
                message=f"{label}: very old entry ({record.date_attended.isoformat()}).",
            ))

        return _result(violations)


class CertificateGuardrails:
    """R-06 – R-08: Validates one CertificateRecord."""

    def check(
        self,
        cert: CertificateRecord,
        known_activity_ids: Optional[Iterable[int]] = None,
    ) -> GuardrailResult:
        label = f"Certificate {cert.id}" if cert.id is not None else "Certificate"
        violations: list[GuardrailViolation] = []

        # R-06 File path
        if not cert.file_path.strip():
            violations.append(GuardrailViolation(
                code="R-06", level=GuardrailLevel.BLOCK,
                field="file_path",
                message=f"{label}: missing file path.",
            ))

        # R-07 Orphaned link
        if cert.cme_entry_id is not None and known_activity_ids is not None:
            if cert.cme_entry_id not in set(known_activity_ids):
                violations.append(GuardrailViolation(
                    code="R-07", level=GuardrailLevel.WARN,
                    field="cme_entry_id",
                    message=f"{label}: references non-existent entry {cert.cme_entry_id}.",
                ))

        # R-08 File size
        if cert.file_size > MAX_CERTIFICATE_BYTES:
            violations.append(GuardrailViolation(
                code="R-08", level=GuardrailLevel.WARN,
                field="file_size",
                message=f"{label}: large file size ({round(cert.file_size / 1024 / 1024)}MB).",
            ))

        return _result(violations)


class ProfileGuardrails:
    """R-09 – R-11: Validates the LicenseProfile."""

    def check(self, profile: LicenseProfile) -> GuardrailResult:
        violations: list[GuardrailViolation] = []

        # R-09 Zero requirement
        if profile.annual_requirement == 0:
            violations.append(GuardrailViolation(
                code="R-09", level=GuardrailLevel.WARN,
                field="annual_requirement",
                message="Annual requirement is 0; annual milestone badges cannot be earned.",
            ))

        # R-10 / R-11 Cycle dates
        if profile.has_cycle:
            if profile.cycle_end_date <= profile.cycle_start_date:
                violations.append(GuardrailViolation(
                    code="R-10", level=GuardrailLevel.BLOCK,
                    field="cycle_end_date",
                    message=(
                        f"Cycle end ({profile.cycle_end_date.isoformat()}) must be after "
                        f"cycle start ({profile.cycle_start_date.isoformat()})."
                    ),
                ))
        else:
            violations.append(GuardrailViolation(
                code="R-11", level=GuardrailLevel.INFO,
                field="cycle_end_date",
                message="No requirement cycle set; early-completion tracking is off.",
            ))

        return _result(violations)


# ─── Full integrity pass ─────────────────────────────────────────────────────

@dataclass
class IntegrityReport:
    result:                GuardrailResult
    total_entries:         int
    total_credits:         float   # credits on entries that passed R-02
    orphaned_certificates: int


def check_integrity(
    profile: LicenseProfile,
    activities: Sequence[ActivityRecord],
    certificates: Sequence[CertificateRecord],
    today: Optional[date] = None,
) -> IntegrityReport:
    """Run every rule over the full record set and aggregate the outcome."""
    combined = GuardrailResult(passed=True)
    combined.extend(ProfileGuardrails().check(profile))

    activity_guard = ActivityGuardrails()
    for record in activities:
        combined.extend(activity_guard.check(record, today))

    known_ids = {a.id for a in activities if a.id is not None}
    cert_guard = CertificateGuardrails()
    orphaned = 0
    for cert in certificates:
        outcome = cert_guard.check(cert, known_ids)
        orphaned += sum(1 for v in outcome.violations if v.code == "R-07")
        combined.extend(outcome)

    return IntegrityReport(
        result                = combined,
        total_entries         = len(activities),
        total_credits         = sum(a.credits_earned for a in activities if a.credits_earned > 0),
        orphaned_certificates = orphaned,
    )
