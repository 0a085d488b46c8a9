"""
cli.py – Rich console front end for the CME Tracker

Run:
    cme-tracker init --annual-requirement 50 --cycle-start 2025-01-01 --cycle-end 2026-12-31
    cme-tracker seed            # demo data
    cme-tracker add             # interactive activity entry
    cme-tracker badges          # badge snapshot; marks badges as checked
    cme-tracker report          # plain-text progress report
    cme-tracker check           # record integrity summary
    cme-tracker status          # resolved settings

Settings come from .env (see config.py); --db overrides CME_DB_PATH.
"""

from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import FloatPrompt, Prompt
from rich.table import Table

from cme_tracker import database
from cme_tracker.badge_engine import BadgeEngine, BadgeProgress
from cme_tracker.config import Settings, get_settings
from cme_tracker.guardrails import ActivityGuardrails, ProfileGuardrails, check_integrity
from cme_tracker.models import ActivityRecord, LicenseProfile, get_credit_terminology
from cme_tracker.report import generate_progress_report
from cme_tracker.seed_demo_data import seed_demo

console = Console()
logger = logging.getLogger(__name__)


# ─── Display helpers ─────────────────────────────────────────────────────────

def _bar(score: float, width: int = 16) -> str:
    filled = round(score * width)
    return "[" + "█" * filled + "░" * (width - filled) + f"] {score:.0%}"


def _require_profile(db_path: Path) -> Optional[LicenseProfile]:
    profile = database.load_profile(db_path)
    if profile is None:
        console.print("[bold red]No profile found.[/bold red] Run [cyan]cme-tracker init[/cyan] first.")
    return profile


def show_badges(
    snapshot: list[BadgeProgress],
    newly_earned: list[BadgeProgress],
    almost: list[BadgeProgress],
) -> None:
    """Render the badge snapshot as a rich table."""
    new_ids = {bp.badge.id for bp in newly_earned}

    table = Table(box=box.ROUNDED, title="[bold]Achievement Badges[/bold]")
    table.add_column("",         no_wrap=True)
    table.add_column("Badge",    style="bold")
    table.add_column("Progress", no_wrap=True)
    table.add_column("Earned",   style="green", no_wrap=True)

    for bp in snapshot:
        name = bp.badge.name
        if bp.badge.id in new_ids:
            name += " [bold yellow]NEW[/bold yellow]"
        earned_on = bp.earned_date.isoformat() if bp.earned_date else "[dim]—[/dim]"
        style = None if bp.earned else "dim"
        table.add_row(bp.badge.icon, name, _bar(bp.progress), earned_on, style=style)

    console.print(table)

    if almost:
        names = ", ".join(bp.badge.name for bp in almost)
        console.print(Panel(f"Almost there: [bold]{names}[/bold]", border_style="yellow", expand=False))


# ─── Commands ────────────────────────────────────────────────────────────────

def cmd_init(args: argparse.Namespace, settings: Settings) -> int:
    database.init_db(args.db)
    if args.annual_requirement is None:
        console.print(f"[green]✓[/green] Record store ready at {args.db}")
        return 0

    try:
        profile = LicenseProfile(
            annual_requirement = args.annual_requirement,
            requirement_period = args.period,
            cycle_start_date   = args.cycle_start,
            cycle_end_date     = args.cycle_end,
            credit_system      = args.credit_system or settings.app.default_credit_system,
            profession         = args.profession or "",
            profile_name       = args.name,
        )
    except ValidationError as exc:
        console.print(f"[bold red]Invalid profile:[/bold red] {escape(str(exc))}")
        return 1

    result = ProfileGuardrails().check(profile)
    if result.violations:
        console.print(result.summary())
    if result.blocked:
        return 1

    database.save_profile(profile, args.db)
    console.print(f"[green]✓[/green] Profile saved to {args.db}")
    return 0


def cmd_seed(args: argparse.Namespace, settings: Settings) -> int:
    added = seed_demo(args.db, settings.app.today())
    if added:
        console.print(f"[green]✓[/green] Seeded {added} demo entries.")
    else:
        console.print("[yellow]Record store already has entries; nothing seeded.[/yellow]")
    return 0


def cmd_add(args: argparse.Namespace, settings: Settings) -> int:
    profile = _require_profile(args.db)
    if profile is None:
        return 1
    terms = get_credit_terminology(profile.credit_system)
    today = settings.app.today()

    console.print(Panel("[bold magenta]Record a CME activity[/bold magenta]", expand=False))
    title    = Prompt.ask("[cyan]1.[/cyan] Title")
    provider = Prompt.ask("[cyan]2.[/cyan] Provider")
    attended = Prompt.ask("[cyan]3.[/cyan] Date attended [dim](YYYY-MM-DD)[/dim]",
                          default=today.isoformat())
    credits  = FloatPrompt.ask(f"[cyan]4.[/cyan] {terms.label}", default=1.0)
    category = Prompt.ask("[cyan]5.[/cyan] Category", default="Online Course")
    notes    = Prompt.ask("[cyan]6.[/cyan] Notes [dim](optional)[/dim]", default="")

    try:
        record = ActivityRecord(
            title=title, provider=provider, date_attended=attended,
            credits_earned=credits, category=category, notes=notes or None,
        )
    except ValidationError as exc:
        console.print(f"[bold red]Invalid entry:[/bold red] {escape(str(exc))}")
        return 1

    result = ActivityGuardrails().check(record, today)
    if result.violations:
        console.print(result.summary())
    if result.blocked:
        console.print("[bold red]Entry not saved.[/bold red]")
        return 1

    entry_id = database.add_entry(record, args.db)
    console.print(f"[bold green]✓ Saved entry {entry_id}.[/bold green]")
    return 0


def cmd_badges(args: argparse.Namespace, settings: Settings) -> int:
    profile = _require_profile(args.db)
    if profile is None:
        return 1
    today = settings.app.today()
    engine = BadgeEngine()

    activities   = database.get_entries(args.db)
    certificates = database.get_certificates(args.db)
    last_checked = database.get_last_badge_check(args.db)

    snapshot = engine.evaluate(profile, activities, certificates, today)
    newly    = engine.newly_earned_since(snapshot, last_checked)
    stats    = engine.statistics(snapshot, today)

    show_badges(snapshot, newly, engine.almost_earned(snapshot))
    console.print(
        f"[bold]{stats.earned_badges}/{stats.total_badges}[/bold] earned "
        f"([cyan]{stats.completion_rate:.1f}%[/cyan])"
    )
    if stats.next_badge is not None:
        nb = stats.next_badge
        console.print(f"Next up: {nb.badge.icon} [bold]{nb.badge.name}[/bold] {_bar(nb.progress)}")
    if newly:
        console.print(f"[bold yellow]🎉 {len(newly)} new badge(s) since your last check![/bold yellow]")

    database.set_last_badge_check(today, args.db)
    return 0


def cmd_report(args: argparse.Namespace, settings: Settings) -> int:
    profile = _require_profile(args.db)
    if profile is None:
        return 1
    text = generate_progress_report(
        profile,
        database.get_entries(args.db),
        database.get_certificates(args.db),
        today=settings.app.today(),
    )
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        console.print(f"[green]✓[/green] Report written to {args.output}")
    else:
        console.print(text, markup=False, highlight=False)
    return 0


def cmd_check(args: argparse.Namespace, settings: Settings) -> int:
    profile = _require_profile(args.db)
    if profile is None:
        return 1
    report = check_integrity(
        profile,
        database.get_entries(args.db),
        database.get_certificates(args.db),
        today=settings.app.today(),
    )
    status = "[green]HEALTHY[/green]" if report.result.passed else "[red]ISSUES FOUND[/red]"
    console.print(Panel(
        f"Overall Status: {status}\n"
        f"Total Entries Checked: {report.total_entries}\n"
        f"Total Credits Verified: {report.total_credits:g}\n"
        f"Errors: {len(report.result.errors)}  Warnings: {len(report.result.warnings)}  "
        f"Orphaned Certificates: {report.orphaned_certificates}",
        title="[bold]Data Integrity[/bold]", expand=False,
    ))
    if report.result.violations:
        console.print(report.result.summary())
    return 0 if report.result.passed else 1


def cmd_status(args: argparse.Namespace, settings: Settings) -> int:
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for key, value in settings.status_summary().items():
        table.add_row(key, value)
    table.add_row("Active database", str(args.db))
    table.add_row("Profile", "configured" if database.load_profile(args.db) else "[yellow]not set[/yellow]")
    console.print(table)
    return 0


# ─── Entry point ─────────────────────────────────────────────────────────────

def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}") from exc


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cme-tracker", description="CME/CPD tracker & achievement badges")
    parser.add_argument("--db", type=Path, default=settings.storage.db_path,
                        help="SQLite record store (default: CME_DB_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init", help="Create the record store and optionally save a profile")
    p_init.add_argument("--annual-requirement", type=float)
    p_init.add_argument("--period", type=int, default=1, help="Requirement period in years")
    p_init.add_argument("--cycle-start", type=_iso_date)
    p_init.add_argument("--cycle-end", type=_iso_date)
    p_init.add_argument("--credit-system", help="CME, CPD, CE, Hours or Points")
    p_init.add_argument("--profession")
    p_init.add_argument("--name")
    p_init.set_defaults(func=cmd_init)

    sub.add_parser("seed", help="Load demo data").set_defaults(func=cmd_seed)
    sub.add_parser("add", help="Record an activity interactively").set_defaults(func=cmd_add)
    sub.add_parser("badges", help="Show badge progress").set_defaults(func=cmd_badges)

    p_report = sub.add_parser("report", help="Print the progress report")
    p_report.add_argument("-o", "--output", help="Write the report to a file")
    p_report.set_defaults(func=cmd_report)

    sub.add_parser("check", help="Run record integrity checks").set_defaults(func=cmd_check)
    sub.add_parser("status", help="Show the resolved settings").set_defaults(func=cmd_status)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.app.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    args = build_parser(settings).parse_args(argv)

    try:
        if args.command != "init":
            database.init_db(args.db)
        return args.func(args, settings)
    except sqlite3.Error as exc:
        logger.error("Record store error: %s", exc)
        console.print(f"[bold red]Record store error:[/bold red] {escape(str(exc))}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
