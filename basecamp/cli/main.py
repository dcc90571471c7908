"""
Typer CLI for the basecamp LMS backend.

Commands:
    basecamp tracks list                 - List tracks
    basecamp cohorts list                - List cohorts
    basecamp students list               - Student roster
    basecamp partners list               - Accountability partnerships
    basecamp partners auto-pair          - Pair unpartnered students of a track/cohort
    basecamp partners candidates ID      - Students eligible to join a partnership
    basecamp partners reassign ID        - Swap one or both members
    basecamp whitelist list|check|add|import|remove|export
    basecamp submissions list|review|bulk|export
    basecamp clarity-calls list|update
    basecamp dashboard show|analytics

Usage:
    basecamp --help
    basecamp partners auto-pair --track <track-id> --cohort <cohort-id>
    basecamp whitelist import learners.csv
    basecamp submissions export --report --output reports/
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from basecamp.backend import Backend
from basecamp.errors import BasecampError
from basecamp.export import ExportFile, submissions_csv, submissions_report_csv, whitelist_csv
from basecamp.log import configure_logging
from config import Settings, get_settings

T = TypeVar("T")

app = typer.Typer(
    help="basecamp: admin CLI for the LMS backend",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main_callback(
    log_level: str | None = typer.Option(
        None, "--log-level", help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)"
    ),
) -> None:
    """Admin tooling for tracks, students, partners, whitelist and reviews."""
    configure_logging(level=log_level or "WARNING")


# ========================================
# Context Builder (Dependency Injection)
# ========================================


class CLIContext:
    """
    Dependency injection container for CLI commands.

    The backend is built on first use so that ``--help`` works without
    store credentials.
    """

    def __init__(self, settings: Settings | None = None, backend: Backend | None = None):
        self.settings = settings or get_settings()
        self._backend = backend

    @property
    def backend(self) -> Backend:
        """Lazy load Backend."""
        if self._backend is None:
            self._backend = Backend.from_settings(self.settings)
        return self._backend

    def run(self, operation: Callable[[Backend], Awaitable[T]]) -> T:
        """
        Run one async operation against the backend and close it afterwards.

        Package errors are printed in red and end the command with exit code 1.
        """

        async def _runner() -> T:
            try:
                return await operation(self.backend)
            finally:
                if self._backend is not None:
                    await self._backend.close()

        try:
            return asyncio.run(_runner())
        except BasecampError as e:
            logger.debug("Command failed: {!r}", e)
            rprint(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=1)


def _build_context() -> CLIContext:
    """Build CLI context with dependency injection."""
    return CLIContext()


def _write_export(export: ExportFile, output: str | None) -> Path:
    """
    Write an export to ``output``.

    A missing output, an existing directory, a trailing separator or a
    path without a suffix is treated as a directory and gets the export's
    dated file name. Missing parent directories are created.
    """
    target = Path(output) if output else Path.cwd()
    as_directory = (
        output is None
        or output.endswith(("/", os.sep))
        or target.is_dir()
        or not target.suffix
    )
    if as_directory:
        target = target / export.filename

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(export.data, encoding="utf-8")
    except OSError as e:
        logger.debug("Export write failed: {!r}", e)
        rprint(f"[red]Error:[/red] Could not write {target}: {e.strerror or e}")
        raise typer.Exit(code=1)
    return target


# ========================================
# CURRICULUM COMMANDS
# ========================================

tracks_app = typer.Typer(help="Learning tracks")
app.add_typer(tracks_app, name="tracks")

cohorts_app = typer.Typer(help="Cohorts")
app.add_typer(cohorts_app, name="cohorts")


@tracks_app.command("list")
def tracks_list() -> None:
    """List all tracks."""
    ctx = _build_context()
    tracks = ctx.run(lambda b: b.curriculum.list_tracks())

    table = Table(title="Tracks", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for track in tracks:
        table.add_row(track.id, track.name, track.description or "")
    console.print(table)


@cohorts_app.command("list")
def cohorts_list() -> None:
    """List all cohorts."""
    ctx = _build_context()
    cohorts = ctx.run(lambda b: b.curriculum.list_cohorts())

    table = Table(title="Cohorts", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Status", style="green")
    for cohort in cohorts:
        table.add_row(
            cohort.id, cohort.name, cohort.start_date or "", cohort.end_date or "", cohort.status
        )
    console.print(table)


# ========================================
# STUDENT COMMANDS
# ========================================

students_app = typer.Typer(help="Enrolled students")
app.add_typer(students_app, name="students")


@students_app.command("list")
def students_list() -> None:
    """Student roster with track, cohort and progress."""
    ctx = _build_context()
    students = ctx.run(lambda b: b.enrollments.list_students())

    table = Table(title=f"Students ({len(students)})", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Email")
    table.add_column("Track")
    table.add_column("Cohort")
    table.add_column("Progress", justify="right")
    for enrollment in students:
        table.add_row(
            enrollment.user.full_name if enrollment.user else enrollment.user_id,
            (enrollment.user.email if enrollment.user else None) or "",
            enrollment.track.name if enrollment.track else "",
            enrollment.cohort.name if enrollment.cohort else "",
            f"{enrollment.progress_percentage:g}%",
        )
    console.print(table)


# ========================================
# PARTNER COMMANDS
# ========================================

partners_app = typer.Typer(help="Accountability partners")
app.add_typer(partners_app, name="partners")


def _member_name(profile, fallback: str) -> str:
    return profile.full_name if profile and profile.full_name else fallback


@partners_app.command("list")
def partners_list() -> None:
    """List all partnerships."""
    ctx = _build_context()
    partnerships = ctx.run(lambda b: b.partnerships.list_partnerships())

    table = Table(title="Accountability Partners", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Student 1", style="cyan")
    table.add_column("Student 2", style="cyan")
    table.add_column("Track")
    table.add_column("Cohort")
    for p in partnerships:
        table.add_row(
            p.id,
            _member_name(p.student1, p.student1_id),
            _member_name(p.student2, p.student2_id),
            p.track.name if p.track else p.track_id,
            p.cohort.name if p.cohort else p.cohort_id,
        )
    console.print(table)


@partners_app.command("auto-pair")
def partners_auto_pair(
    track: str = typer.Option(..., "--track", "-t", help="Track ID"),
    cohort: str = typer.Option(..., "--cohort", "-c", help="Cohort ID"),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Seconds before giving up (default: PAIRING_TIMEOUT_SECONDS)"
    ),
) -> None:
    """
    Pair every student of a track and cohort who has no partner yet.

    Students are paired in roster order; with an odd count the last one
    stays unpaired.
    """
    ctx = _build_context()
    limit = timeout or ctx.settings.pairing_timeout_seconds

    rprint(f"\n[bold cyan]Auto-pairing[/bold cyan] track {track}, cohort {cohort}")
    created = ctx.run(lambda b: b.partnerships.auto_pair_with_timeout(track, cohort, limit))

    for p in created:
        rprint(
            f"  [green]✓[/green] {_member_name(p.student1, p.student1_id)}"
            f" + {_member_name(p.student2, p.student2_id)}"
        )
    rprint(f"\n[bold green]Created {len(created)} partnerships[/bold green]")


@partners_app.command("candidates")
def partners_candidates(
    partnership_id: str = typer.Argument(..., help="Partnership ID"),
) -> None:
    """Students of the same track and cohort who could replace a member."""
    ctx = _build_context()

    async def _candidates(backend: Backend):
        partnership = await backend.partnerships.get_partnership(partnership_id)
        return await backend.partnerships.eligible_replacements(partnership)

    candidates = ctx.run(_candidates)

    table = Table(title="Eligible Replacements", show_header=True)
    table.add_column("Student ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Email")
    for enrollment in candidates:
        table.add_row(
            enrollment.user_id,
            enrollment.user.full_name if enrollment.user else "",
            (enrollment.user.email if enrollment.user else None) or "",
        )
    console.print(table)


@partners_app.command("reassign")
def partners_reassign(
    partnership_id: str = typer.Argument(..., help="Partnership ID"),
    student1: str | None = typer.Option(None, "--student1", help="New first member"),
    student2: str | None = typer.Option(None, "--student2", help="New second member"),
) -> None:
    """Replace one or both members of a partnership."""
    ctx = _build_context()
    updated = ctx.run(lambda b: b.partnerships.reassign(partnership_id, student1, student2))
    rprint(
        f"[green]✓[/green] Partnership {updated.id}: "
        f"{_member_name(updated.student1, updated.student1_id)} + "
        f"{_member_name(updated.student2, updated.student2_id)}"
    )


# ========================================
# WHITELIST COMMANDS
# ========================================

whitelist_app = typer.Typer(help="Paid-learner whitelist")
app.add_typer(whitelist_app, name="whitelist")


@whitelist_app.command("list")
def whitelist_list() -> None:
    """List whitelist entries."""
    ctx = _build_context()
    entries = ctx.run(lambda b: b.whitelist.list_entries())

    table = Table(title=f"Whitelist ({len(entries)})", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Email", style="cyan")
    table.add_column("Track")
    table.add_column("Cohort")
    table.add_column("Status")
    table.add_column("Added")
    for e in entries:
        table.add_row(
            e.id,
            e.email,
            e.track.name if e.track else "Unknown Track",
            e.cohort.name if e.cohort else "Unknown Cohort",
            e.status,
            (e.added_date or "")[:10],
        )
    console.print(table)


@whitelist_app.command("check")
def whitelist_check(
    email: str = typer.Argument(..., help="Email to check"),
    track: str = typer.Option(..., "--track", "-t", help="Track ID"),
    cohort: str = typer.Option(..., "--cohort", "-c", help="Cohort ID"),
) -> None:
    """Check whether an email may self-register for a track and cohort."""
    ctx = _build_context()
    allowed = ctx.run(lambda b: b.whitelist.is_whitelisted(email, track, cohort))
    if allowed:
        rprint(f"[green]✓[/green] {email} is whitelisted")
    else:
        rprint(f"[yellow]✗[/yellow] {email} is not whitelisted for this track/cohort")
        raise typer.Exit(code=1)


@whitelist_app.command("add")
def whitelist_add(
    email: str = typer.Argument(..., help="Email to whitelist"),
    track: str = typer.Option(..., "--track", "-t", help="Track ID"),
    cohort: str = typer.Option(..., "--cohort", "-c", help="Cohort ID"),
) -> None:
    """Add one email to the whitelist."""
    ctx = _build_context()
    entry = ctx.run(lambda b: b.whitelist.add_entry(email, track, cohort))
    rprint(f"[green]✓[/green] Added {entry.email} ({entry.id})")


@whitelist_app.command("import")
def whitelist_import(
    csv_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV: email,track,cohort"),
) -> None:
    """
    Import entries from a CSV file.

    The first line is a header; track and cohort are given by name.
    Lines whose names do not match are skipped.
    """
    ctx = _build_context()
    text = csv_file.read_text(encoding="utf-8")
    result = ctx.run(lambda b: b.whitelist.import_csv(text))

    rprint(f"[green]✓[/green] {len(result.added)} entries added to the whitelist")
    if result.skipped:
        lines = ", ".join(str(n) for n in result.skipped)
        rprint(f"[yellow]⚠[/yellow] Skipped lines: {lines}")


@whitelist_app.command("remove")
def whitelist_remove(
    entry_id: str = typer.Argument(..., help="Whitelist entry ID"),
) -> None:
    """Remove a whitelist entry."""
    ctx = _build_context()
    ctx.run(lambda b: b.whitelist.remove_entry(entry_id))
    rprint(f"[green]✓[/green] Removed {entry_id}")


@whitelist_app.command("export")
def whitelist_export(
    output: str | None = typer.Option(None, "--output", "-o", help="File or directory"),
) -> None:
    """Export the whitelist as CSV."""
    ctx = _build_context()
    entries = ctx.run(lambda b: b.whitelist.list_entries())
    path = _write_export(whitelist_csv(entries), output)
    rprint(f"[green]✓[/green] Exported {len(entries)} entries to {path}")


# ========================================
# SUBMISSION COMMANDS
# ========================================

submissions_app = typer.Typer(help="Task submissions and review")
app.add_typer(submissions_app, name="submissions")


@submissions_app.command("list")
def submissions_list(
    status: str | None = typer.Option(None, "--status", "-s", help="Filter by status"),
    track: str | None = typer.Option(None, "--track", "-t", help="Filter by track ID"),
) -> None:
    """List submissions, newest first."""
    ctx = _build_context()
    submissions = ctx.run(lambda b: b.submissions.list_submissions(status=status, track_id=track))

    table = Table(title=f"Submissions ({len(submissions)})", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Student", style="cyan")
    table.add_column("Assignment")
    table.add_column("Status")
    table.add_column("Submitted")
    for s in submissions:
        table.add_row(
            s.id,
            s.student.full_name if s.student else s.student_id,
            s.assignment.title if s.assignment else s.assignment_id,
            s.status.value,
            (s.submitted_at or "")[:10],
        )
    console.print(table)


@submissions_app.command("review")
def submissions_review(
    submission_id: str = typer.Argument(..., help="Submission ID"),
    status: str = typer.Option(..., "--status", "-s", help="approved, needs_changes or in_review"),
    reviewer: str = typer.Option(..., "--reviewer", "-r", help="Reviewer user ID"),
    feedback: str | None = typer.Option(None, "--feedback", "-f"),
    grade: str | None = typer.Option(None, "--grade", "-g"),
) -> None:
    """Record a review decision."""
    ctx = _build_context()
    submission = ctx.run(
        lambda b: b.submissions.review(submission_id, status, reviewer, feedback, grade)
    )
    rprint(f"[green]✓[/green] Submission {submission.id} marked {submission.status.value}")


@submissions_app.command("bulk")
def submissions_bulk(
    submission_ids: list[str] = typer.Argument(..., help="Submission IDs"),
    action: str = typer.Option(..., "--action", "-a", help="approve or reject"),
    reviewer: str = typer.Option(..., "--reviewer", "-r", help="Reviewer user ID"),
) -> None:
    """Approve or reject several submissions at once."""
    ctx = _build_context()
    result = ctx.run(lambda b: b.submissions.bulk_review(submission_ids, action, reviewer))

    rprint(f"[green]✓[/green] {len(result.updated)} submissions updated")
    if result.failed:
        rprint(f"[yellow]⚠[/yellow] Failed: {', '.join(result.failed)}")


@submissions_app.command("export")
def submissions_export(
    report: bool = typer.Option(False, "--report", help="Detailed report with grade and feedback"),
    status: str | None = typer.Option(None, "--status", "-s", help="Filter by status"),
    track: str | None = typer.Option(None, "--track", "-t", help="Filter by track ID"),
    output: str | None = typer.Option(None, "--output", "-o", help="File or directory"),
) -> None:
    """Export submissions as CSV."""
    ctx = _build_context()
    submissions = ctx.run(lambda b: b.submissions.list_submissions(status=status, track_id=track))
    export = submissions_report_csv(submissions) if report else submissions_csv(submissions)
    path = _write_export(export, output)
    rprint(f"[green]✓[/green] Exported {len(submissions)} submissions to {path}")


# ========================================
# CLARITY CALL COMMANDS
# ========================================

clarity_app = typer.Typer(help="Clarity-call requests")
app.add_typer(clarity_app, name="clarity-calls")


@clarity_app.command("list")
def clarity_calls_list() -> None:
    """List clarity-call requests."""
    ctx = _build_context()
    requests = ctx.run(lambda b: b.clarity_calls.list_requests())

    table = Table(title="Clarity Calls", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Student", style="cyan")
    table.add_column("Topic")
    table.add_column("Status")
    table.add_column("Scheduled")
    for r in requests:
        table.add_row(
            r.id,
            r.student.full_name if r.student else r.student_id,
            r.topic,
            r.status.value,
            r.scheduled_date or "",
        )
    console.print(table)


@clarity_app.command("update")
def clarity_calls_update(
    request_id: str = typer.Argument(..., help="Request ID"),
    status: str | None = typer.Option(None, "--status", "-s", help="pending, scheduled, completed, rejected"),
    scheduled_date: str | None = typer.Option(None, "--scheduled-date"),
    meeting_link: str | None = typer.Option(None, "--meeting-link"),
    notes: str | None = typer.Option(None, "--notes", help="Mentor notes"),
    feedback: str | None = typer.Option(None, "--feedback"),
) -> None:
    """Schedule, complete or reject a request."""
    ctx = _build_context()
    updated = ctx.run(
        lambda b: b.clarity_calls.update_request(
            request_id,
            status=status,
            scheduled_date=scheduled_date,
            meeting_link=meeting_link,
            mentor_notes=notes,
            feedback=feedback,
        )
    )
    rprint(f"[green]✓[/green] Clarity call {updated.id} is {updated.status.value}")


# ========================================
# DASHBOARD COMMANDS
# ========================================

dashboard_app = typer.Typer(help="Admin dashboard")
app.add_typer(dashboard_app, name="dashboard")


@dashboard_app.command("show")
def dashboard_show() -> None:
    """Headline numbers and per-track metrics."""
    ctx = _build_context()
    data = ctx.run(lambda b: b.dashboard.admin_dashboard())

    rprint("\n[bold cyan]Admin Dashboard[/bold cyan]")
    rprint(f"  Total students:        {data.total_students}")
    rprint(f"  Pending submissions:   {data.pending_submissions}")
    rprint(f"  Approved certificates: {data.approved_certificates}")
    rprint(f"  Completion rate:       {data.completion_rate}%\n")

    if data.students_by_track:
        table = Table(title="Students by Track", show_header=True)
        table.add_column("Track", style="cyan")
        table.add_column("Students", justify="right")
        for row in data.students_by_track:
            table.add_row(row.track, str(row.count))
        console.print(table)

    if data.track_metrics:
        table = Table(title="Track Metrics", show_header=True)
        table.add_column("Track", style="cyan")
        table.add_column("Completion", justify="right")
        table.add_column("Tasks", justify="right")
        for metric in data.track_metrics:
            table.add_row(metric.track, f"{metric.completion:g}%", metric.tasks)
        console.print(table)


@dashboard_app.command("analytics")
def dashboard_analytics(
    date_range: str = typer.Option("30d", "--range", "-r", help="7d, 30d or 90d"),
) -> None:
    """Submission activity over a date range."""
    ctx = _build_context()
    analytics = ctx.run(lambda b: b.dashboard.admin_analytics(date_range))
    metrics = analytics.engagement

    rprint(f"\n[bold cyan]Analytics ({analytics.date_range})[/bold cyan]")
    rprint(f"  Total submissions:   {metrics.total_submissions}")
    rprint(f"  Recent submissions:  {metrics.recent_submissions}")
    rprint(f"  Approval rate:       {metrics.approval_rate}%")
    rprint(f"  Avg per day:         {metrics.avg_submissions_per_day}")
    if analytics.recent_actions:
        rprint(f"  Recent admin actions: {len(analytics.recent_actions)}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
