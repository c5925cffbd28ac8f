"""Read-only summary of build driver run reports."""

import json
from pathlib import Path
from typing import List

import click

REQUIRED_REPORT_KEYS = ("status", "profile", "start_time", "duration_seconds")


def find_reports(reports_dir: Path) -> List[dict]:
    """Load all build reports in `reports_dir`, most recent first."""
    reports = []

    if not reports_dir.exists():
        return reports

    for f in reports_dir.glob("build_*.json"):
        try:
            data = json.loads(f.read_text())
        except (json.JSONDecodeError, IOError) as e:
            click.echo(f"[SKIP] unreadable report {f}: {e}", err=True)
            continue
        if not isinstance(data, dict):
            click.echo(f"[SKIP] not a build report: {f}", err=True)
            continue
        missing = [key for key in REQUIRED_REPORT_KEYS if key not in data]
        if missing:
            click.echo(f"[SKIP] report {f} lacks {', '.join(missing)}", err=True)
            continue
        data["_report_file"] = str(f)
        reports.append(data)

    reports.sort(key=lambda r: r.get("start_time", ""), reverse=True)
    return reports


def format_duration(seconds: float) -> str:
    """Format duration in human-readable form."""
    if seconds < 1:
        return f"{seconds*1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.0f}s"


STATUS_ICONS = {"SUCCESS": "✓", "FAILED": "✗", "SKIPPED": "-"}


def print_summary(reports_dir: Path, limit: int = 5) -> None:
    """Print the latest run in detail and a short history below it."""
    reports = find_reports(reports_dir)

    click.echo("=" * 60)
    click.echo("BUILD SUMMARY")
    click.echo("=" * 60)
    click.echo()

    if not reports:
        click.echo("No build reports found.")
        click.echo(f"  Searched: {reports_dir}")
        return

    latest = reports[0]
    click.echo("LATEST RUN")
    click.echo("-" * 40)
    click.echo(f"  Status:      {latest['status']}")
    click.echo(f"  Profile:     {latest['profile']}")
    click.echo(f"  Duration:    {format_duration(latest['duration_seconds'])}")
    click.echo(f"  Time:        {latest['start_time'][:19]}")
    click.echo(f"  Report:      {latest['_report_file']}")
    click.echo()

    for phase in latest.get("phases", []):
        icon = STATUS_ICONS.get(phase["status"], "?")
        exit_code = "" if phase["exit_code"] is None else f" (exit {phase['exit_code']})"
        click.echo(f"    {icon} {phase['name']:<6} {phase['status']}{exit_code}")

    failed = [p for p in latest.get("phases", []) if p["status"] == "FAILED"]
    if failed:
        click.echo()
        click.echo("  Reproduce with:")
        click.echo(f"    {failed[0]['command']}")
    click.echo()

    if len(reports) > 1:
        click.echo("HISTORY")
        click.echo("-" * 40)
        for r in reports[:limit]:
            icon = STATUS_ICONS.get(r["status"], "?")
            click.echo(f"    {icon} {r['start_time'][:16]} - {r['status']} ({r['profile']})")
        if len(reports) > limit:
            click.echo(f"    ... and {len(reports) - limit} more")
        click.echo()
