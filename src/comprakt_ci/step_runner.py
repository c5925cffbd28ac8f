"""Command execution and the fail-fast phase runner.

Every command is echoed before it runs so a failing step can be reproduced
by hand. Disabled phases are logged as [SKIP] rather than left out.
Commands inherit stdout/stderr; only the exit status is consumed.
"""

import json
import shlex
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import click

from comprakt_ci.config import BuildProfile, EnvConfig, ExecutionConfig
from comprakt_ci.phases import Phase, build_phases


class StepFailedError(Exception):
    """A command exited non-zero. Nothing after it runs."""

    def __init__(self, command: Sequence[str], exit_code: int):
        self.command = list(command)
        self.exit_code = exit_code
        super().__init__(
            f"command failed with exit code {exit_code}: {format_command(command)}"
        )


CommandRunner = Callable[[Sequence[str], Optional[Path], Optional[Mapping[str, str]]], int]


def format_command(command: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(part)) for part in command)


def info(message: str) -> None:
    click.echo(f"[INFO] {message}")


def debug(message: str, enabled: bool) -> None:
    if enabled:
        click.echo(f"[DEBUG] {message}")


def exit_status(returncode: int) -> int:
    """A child killed by signal N reports -N; shells report 128 + N."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def run_command(
    command: Sequence[str],
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> int:
    """Run `command` to completion with inherited streams, return its status."""
    result = subprocess.run(
        [str(part) for part in command],
        cwd=str(cwd) if cwd is not None else None,
        env=dict(env) if env is not None else None,
    )
    return exit_status(result.returncode)


def execute(
    command: Sequence[str],
    runner: CommandRunner = run_command,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> None:
    """
    Echo and run one command.

    Raises:
        StepFailedError: if the command exits non-zero.
    """
    click.echo(format_command(command))
    exit_code = exit_status(runner(command, cwd, env))
    if exit_code != 0:
        raise StepFailedError(command, exit_code)


@dataclass
class PhaseResult:
    name: str
    command: List[str]
    status: str = "PENDING"  # PENDING | SKIPPED | SUCCESS | FAILED
    exit_code: Optional[int] = None


@dataclass
class RunReport:
    profile: BuildProfile
    start_time: datetime
    end_time: Optional[datetime] = None
    phases: List[PhaseResult] = field(default_factory=list)

    @property
    def status(self) -> str:
        if any(p.status == "FAILED" for p in self.phases):
            return "FAILED"
        if any(p.status == "PENDING" for p in self.phases):
            return "RUNNING"
        return "SUCCESS"

    def to_dict(self) -> Dict:
        end_time = self.end_time or self.start_time
        return {
            "profile": self.profile.value,
            "status": self.status,
            "phases": [
                {
                    "name": p.name,
                    "command": format_command(p.command),
                    "status": p.status,
                    "exit_code": p.exit_code,
                }
                for p in self.phases
            ],
            "start_time": self.start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "duration_seconds": (end_time - self.start_time).total_seconds(),
        }


def run_phases(
    phases: Sequence[Phase],
    report: RunReport,
    runner: CommandRunner = run_command,
    cwd: Optional[Path] = None,
) -> RunReport:
    """
    Run enabled phases in order, stopping at the first failure.

    Results are recorded in `report` as they happen, so a report written
    after a failure still shows which phases ran.

    Raises:
        StepFailedError: from the first phase whose command exits non-zero.
    """
    for phase in phases:
        result = PhaseResult(name=phase.name, command=list(phase.command))
        report.phases.append(result)

        if not phase.enabled:
            click.echo(f"[SKIP] {format_command(phase.command)}")
            result.status = "SKIPPED"
            continue

        try:
            execute(phase.command, runner=runner, cwd=cwd)
        except StepFailedError as e:
            result.status = "FAILED"
            result.exit_code = e.exit_code
            raise
        except Exception:
            # e.g. cargo not on PATH
            result.status = "FAILED"
            raise
        result.status = "SUCCESS"
        result.exit_code = 0

    return report


def write_run_report(report: RunReport, output_dir: Path) -> Path:
    """
    Write the run report as JSON.

    Filename: build_{timestamp}.json
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    end_time = report.end_time or datetime.now()
    report_path = output_dir / f"build_{end_time.strftime('%Y%m%d_%H%M%S_%f')}.json"
    report_path.write_text(json.dumps(report.to_dict(), indent=2))

    return report_path


def run_build(
    config: ExecutionConfig,
    env_config: EnvConfig,
    runner: CommandRunner = run_command,
) -> RunReport:
    """
    Main entry point of the build driver: run the phase table for `config`
    inside the workspace root, then write a report if a report dir is set.

    Raises:
        StepFailedError: from the first failing phase (the report is still
            written; a report that cannot be written is logged, not raised).
        OSError: if the run succeeded but its report could not be written.
    """
    root = env_config.root
    info(f"change working directory to '{root}'")
    debug(f"enabled phases: {', '.join(config.enabled_phases()) or 'none'}", env_config.debug)

    report = RunReport(profile=config.profile, start_time=datetime.now())
    failed = True
    try:
        run_phases(build_phases(config), report, runner=runner, cwd=root)
        failed = False
    finally:
        report.end_time = datetime.now()
        if env_config.report_dir is not None:
            try:
                report_path = write_run_report(report, env_config.report_dir)
            except OSError as e:
                click.echo(f"[ERROR] could not write report: {e}", err=True)
                # the phase failure in flight is the error that matters
                if not failed:
                    raise
            else:
                info(f"report written to {report_path}")

    return report
