"""Tests for the read-only build report summary."""

import json

from comprakt_ci.observe import find_reports, format_duration, print_summary


def write_report(directory, name, status, start, phases=None):
    directory.mkdir(parents=True, exist_ok=True)
    data = {
        "profile": "release",
        "status": status,
        "phases": phases or [],
        "start_time": start,
        "end_time": start,
        "duration_seconds": 1.5,
    }
    (directory / f"build_{name}.json").write_text(json.dumps(data))


class TestFindReports:

    def test_missing_dir(self, tmp_path):
        assert find_reports(tmp_path / "nope") == []

    def test_most_recent_first(self, tmp_path):
        write_report(tmp_path, "a", "SUCCESS", "2026-01-01T10:00:00")
        write_report(tmp_path, "b", "FAILED", "2026-01-02T10:00:00")
        reports = find_reports(tmp_path)
        assert [r["status"] for r in reports] == ["FAILED", "SUCCESS"]
        assert reports[0]["_report_file"].endswith("build_b.json")

    def test_unreadable_report_skipped(self, tmp_path, capsys):
        write_report(tmp_path, "ok", "SUCCESS", "2026-01-01T10:00:00")
        (tmp_path / "build_broken.json").write_text("{not json")
        assert len(find_reports(tmp_path)) == 1
        assert "unreadable report" in capsys.readouterr().err

    def test_report_without_required_keys_skipped(self, tmp_path, capsys):
        write_report(tmp_path, "ok", "SUCCESS", "2026-01-01T10:00:00")
        (tmp_path / "build_partial.json").write_text('{"status": "FAILED"}')
        (tmp_path / "build_list.json").write_text("[1, 2]")
        reports = find_reports(tmp_path)
        assert [r["status"] for r in reports] == ["SUCCESS"]
        err = capsys.readouterr().err
        assert "lacks profile, start_time, duration_seconds" in err
        assert "not a build report" in err

    def test_summary_survives_partial_report(self, tmp_path, capsys):
        write_report(tmp_path, "ok", "SUCCESS", "2026-01-01T10:00:00")
        (tmp_path / "build_zz.json").write_text('{"status": "FAILED", "start_time": "2027-01-01T00:00:00"}')
        print_summary(tmp_path)
        assert "Status:      SUCCESS" in capsys.readouterr().out


class TestFormatDuration:

    def test_units(self):
        assert format_duration(0.25) == "250ms"
        assert format_duration(12.34) == "12.3s"
        assert format_duration(125) == "2m 5s"


class TestPrintSummary:

    def test_failed_run_shows_reproduce_command(self, tmp_path, capsys):
        write_report(tmp_path, "x", "FAILED", "2026-01-01T10:00:00", phases=[
            {"name": "clean", "command": "cargo clean", "status": "SKIPPED", "exit_code": None},
            {"name": "build", "command": "cargo build --all --release", "status": "FAILED", "exit_code": 101},
        ])
        print_summary(tmp_path)
        out = capsys.readouterr().out
        assert "Status:      FAILED" in out
        assert "build  FAILED (exit 101)" in out
        assert "cargo build --all --release" in out.split("Reproduce with:")[1]

    def test_history_is_limited(self, tmp_path, capsys):
        for i in range(7):
            write_report(tmp_path, str(i), "SUCCESS", f"2026-01-0{i + 1}T10:00:00")
        print_summary(tmp_path, limit=3)
        out = capsys.readouterr().out
        assert "HISTORY" in out
        assert "... and 4 more" in out
