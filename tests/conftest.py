"""Shared fixtures: a clean driver environment and a recording command runner."""

from pathlib import Path

import pytest

from comprakt_ci.config import EnvConfig

DRIVER_ENV_VARS = [
    "COMPRAKT_ROOT",
    "COMPRAKT_PROFILE",
    "TEST_KIND",
    "MJTEST_REPO",
    "MJTEST_DIR",
    "MJTEST_TIMEOUT",
    "COMPRAKT_CI_BUNDLE",
    "COMPRAKT_REPORT_DIR",
    "COMPRAKT_DEBUG",
    "COMPILER_BINARY",
]


class RecordingRunner:
    """Spy for CommandRunner: records every call, returns scripted exit codes.

    `fail_on` maps a command's first N words (joined by spaces) to the exit
    code it should return; everything else succeeds.
    """

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on or {}

    def __call__(self, command, cwd=None, env=None):
        command = [str(part) for part in command]
        self.calls.append({"command": command, "cwd": cwd, "env": env})
        joined = " ".join(command)
        for prefix, code in self.fail_on.items():
            if joined.startswith(prefix):
                return code
        return 0

    @property
    def commands(self):
        return [" ".join(c["command"]) for c in self.calls]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the driver reads."""
    for name in DRIVER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def recorder():
    return RecordingRunner()


@pytest.fixture
def env_config(tmp_path):
    return make_env_config(tmp_path)


def make_env_config(root: Path, **overrides) -> EnvConfig:
    values = dict(
        root=root,
        launch_profile="release",
        launch_profile_override=None,
        test_kind=None,
        mjtest_repo="https://example.invalid/mjtest.git",
        mjtest_dir=root / "mjtest",
        mjtest_timeout=10,
        ci_bundle_file=None,
        report_dir=None,
        debug=False,
    )
    values.update(overrides)
    return EnvConfig(**values)
