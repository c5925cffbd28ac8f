"""Configuration for the build driver.

Two immutable values are built once per invocation:

- ExecutionConfig, parsed from the build driver's command line tokens
- EnvConfig, read from environment variables (after .env is loaded)

Neither is re-read or mutated after startup.
"""

import json
import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import yaml
from dotenv import load_dotenv

from comprakt_ci.constants import (
    DEFAULT_CI_BUNDLE,
    DEFAULT_LAUNCH_PROFILE,
    DEFAULT_MJTEST_DIRNAME,
    DEFAULT_MJTEST_REPO,
    DEFAULT_MJTEST_TIMEOUT_S,
    PHASE_ORDER,
)
from comprakt_ci.paths import resolve_base_dir


class ConfigError(Exception):
    """Raised for unrecognized tokens, test kinds or bad environment values."""
    pass


class BuildProfile(str, Enum):
    DEBUG = "debug"
    RELEASE = "release"

    @property
    def cargo_flags(self) -> List[str]:
        return ["--release"] if self is BuildProfile.RELEASE else []


@dataclass(frozen=True)
class ExecutionConfig:
    """Which phases run, and with which cargo profile."""

    profile: BuildProfile = BuildProfile.RELEASE
    do_clean: bool = True
    do_fmt: bool = False
    do_lint: bool = False
    do_build: bool = True
    do_test: bool = False
    do_check: bool = False

    def is_enabled(self, phase: str) -> bool:
        return getattr(self, f"do_{phase}")

    def enabled_phases(self) -> List[str]:
        return [p for p in PHASE_ORDER if self.is_enabled(p)]


# Tokens accepted for compatibility with the benchmark host, no effect
IGNORED_TOKENS = ("--speedcenter",)


def parse_build_args(
    tokens: Sequence[str],
    ci_bundle: Optional[Dict[str, bool]] = None,
) -> ExecutionConfig:
    """
    Parse the build driver's tokens into an ExecutionConfig.

    Tokens are processed left to right. `--release`/`--debug` follow
    last-wins; `--ci` overwrites every field its bundle names, including
    fields set by earlier tokens. The whole list is parsed before anything
    runs, so an invalid token never leaves partial side effects.

    Raises:
        ConfigError: on the first unrecognized token.
    """
    bundle = DEFAULT_CI_BUNDLE if ci_bundle is None else ci_bundle
    config = ExecutionConfig()

    for token in tokens:
        if token in IGNORED_TOKENS:
            continue
        elif token == "--noclean":
            config = replace(config, do_clean=False)
        elif token == "--debug":
            config = replace(config, profile=BuildProfile.DEBUG)
        elif token == "--release":
            config = replace(config, profile=BuildProfile.RELEASE)
        elif token == "--ci":
            fields = {f"do_{phase}": bool(value) for phase, value in bundle.items()}
            config = replace(config, profile=BuildProfile.DEBUG, **fields)
        else:
            raise ConfigError(f"invalid argument: {token}")

    return config


def load_ci_bundle(bundle_file: Path) -> Dict[str, bool]:
    """
    Load a `--ci` phase bundle from YAML or JSON.

    The file maps phase names to booleans. Phases it leaves out keep
    their value from DEFAULT_CI_BUNDLE.
    """
    if not bundle_file.exists():
        raise ConfigError(f"CI bundle file not found: {bundle_file}")

    content = bundle_file.read_text()
    if bundle_file.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(content)
    elif bundle_file.suffix == ".json":
        data = json.loads(content)
    else:
        raise ConfigError(
            f"Unsupported CI bundle type: {bundle_file.suffix}. Use .yaml, .yml, or .json"
        )

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"CI bundle must be a mapping of phase -> bool: {bundle_file}")

    unknown = [key for key in data if key not in PHASE_ORDER]
    if unknown:
        raise ConfigError(f"Unknown phases in CI bundle: {', '.join(map(str, unknown))}")
    for key, value in data.items():
        if not isinstance(value, bool):
            raise ConfigError(f"CI bundle value for '{key}' must be true or false, got {value!r}")

    bundle = dict(DEFAULT_CI_BUNDLE)
    bundle.update(data)
    return bundle


@dataclass(frozen=True)
class EnvConfig:
    """Environment-driven settings, populated once at startup."""

    root: Path
    launch_profile: str
    launch_profile_override: Optional[str]
    test_kind: Optional[str]
    mjtest_repo: str
    mjtest_dir: Path
    mjtest_timeout: int
    ci_bundle_file: Optional[Path]
    report_dir: Optional[Path]
    debug: bool


def resolve_workspace_root(script_path: Optional[str] = None) -> Path:
    """
    COMPRAKT_ROOT wins; otherwise the canonical directory of the invoking
    script; otherwise the current directory.
    """
    override = os.environ.get("COMPRAKT_ROOT")
    if override:
        return Path(override).resolve()
    if script_path:
        return resolve_base_dir(script_path)
    return Path.cwd()


def load_env_config(script_path: Optional[str] = None) -> EnvConfig:
    """
    Load configuration from environment variables.

    Raises:
        ConfigError: If a variable holds a value that cannot be used.
    """
    load_dotenv()

    root = resolve_workspace_root(script_path)

    launch_profile_override = os.environ.get("COMPRAKT_PROFILE") or None
    launch_profile = launch_profile_override or DEFAULT_LAUNCH_PROFILE
    if launch_profile not in {p.value for p in BuildProfile}:
        raise ConfigError(
            f"COMPRAKT_PROFILE must be 'debug' or 'release', got '{launch_profile}'"
        )

    timeout_raw = os.environ.get("MJTEST_TIMEOUT", str(DEFAULT_MJTEST_TIMEOUT_S))
    try:
        mjtest_timeout = int(timeout_raw)
    except ValueError:
        raise ConfigError(f"MJTEST_TIMEOUT must be an integer, got '{timeout_raw}'")
    if mjtest_timeout <= 0:
        raise ConfigError(f"MJTEST_TIMEOUT must be positive, got {mjtest_timeout}")

    mjtest_dir = os.environ.get("MJTEST_DIR")
    bundle_file = os.environ.get("COMPRAKT_CI_BUNDLE")
    report_dir = os.environ.get("COMPRAKT_REPORT_DIR")

    return EnvConfig(
        root=root,
        launch_profile=launch_profile,
        launch_profile_override=launch_profile_override,
        test_kind=os.environ.get("TEST_KIND") or None,
        mjtest_repo=os.environ.get("MJTEST_REPO") or DEFAULT_MJTEST_REPO,
        mjtest_dir=Path(mjtest_dir) if mjtest_dir else root / DEFAULT_MJTEST_DIRNAME,
        mjtest_timeout=mjtest_timeout,
        ci_bundle_file=Path(bundle_file) if bundle_file else None,
        report_dir=Path(report_dir) if report_dir else None,
        debug=bool(os.environ.get("COMPRAKT_DEBUG")),
    )
