"""CI matrix: map a TEST_KIND to one validation pipeline.

Pipelines are plain lists of steps run through the same echo-then-run
path as the build driver. Every step is gated on the previous one; the
first failure raises StepFailedError and ends the run.
"""

import os
import sys
from enum import Enum
from typing import Callable, Optional

from comprakt_ci.config import BuildProfile, ConfigError, EnvConfig
from comprakt_ci.constants import COMPILER_BINARY_ENV, DEFAULT_INTEGRATION_COMMAND
from comprakt_ci.launcher import artifact_path, resolve_binary
from comprakt_ci.phases import phase_command
from comprakt_ci.step_runner import CommandRunner, debug, execute, info, run_command


class TestKind(str, Enum):
    __test__ = False  # not a pytest class

    INTERNAL_DEBUG = "internal-debug"
    INTERNAL_RELEASE = "internal-release"
    DIFFERENTIAL_LEXER = "differential-lexer"
    DIFFERENTIAL_SYNTAX = "differential-syntax"
    DIFFERENTIAL_AST = "differential-ast"
    DIFFERENTIAL_SEMANTIC = "differential-semantic"
    SUBMISSION_INTEGRATION = "submission-integration"

    @property
    def differential_category(self) -> Optional[str]:
        """mjtest mode for differential kinds, e.g. 'lexer'."""
        prefix = "differential-"
        if self.value.startswith(prefix):
            return self.value[len(prefix):]
        return None


def parse_test_kind(value: Optional[str]) -> TestKind:
    """
    Raises:
        ConfigError: if `value` is missing or not a known test kind.
    """
    if not value:
        raise ConfigError("TEST_KIND is not set")
    try:
        return TestKind(value)
    except ValueError:
        known = ", ".join(kind.value for kind in TestKind)
        raise ConfigError(f"unknown TEST_KIND '{value}' (expected one of: {known})")


def widen_stack_limit() -> None:
    """Raise the soft stack limit to the hard limit; children inherit it."""
    import resource  # POSIX only

    soft, hard = resource.getrlimit(resource.RLIMIT_STACK)
    if soft != hard:
        resource.setrlimit(resource.RLIMIT_STACK, (hard, hard))
        info(f"stack size limit raised from {soft} to {hard}")


def run_internal(
    profile: BuildProfile,
    env_config: EnvConfig,
    runner: CommandRunner = run_command,
    widen_stack: Callable[[], None] = widen_stack_limit,
) -> None:
    """fmt check, then clippy with warnings as errors, then the test suite."""
    if profile is BuildProfile.RELEASE:
        widen_stack()

    for phase in ("fmt", "lint", "test"):
        execute(phase_command(phase, profile), runner=runner, cwd=env_config.root)


def setup_mjtest(env_config: EnvConfig, runner: CommandRunner = run_command) -> None:
    """Fetch the reference corpus if absent, then sync its submodules."""
    mjtest_dir = env_config.mjtest_dir
    if not mjtest_dir.exists():
        execute(
            ["git", "clone", env_config.mjtest_repo, str(mjtest_dir)],
            runner=runner,
            cwd=env_config.root,
        )
    else:
        info(f"reusing reference corpus at '{mjtest_dir}'")
    execute(
        ["git", "submodule", "update", "--init", "--recursive"],
        runner=runner,
        cwd=mjtest_dir,
    )


def run_differential(
    category: str,
    env_config: EnvConfig,
    runner: CommandRunner = run_command,
) -> None:
    """Release build, corpus setup, then the corpus driver for one category."""
    execute(phase_command("build", BuildProfile.RELEASE), runner=runner, cwd=env_config.root)
    setup_mjtest(env_config, runner=runner)

    # the corpus runs against the release artifact regardless of COMPRAKT_PROFILE
    binary = artifact_path(env_config.root, BuildProfile.RELEASE.value)
    execute(
        [
            sys.executable,
            str(env_config.mjtest_dir / "mjt.py"),
            "--timeout", str(env_config.mjtest_timeout),
            category,
            str(binary),
        ],
        runner=runner,
        cwd=env_config.mjtest_dir,
    )


def run_submission(env_config: EnvConfig, runner: CommandRunner = run_command) -> None:
    """Full packaging build as an external process, then the integration suite."""
    execute(
        [sys.executable, "-m", "comprakt_ci.cli", "build"],
        runner=runner,
        cwd=env_config.root,
    )

    binary = resolve_binary(env_config)
    env = dict(os.environ)
    env[COMPILER_BINARY_ENV] = str(binary.resolved_path)
    info(f"{COMPILER_BINARY_ENV}={binary.resolved_path}")
    execute(DEFAULT_INTEGRATION_COMMAND, runner=runner, cwd=env_config.root, env=env)


def dispatch(
    test_kind: TestKind,
    env_config: EnvConfig,
    runner: CommandRunner = run_command,
    widen_stack: Callable[[], None] = widen_stack_limit,
) -> None:
    """
    Run the pipeline selected by `test_kind`.

    Raises:
        StepFailedError: from the first failing step.
    """
    info(f"TEST_KIND={test_kind.value}")
    debug(f"workspace root: {env_config.root}", env_config.debug)

    if test_kind is TestKind.INTERNAL_DEBUG:
        run_internal(BuildProfile.DEBUG, env_config, runner=runner, widen_stack=widen_stack)
    elif test_kind is TestKind.INTERNAL_RELEASE:
        run_internal(BuildProfile.RELEASE, env_config, runner=runner, widen_stack=widen_stack)
    elif test_kind.differential_category is not None:
        run_differential(test_kind.differential_category, env_config, runner=runner)
    elif test_kind is TestKind.SUBMISSION_INTEGRATION:
        run_submission(env_config, runner=runner)
    else:
        raise ConfigError(f"no pipeline for TEST_KIND '{test_kind.value}'")
