"""Launch the built compiler binary.

The profile used for lookup comes from COMPRAKT_PROFILE and is independent
of the profile the build driver was run with. The launcher adds no output
of its own on success; the child's exit status becomes ours.
"""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import click

from comprakt_ci.config import EnvConfig
from comprakt_ci.constants import ARTIFACT_NAME
from comprakt_ci.step_runner import exit_status

# Shell conventions for a failed exec
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class BinaryReference:
    """Where the launcher will look for the compiler."""

    profile: str
    profile_env_override: Optional[str]
    resolved_path: Path


def artifact_path(root: Path, profile: str, artifact: str = ARTIFACT_NAME) -> Path:
    return root / "target" / profile / artifact


def resolve_binary(env_config: EnvConfig, artifact: str = ARTIFACT_NAME) -> BinaryReference:
    """Resolve `<root>/target/<profile>/<artifact>`. Existence is not checked."""
    return BinaryReference(
        profile=env_config.launch_profile,
        profile_env_override=env_config.launch_profile_override,
        resolved_path=artifact_path(env_config.root, env_config.launch_profile, artifact),
    )


def launch(binary: BinaryReference, args: Sequence[str]) -> int:
    """
    Run the binary with `args` verbatim and return its exit status.

    A missing binary yields 127 and a non-executable one 126, with a
    one-line diagnostic on stderr. A binary killed by signal N yields
    128 + N. There is no fallback search path.
    """
    path = binary.resolved_path
    try:
        result = subprocess.run([str(path), *args])
    except FileNotFoundError:
        click.echo(f"[ERROR] {path}: no such file", err=True)
        return EXIT_NOT_FOUND
    except PermissionError:
        click.echo(f"[ERROR] {path}: permission denied", err=True)
        return EXIT_NOT_EXECUTABLE
    return exit_status(result.returncode)
