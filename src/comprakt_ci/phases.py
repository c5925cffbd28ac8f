"""The fixed phase table of the build driver."""

from dataclasses import dataclass
from typing import List, Tuple

from comprakt_ci.config import BuildProfile, ExecutionConfig
from comprakt_ci.constants import PHASE_ORDER


@dataclass(frozen=True)
class Phase:
    name: str
    enabled: bool
    command: Tuple[str, ...]


def phase_command(name: str, profile: BuildProfile) -> List[str]:
    """Cargo invocation for one phase."""
    flags = profile.cargo_flags
    if name == "clean":
        return ["cargo", "clean"]
    if name == "fmt":
        return ["cargo", "fmt", "--all", "--", "--check"]
    if name == "lint":
        # warnings fail the build
        return [
            "cargo", "clippy", "--all", *flags,
            "--all-targets", "--all-features", "--", "-D", "warnings",
        ]
    if name in ("build", "test", "check"):
        return ["cargo", name, "--all", *flags]
    raise ValueError(f"Unknown phase: {name}")


def build_phases(config: ExecutionConfig) -> List[Phase]:
    """Phases in PHASE_ORDER, each flagged enabled or not by `config`."""
    return [
        Phase(
            name=name,
            enabled=config.is_enabled(name),
            command=tuple(phase_command(name, config.profile)),
        )
        for name in PHASE_ORDER
    ]
