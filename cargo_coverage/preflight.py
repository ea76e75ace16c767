"""Preflight checks run before any build step.

Verifies that rustup, cargo and grcov are on PATH and that the toolchain
channel used for the instrumented build is installed. Checks run in a fixed
order and stop at the first failure, so only one problem is reported.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum, auto
from typing import Mapping, TextIO

from cargo_coverage.config import CoverageConfig

BOLD = "\x1b[1m"
NORMAL = "\x1b[0m"


class RequirementKind(Enum):
    """What a preflight check looks for."""

    TOOL = auto()  # Executable resolvable on PATH
    TOOLCHAIN = auto()  # Channel listed by `rustup toolchain list`


@dataclass(frozen=True)
class Requirement:
    """A single preflight check and how to fix it when it fails."""

    name: str
    kind: RequirementKind
    message: str
    hint_label: str
    hint: str


TOOL_REQUIREMENTS = (
    Requirement(
        name="rustup",
        kind=RequirementKind.TOOL,
        message="rustup could not be found!",
        hint_label="Read the Docs:",
        hint="https://rustup.rs/",
    ),
    Requirement(
        name="cargo",
        kind=RequirementKind.TOOL,
        message="cargo could not be found!",
        hint_label="Read the Docs:",
        hint="https://doc.rust-lang.org/cargo/",
    ),
    Requirement(
        name="grcov",
        kind=RequirementKind.TOOL,
        message="grcov could not be found!",
        hint_label="Read the Docs:",
        hint="https://github.com/mozilla/grcov",
    ),
)


def toolchain_requirement(channel: str) -> Requirement:
    """Requirement for an installed rustup toolchain channel."""
    return Requirement(
        name=channel,
        kind=RequirementKind.TOOLCHAIN,
        message=f"Rust {channel} channel could not be found!",
        hint_label="Run and try again:",
        hint=f"rustup toolchain install {channel}",
    )


def requirements_for(config: CoverageConfig) -> list[Requirement]:
    """All preflight requirements for a run, in the order they are checked."""
    return [*TOOL_REQUIREMENTS, toolchain_requirement(config.toolchain)]


@dataclass
class PreflightFailure:
    """The first requirement that was not met."""

    requirement: Requirement

    def render(self, color: bool = False) -> str:
        """Format the diagnostic shown to the user.

        Args:
            color: Wrap the "error:" prefix in bold terminal escapes

        Returns:
            Multi-line message ending with a newline
        """
        bold, normal = (BOLD, NORMAL) if color else ("", "")
        req = self.requirement
        return (
            f"{bold}error: {normal}{req.message}\n"
            "\n"
            f"{req.hint_label}\n"
            f"    {req.hint}\n"
        )

    def report(self, stream: TextIO | None = None) -> None:
        """Write the diagnostic, in bold when the stream is a terminal."""
        stream = stream or sys.stdout
        stream.write(self.render(color=_is_terminal(stream)))
        stream.flush()


def _is_terminal(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def check_command(name: str, env: Mapping[str, str] | None = None) -> bool:
    """Check whether an executable can be resolved on PATH.

    Args:
        name: Executable name
        env: Environment whose PATH is searched (default: os.environ)
    """
    path = (env if env is not None else os.environ).get("PATH", os.defpath)
    return shutil.which(name, path=path) is not None


def toolchain_installed(channel: str, env: Mapping[str, str] | None = None) -> bool:
    """Check whether rustup lists the given toolchain channel.

    Any line of `rustup toolchain list` containing the channel name counts,
    e.g. "nightly-x86_64-unknown-linux-gnu" for "nightly". A failing rustup
    is treated as the channel being absent, and so is a blank channel name.
    """
    if not channel.strip():
        return False

    try:
        result = subprocess.run(
            ["rustup", "toolchain", "list"],
            capture_output=True,
            text=True,
            env=dict(env) if env is not None else None,
        )
    except OSError:
        return False

    if result.returncode != 0:
        return False

    return any(channel in line for line in result.stdout.splitlines())


def is_satisfied(requirement: Requirement, env: Mapping[str, str] | None = None) -> bool:
    if requirement.kind is RequirementKind.TOOL:
        return check_command(requirement.name, env)
    return toolchain_installed(requirement.name, env)


def run_preflight(
    config: CoverageConfig,
    env: Mapping[str, str] | None = None,
    verbose: bool = False,
) -> PreflightFailure | None:
    """Run every preflight check, stopping at the first failure.

    Args:
        config: Coverage configuration (supplies the toolchain channel)
        env: Environment used for PATH lookups and for running rustup
        verbose: Print each check as it passes

    Returns:
        PreflightFailure for the first unmet requirement, or None if all pass
    """
    for requirement in requirements_for(config):
        if not is_satisfied(requirement, env):
            return PreflightFailure(requirement)
        if verbose:
            print(f"  found {requirement.name}", file=sys.stderr)
    return None
