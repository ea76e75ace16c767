"""The build-and-report sequence.

Each step is an external command run in the project root with the
instrumentation environment. Steps run strictly in order and the pipeline
stops at the first one that fails.
"""

from __future__ import annotations

import os
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping

from cargo_coverage.config import CoverageConfig

# Exit code used when a step's executable could not be started
SPAWN_FAILURE_CODE = 127


@dataclass
class StepResult:
    """Result from running a single pipeline step."""

    name: str
    command: list[str]
    returncode: int
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass
class PipelineResult:
    """Outcome of a whole pipeline run."""

    steps: list[StepResult] = field(default_factory=list)

    @property
    def failed_step(self) -> StepResult | None:
        for step in self.steps:
            if not step.success:
                return step
        return None

    @property
    def exit_code(self) -> int:
        failed = self.failed_step
        return failed.returncode if failed else 0

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self.steps]


def clean_command(config: CoverageConfig) -> list[str]:
    return ["cargo", "clean"]


def cargo_test_command(config: CoverageConfig) -> list[str]:
    """cargo test on the coverage toolchain, one test thread at a time."""
    return [
        "cargo", f"+{config.toolchain}", "test",
        "--", f"--test-threads={config.test_threads}",
    ]


def report_command(config: CoverageConfig) -> list[str]:
    """grcov invocation that turns the profiling data into a report."""
    return [
        "grcov", ".",
        "-s", ".",
        "--binary-path", config.binary_path,
        "-t", config.output_type,
        "--ignore-not-existing",
        "-o", config.output_dir,
    ]


def open_command(config: CoverageConfig) -> list[str]:
    return [config.resolved_opener, str(config.report_index)]


# Steps in execution order
STEPS: list[tuple[str, Callable[[CoverageConfig], list[str]]]] = [
    ("clean", clean_command),
    ("test", cargo_test_command),
    ("report", report_command),
    ("open", open_command),
]


def run_step(
    name: str,
    cmd: list[str],
    cwd: Path,
    env: Mapping[str, str],
) -> StepResult:
    """Run one step, streaming its output to the terminal.

    Args:
        name: Step name used in reports
        cmd: Command and arguments
        cwd: Working directory (the project root)
        env: Full environment for the child process

    Returns:
        StepResult with the child's exit code
    """
    print(f"Running: {' '.join(cmd)}", file=sys.stderr)
    try:
        result = subprocess.run(cmd, cwd=cwd, env=dict(env), check=False)
    except OSError as e:
        return StepResult(
            name=name,
            command=cmd,
            returncode=SPAWN_FAILURE_CODE,
            error=f"could not run {cmd[0]}: {e}",
        )
    return StepResult(name=name, command=cmd, returncode=result.returncode)


def plan(config: CoverageConfig, skip_open: bool = False) -> list[tuple[str, list[str]]]:
    """The (name, command) pairs a run would execute, in order."""
    steps = [(name, build(config)) for name, build in STEPS]
    if skip_open:
        steps = [(name, cmd) for name, cmd in steps if name != "open"]
    return steps


def run_pipeline(
    config: CoverageConfig,
    project_dir: Path,
    base_env: Mapping[str, str] | None = None,
    skip_open: bool = False,
    runner: Callable[[str, list[str], Path, Mapping[str, str]], StepResult] = run_step,
) -> PipelineResult:
    """Run clean, test, report and open, stopping at the first failure.

    Args:
        config: Coverage configuration
        project_dir: Root of the crate being measured
        base_env: Environment to extend with the instrumentation variables
        skip_open: Do not open the report once it is generated
        runner: Function that executes a single step

    Returns:
        PipelineResult listing every step that was started
    """
    env = config.child_env(base_env if base_env is not None else os.environ)
    result = PipelineResult()

    for name, cmd in plan(config, skip_open):
        step = runner(name, cmd, project_dir, env)
        result.steps.append(step)
        if not step.success:
            break

    return result


def describe_plan(config: CoverageConfig, skip_open: bool = False) -> str:
    """Human-readable summary of the environment and commands for --dry-run."""
    lines = ["Environment:"]
    for key, value in config.instrumentation_env().items():
        lines.append(f"  {key}={value}")
    lines.append("")
    lines.append("Steps:")
    for i, (name, cmd) in enumerate(plan(config, skip_open), 1):
        lines.append(f"  {i}. {name}: {' '.join(cmd)}")
    return "\n".join(lines)
