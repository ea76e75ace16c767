#!/usr/bin/env python3
"""Scenario test runner for cargo-coverage.

Runs end-to-end scenarios that exercise the orchestrator against fake
rustup/cargo/grcov executables on an isolated PATH, then checks the exit
code, the terminal output and any post-conditions.

Usage:
    python -m scenario_tests.run_scenarios                  # Run all scenarios
    python -m scenario_tests.run_scenarios rustup-missing   # Run specific scenario
    python -m scenario_tests.run_scenarios --verbose        # Show detailed output

Each scenario is a directory under scenarios/ containing:
    - setup.py: Creates the fake crate and installs fake tools (run in a temp dir)
    - post-condition.py: Optional assertions after the run
    - config.yaml: Optional scenario configuration:
        args: Extra cargo-coverage arguments
        expected_exit_code: Exit code the run must produce (default 0)
        expected_output: Strings that must appear in the terminal output
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
import tempfile
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any

import yaml

from scenario_tests.fake_tools import FAKE_BIN, format_call, read_calls
from scenario_tests.pty_runner import run_orchestrator_pty

OUTPUT_FILE = "orchestrator-output.txt"


class ErrorCategory(Enum):
    """Categories of scenario failures with associated remediation actions."""

    SETUP_FAILED = auto()  # setup.py raised or exited non-zero
    EXECUTION_ERROR = auto()  # Orchestrator could not be run in the PTY
    EXIT_CODE_MISMATCH = auto()  # Orchestrator exited with the wrong code
    OUTPUT_MISMATCH = auto()  # Expected text missing from the output
    POST_CONDITION_FAILED = auto()  # Post-condition script failed
    OTHER = auto()  # Generic/unknown error


@dataclass
class ScenarioConfig:
    """Configuration for a single scenario."""

    name: str
    scenario_dir: Path
    setup_script: Path
    post_condition: Path | None
    config: dict[str, Any] = field(default_factory=dict)

    @property
    def args(self) -> list[str]:
        return list(self.config.get("args", []))

    @property
    def expected_exit_code(self) -> int:
        return int(self.config.get("expected_exit_code", 0))

    @property
    def expected_output(self) -> list[str]:
        return list(self.config.get("expected_output", []))


@dataclass
class ScenarioResult:
    """Result from running a single scenario."""

    name: str
    passed: bool
    error: str | None = None
    error_category: ErrorCategory | None = None
    output: str = ""
    post_condition_output: str = ""


def get_suggestion_for_error(category: ErrorCategory | None, scenario_name: str) -> str | None:
    """Get an actionable suggestion based on error category.

    Args:
        category: The error category
        scenario_name: Name of the scenario that failed

    Returns:
        A helpful suggestion string, or None if no specific suggestion
    """
    if category == ErrorCategory.SETUP_FAILED:
        return f"  -> Check scenarios/{scenario_name}/setup.py"
    elif category == ErrorCategory.EXECUTION_ERROR:
        return (
            "  -> cargo-coverage could not be started. Check:\n"
            "     - pexpect is installed and a PTY is available\n"
            "     - cargo_coverage is importable from the project root"
        )
    elif category == ErrorCategory.EXIT_CODE_MISMATCH:
        return f"  -> Compare the output with expected_exit_code in scenarios/{scenario_name}/config.yaml"
    elif category == ErrorCategory.OUTPUT_MISMATCH:
        return f"  -> Compare the output with expected_output in scenarios/{scenario_name}/config.yaml"
    elif category == ErrorCategory.POST_CONDITION_FAILED:
        return "  -> Check the post-condition.py script for your scenario"
    return None


def find_scenarios(scenarios_dir: Path, selected: list[str] | None = None) -> list[ScenarioConfig]:
    """Find all scenario directories.

    Args:
        scenarios_dir: Directory containing scenario subdirectories
        selected: Optional list of scenario names to run

    Returns:
        List of ScenarioConfig for each scenario
    """
    scenarios = []

    for scenario_dir in sorted(scenarios_dir.iterdir()):
        if not scenario_dir.is_dir():
            continue

        name = scenario_dir.name
        if selected and name not in selected:
            continue

        setup_script = scenario_dir / "setup.py"
        if not setup_script.exists():
            continue

        post_condition = scenario_dir / "post-condition.py"
        if not post_condition.exists():
            post_condition = None

        config = {}
        config_path = scenario_dir / "config.yaml"
        if config_path.exists():
            config = yaml.safe_load(config_path.read_text()) or {}

        scenarios.append(
            ScenarioConfig(
                name=name,
                scenario_dir=scenario_dir,
                setup_script=setup_script,
                post_condition=post_condition,
                config=config,
            )
        )

    return scenarios


def get_scenario_env(temp_dir: Path, project_dir: Path) -> dict[str, str]:
    """Get environment variables for everything run inside a scenario.

    PATH holds only the fake tools, so a real rustup or cargo on the host can
    never satisfy a check. PYTHONPATH lets the orchestrator and the fake
    tools import their packages from the source tree.

    Args:
        temp_dir: Scenario working directory
        project_dir: Project root directory

    Returns:
        Environment dict
    """
    env = os.environ.copy()
    env["PATH"] = str(temp_dir / FAKE_BIN)
    python_path = [str(project_dir), str(project_dir / "scenario-tests")]
    if env.get("PYTHONPATH"):
        python_path.append(env["PYTHONPATH"])
    env["PYTHONPATH"] = os.pathsep.join(python_path)
    # Instrumentation variables must come from cargo-coverage, not the host
    for key in ("CARGO_INCREMENTAL", "RUSTFLAGS", "RUSTDOCFLAGS"):
        env.pop(key, None)
    return env


def _run_script(script: Path, cwd: Path, env: dict[str, str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, str(script)],
        check=True,
        cwd=cwd,
        capture_output=True,
        text=True,
        env=env,
    )


def _describe_process_error(label: str, e: subprocess.CalledProcessError) -> str:
    error_msg = f"{label} failed (exit code {e.returncode}):\n"
    if e.stdout:
        error_msg += f"stdout: {e.stdout}\n"
    if e.stderr:
        error_msg += f"stderr: {e.stderr}"
    return error_msg


def run_in_directory(
    temp_dir: Path,
    scenario: ScenarioConfig,
    project_dir: Path,
    verbose: bool = False,
) -> ScenarioResult:
    """Run a scenario inside an already created working directory.

    Args:
        temp_dir: Empty directory that becomes the fake crate root
        scenario: Scenario configuration
        project_dir: Project root directory
        verbose: Show detailed output

    Returns:
        ScenarioResult with pass/fail status
    """
    env = get_scenario_env(temp_dir, project_dir)

    try:
        _run_script(scenario.setup_script, temp_dir, env)
    except subprocess.CalledProcessError as e:
        return ScenarioResult(
            name=scenario.name,
            passed=False,
            error=_describe_process_error("Setup", e),
            error_category=ErrorCategory.SETUP_FAILED,
        )

    pty_result = run_orchestrator_pty(
        cwd=temp_dir,
        env=env,
        args=scenario.args,
        verbose=verbose,
    )

    if pty_result.error:
        return ScenarioResult(
            name=scenario.name,
            passed=False,
            error=f"PTY error: {pty_result.error}",
            error_category=ErrorCategory.EXECUTION_ERROR,
        )

    # Saved for post-condition scripts
    (temp_dir / OUTPUT_FILE).write_text(pty_result.output)

    if verbose:
        for call in read_calls(temp_dir):
            print(f"  called: {format_call(call)}")

    if pty_result.exit_code != scenario.expected_exit_code:
        return ScenarioResult(
            name=scenario.name,
            passed=False,
            error=(
                f"Expected exit code {scenario.expected_exit_code}, "
                f"got {pty_result.exit_code}\n{pty_result.output}"
            ),
            error_category=ErrorCategory.EXIT_CODE_MISMATCH,
            output=pty_result.output,
        )

    missing = [text for text in scenario.expected_output if text not in pty_result.output]
    if missing:
        return ScenarioResult(
            name=scenario.name,
            passed=False,
            error=(
                "Missing from output:\n"
                + "\n".join(f"  {text!r}" for text in missing)
                + f"\nOutput:\n{pty_result.output}"
            ),
            error_category=ErrorCategory.OUTPUT_MISMATCH,
            output=pty_result.output,
        )

    post_condition_output = ""
    if scenario.post_condition:
        if verbose:
            print("  Running post-condition...")
        try:
            result = _run_script(scenario.post_condition, temp_dir, env)
            post_condition_output = result.stdout
            if verbose and post_condition_output:
                print(f"  Post-condition output:\n{post_condition_output}")
        except subprocess.CalledProcessError as e:
            return ScenarioResult(
                name=scenario.name,
                passed=False,
                error=_describe_process_error("Post-condition", e),
                error_category=ErrorCategory.POST_CONDITION_FAILED,
                output=pty_result.output,
                post_condition_output=e.stdout or "",
            )

    return ScenarioResult(
        name=scenario.name,
        passed=True,
        output=pty_result.output,
        post_condition_output=post_condition_output,
    )


def run_scenario(
    scenario: ScenarioConfig,
    project_dir: Path,
    verbose: bool = False,
) -> ScenarioResult:
    """Run a single scenario in a fresh temporary directory."""
    with tempfile.TemporaryDirectory() as temp_dir_str:
        return run_in_directory(Path(temp_dir_str), scenario, project_dir, verbose)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run cargo-coverage scenario tests")
    parser.add_argument(
        "scenarios",
        nargs="*",
        help="Specific scenarios to run (default: all)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed output",
    )
    parser.add_argument(
        "--scenarios-dir",
        type=Path,
        default=None,
        help="Directory containing scenarios (default: scenarios/)",
    )

    args = parser.parse_args()

    # Determine directories
    package_dir = Path(__file__).parent
    scenario_tests_dir = package_dir.parent
    project_dir = scenario_tests_dir.parent
    scenarios_dir = args.scenarios_dir or scenario_tests_dir / "scenarios"

    if not scenarios_dir.exists():
        print(f"Error: Scenarios directory not found: {scenarios_dir}", file=sys.stderr)
        sys.exit(1)

    selected = args.scenarios if args.scenarios else None
    scenarios = find_scenarios(scenarios_dir, selected)

    if not scenarios:
        print("No scenarios found")
        sys.exit(0)

    print(f"Running {len(scenarios)} scenarios...")
    print()

    results: list[ScenarioResult] = []
    for scenario in scenarios:
        print(f"Scenario: {scenario.name}")

        result = run_scenario(scenario, project_dir, args.verbose)
        results.append(result)

        if result.passed:
            print("  PASS")
        else:
            print(f"  FAIL: {result.error}")
            suggestion = get_suggestion_for_error(result.error_category, result.name)
            if suggestion:
                print(suggestion)

        print()

    passed = sum(1 for r in results if r.passed)
    failed = len(results) - passed

    print(f"Results: {passed} passed, {failed} failed")

    if failed > 0:
        print()
        print("=" * 60)
        print("FAILED SCENARIOS:")
        print("=" * 60)

        failures_by_category: dict[ErrorCategory | None, list[ScenarioResult]] = {}
        for r in results:
            if not r.passed:
                failures_by_category.setdefault(r.error_category, []).append(r)

        for category, failures in failures_by_category.items():
            label = category.name.lower().replace("_", " ") if category else "unknown"
            print()
            print(f"{label} ({len(failures)} scenario(s)):")
            for r in failures:
                print(f"  - {r.name}")

        print()
        sys.exit(1)


if __name__ == "__main__":
    main()
