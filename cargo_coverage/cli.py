"""Command-line entry point for cargo-coverage.

Usage:
    cargo-coverage                      # Check tools, build, report, open
    cargo-coverage --no-open            # Generate the report only
    cargo-coverage --dry-run            # Show environment and commands
    cargo-coverage --config cov.yaml    # Override defaults from a file
    cargo-coverage --verbose            # Show each preflight check

Run from the root of a Rust crate (or pass --project-dir).
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Mapping

from cargo_coverage.config import ConfigError, CoverageConfig, load_config
from cargo_coverage.pipeline import StepResult, describe_plan, run_pipeline
from cargo_coverage.preflight import run_preflight

# Exit code for any preflight failure
PREFLIGHT_FAILURE_CODE = 1
# Exit code for a bad config file (matches argparse usage errors)
CONFIG_ERROR_CODE = 2


def get_suggestion_for_step(step: StepResult, config: CoverageConfig) -> str | None:
    """Get an actionable suggestion for a failed pipeline step.

    Args:
        step: The step that failed
        config: Configuration of the run

    Returns:
        A helpful suggestion string, or None if no specific suggestion
    """
    if step.error:
        return f"  -> Is {step.command[0]} installed and on PATH?"
    if step.name == "clean":
        return "  -> cargo clean failed; check that this is a cargo project root"
    elif step.name == "test":
        return (
            "  -> Tests failed or did not build with coverage flags.\n"
            f"     The {config.toolchain} toolchain is required for -Zprofile."
        )
    elif step.name == "report":
        return f"  -> grcov could not write {config.output_dir}"
    elif step.name == "open":
        return f"  -> The report was generated; open {config.report_index} manually"
    return None


def run_coverage(
    project_dir: Path | None = None,
    config: CoverageConfig | None = None,
    env: Mapping[str, str] | None = None,
    skip_open: bool = False,
    dry_run: bool = False,
    verbose: bool = False,
) -> int:
    """Run preflight checks, then the coverage pipeline.

    Args:
        project_dir: Root of the crate (default: current directory)
        config: Coverage configuration (default: built-in defaults)
        env: Base environment for lookups and child processes
        skip_open: Generate the report without opening it
        dry_run: Print what would run instead of running it
        verbose: Show detailed output

    Returns:
        Process exit code: 0 on success, 1 on a failed preflight check,
        otherwise the exit code of the failing step
    """
    project_dir = project_dir or Path.cwd()
    config = config or CoverageConfig()
    env = env if env is not None else os.environ

    if verbose:
        print("Checking required tools...", file=sys.stderr)

    failure = run_preflight(config, env, verbose=verbose)
    if failure is not None:
        failure.report()
        return PREFLIGHT_FAILURE_CODE

    if dry_run:
        print(describe_plan(config, skip_open))
        return 0

    result = run_pipeline(config, project_dir, base_env=env, skip_open=skip_open)

    failed = result.failed_step
    if failed is not None:
        detail = failed.error or f"exit code {failed.returncode}"
        print(f"error: {failed.name} step failed ({detail})", file=sys.stderr)
        suggestion = get_suggestion_for_step(failed, config)
        if suggestion:
            print(suggestion, file=sys.stderr)
        return result.exit_code

    if skip_open:
        print(f"Coverage report: {project_dir / config.report_index}")
    elif verbose:
        print(f"Opened {config.report_index}", file=sys.stderr)

    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="cargo-coverage",
        description="Build a Rust crate with coverage instrumentation and open an HTML report",
    )
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=None,
        help="Crate root (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file (default: coverage.yaml in the crate root, if present)",
    )
    parser.add_argument(
        "--no-open",
        action="store_true",
        help="Generate the report without opening it",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the checks, then print the environment and commands instead of running them",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed output",
    )

    args = parser.parse_args(argv)

    project_dir = (args.project_dir or Path.cwd()).resolve()
    if not project_dir.is_dir():
        print(f"Error: Project directory not found: {project_dir}", file=sys.stderr)
        sys.exit(CONFIG_ERROR_CODE)

    try:
        config = load_config(project_dir, args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(CONFIG_ERROR_CODE)

    sys.exit(
        run_coverage(
            project_dir=project_dir,
            config=config,
            skip_open=args.no_open,
            dry_run=args.dry_run,
            verbose=args.verbose,
        )
    )


if __name__ == "__main__":
    main()
