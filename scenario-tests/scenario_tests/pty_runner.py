"""PTY-based runner for cargo-coverage scenario tests.

Runs the orchestrator in an interactive PTY so it sees a real terminal,
the same way a developer runs it. That makes it emit the bold "error:"
prefix, which the scenarios strip again before comparing output.
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from pathlib import Path

import pexpect


@dataclass
class PTYRunResult:
    """Result from running cargo-coverage via PTY."""

    success: bool
    exit_code: int | None
    output: str
    error: str | None = None


def run_orchestrator_pty(
    cwd: Path,
    env: dict[str, str],
    args: list[str] | None = None,
    timeout: int = 60,
    verbose: bool = False,
) -> PTYRunResult:
    """Run `python -m cargo_coverage` in a PTY session.

    Args:
        cwd: Working directory (the fake crate root)
        env: Complete environment for the orchestrator
        args: Extra command-line arguments
        timeout: Maximum time to wait in seconds
        verbose: Print debug output

    Returns:
        PTYRunResult with exit code and ANSI-stripped output
    """
    cmd = [sys.executable, "-m", "cargo_coverage", *(args or [])]

    if verbose:
        print(f"  PTY command: {' '.join(cmd[1:])}")

    spawn_env = env.copy()
    spawn_env.setdefault("TERM", "xterm")

    try:
        child = pexpect.spawn(
            cmd[0],
            cmd[1:],
            cwd=str(cwd),
            env=spawn_env,
            timeout=timeout,
            encoding="utf-8",
            codec_errors="replace",
        )

        output_lines = []
        timed_out = False

        while True:
            try:
                line = child.readline()
                if not line:
                    break
                clean_line = strip_ansi(line.rstrip())
                output_lines.append(clean_line)
                if verbose:
                    print(f"    > {clean_line}")
            except pexpect.TIMEOUT:
                if verbose:
                    print("  PTY timeout waiting for output")
                timed_out = True
                break
            except pexpect.EOF:
                break

        if timed_out:
            child.terminate(force=True)
        child.wait()
        exit_code = child.exitstatus

        if verbose:
            print(f"  PTY exit code: {exit_code}")

        return PTYRunResult(
            success=(exit_code == 0),
            exit_code=exit_code,
            output="\n".join(output_lines),
        )

    except pexpect.ExceptionPexpect as e:
        return PTYRunResult(
            success=False,
            exit_code=None,
            output="",
            error=str(e),
        )


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    ansi_pattern = re.compile(r'\x1b\[[0-9;]*[a-zA-Z]|\x1b\].*?\x07')
    return ansi_pattern.sub('', text)
