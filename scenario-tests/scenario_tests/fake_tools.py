"""Fake rustup, cargo, grcov and file openers for scenario tests.

Scenario setup scripts call install_fake_tools() to put executables into
./fake-bin. Each one is a tiny script that calls main() here, which records
the call (arguments, working directory and instrumentation variables) to
calls.jsonl and then mimics just enough of the real tool:

    rustup toolchain list   prints the configured toolchains
    grcov ... -o DIR        writes DIR/index.html
    anything else           prints nothing

State is kept in fake-tools.json next to fake-bin:
    toolchains: Lines printed by `rustup toolchain list`
    exit_codes: Map of "tool" or "tool subcommand" to exit code
    log: Path of the calls.jsonl file
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Iterable

ALL_TOOLS = ("rustup", "cargo", "grcov", "open", "xdg-open")

DEFAULT_TOOLCHAINS = (
    "stable-x86_64-unknown-linux-gnu (default)",
    "nightly-x86_64-unknown-linux-gnu",
)

# Variables copied into every call record
RECORDED_ENV = ("CARGO_INCREMENTAL", "RUSTFLAGS", "RUSTDOCFLAGS")

FAKE_BIN = "fake-bin"
STATE_FILE = "fake-tools.json"
CALLS_FILE = "calls.jsonl"


def install_fake_tools(
    root: Path,
    tools: Iterable[str] = ALL_TOOLS,
    toolchains: Iterable[str] = DEFAULT_TOOLCHAINS,
    exit_codes: dict[str, int] | None = None,
) -> Path:
    """Install fake tool executables under root/fake-bin.

    Args:
        root: Scenario working directory
        tools: Tool names to install; anything left out is "not installed"
        toolchains: Output lines for `rustup toolchain list`
        exit_codes: Exit codes keyed by tool ("grcov") or tool and
                    subcommand ("cargo test")

    Returns:
        Path to the fake-bin directory
    """
    bin_dir = root / FAKE_BIN
    bin_dir.mkdir(parents=True, exist_ok=True)

    state_path = root / STATE_FILE
    state = {
        "toolchains": list(toolchains),
        "exit_codes": exit_codes or {},
        "log": str(root / CALLS_FILE),
    }
    state_path.write_text(json.dumps(state, indent=2))

    for tool in tools:
        script = bin_dir / tool
        script.write_text(
            f"#!{sys.executable}\n"
            "from scenario_tests.fake_tools import main\n"
            f"main({str(state_path)!r})\n"
        )
        os.chmod(script, 0o755)

    return bin_dir


def write_fake_crate(root: Path, name: str = "scenario-crate") -> None:
    """Write a minimal Cargo.toml and src/lib.rs so root looks like a crate."""
    (root / "Cargo.toml").write_text(
        f'[package]\nname = "{name}"\nversion = "0.1.0"\nedition = "2021"\n'
    )
    src_dir = root / "src"
    src_dir.mkdir(exist_ok=True)
    (src_dir / "lib.rs").write_text(
        "pub fn add(a: i32, b: i32) -> i32 {\n"
        "    a + b\n"
        "}\n"
    )


def read_calls(root: Path) -> list[dict[str, Any]]:
    """Load every recorded call, oldest first."""
    calls_path = root / CALLS_FILE
    if not calls_path.exists():
        return []
    return [json.loads(line) for line in calls_path.read_text().splitlines() if line]


def format_call(call: dict[str, Any]) -> str:
    """Render a recorded call as a command line."""
    return " ".join([call["tool"], *call["args"]])


def _subcommand(args: list[str]) -> str | None:
    # Skip toolchain overrides such as "+nightly"
    for arg in args:
        if not arg.startswith("+"):
            return arg
    return None


def _exit_code(state: dict[str, Any], tool: str, args: list[str]) -> int:
    codes = state.get("exit_codes", {})
    sub = _subcommand(args)
    if sub and f"{tool} {sub}" in codes:
        return codes[f"{tool} {sub}"]
    return codes.get(tool, 0)


def _write_report(args: list[str]) -> None:
    if "-o" not in args:
        return
    index = args.index("-o") + 1
    if index >= len(args):
        return
    output_dir = Path(args[index])
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "index.html").write_text("<html><body>coverage</body></html>\n")


def main(state_path: str) -> None:
    """Entry point for every fake tool executable."""
    tool = Path(sys.argv[0]).name
    args = sys.argv[1:]
    state = json.loads(Path(state_path).read_text())

    record = {
        "tool": tool,
        "args": args,
        "cwd": os.getcwd(),
        "env": {key: os.environ[key] for key in RECORDED_ENV if key in os.environ},
    }
    with open(state["log"], "a") as f:
        f.write(json.dumps(record) + "\n")

    code = _exit_code(state, tool, args)
    if code != 0:
        print(f"{tool}: simulated failure", file=sys.stderr)
        sys.exit(code)

    if tool == "rustup" and args[:2] == ["toolchain", "list"]:
        for toolchain in state["toolchains"]:
            print(toolchain)
    elif tool == "grcov":
        _write_report(args)
