#!/usr/bin/env python3
"""Post-condition assertions for all-tools-present scenario.

Verifies that:
1. clean, test, report and open ran in that order
2. The test run had --test-threads=1
3. cargo saw the instrumentation variables
4. grcov wrote target/debug/coverage/index.html and it was opened
"""

import sys
from pathlib import Path

from scenario_tests.fake_tools import format_call, read_calls

EXPECTED_CALLS = [
    "rustup toolchain list",
    "cargo clean",
    "cargo +nightly test -- --test-threads=1",
    "grcov . -s . --binary-path ./target/debug/ -t html --ignore-not-existing -o ./target/debug/coverage/",
]


def fail(message):
    print(f"FAIL: {message}", file=sys.stderr)
    sys.exit(1)


def main():
    """Run post-condition assertions."""
    calls = read_calls(Path.cwd())
    commands = [format_call(call) for call in calls]

    # Check 1: order of external calls
    if commands[:4] != EXPECTED_CALLS:
        fail(f"unexpected call sequence: {commands}")
    if len(commands) != 5:
        fail(f"expected 5 calls, got {len(commands)}: {commands}")
    print("PASS: clean, test and report ran in order")

    # Check 2: opener was given the report index
    opener = calls[4]
    if opener["tool"] not in ("open", "xdg-open"):
        fail(f"last call should open the report, got {commands[4]}")
    if opener["args"] != ["target/debug/coverage/index.html"]:
        fail(f"opened the wrong file: {opener['args']}")
    print("PASS: report index was opened")

    # Check 3: instrumentation variables reached cargo test
    test_env = calls[2]["env"]
    if test_env.get("CARGO_INCREMENTAL") != "0":
        fail(f"CARGO_INCREMENTAL not disabled: {test_env}")
    for flag in ("-Zprofile", "-Ccodegen-units=1", "-Copt-level=0", "-Clink-dead-code",
                 "-Coverflow-checks=off", "-Zpanic_abort_tests", "-Cpanic=abort"):
        if flag not in test_env.get("RUSTFLAGS", "").split():
            fail(f"RUSTFLAGS missing {flag}: {test_env.get('RUSTFLAGS')}")
    if test_env.get("RUSTDOCFLAGS") != "-Cpanic=abort":
        fail(f"RUSTDOCFLAGS wrong: {test_env.get('RUSTDOCFLAGS')}")
    print("PASS: cargo test saw the instrumentation environment")

    # Check 4: report exists
    if not Path("target/debug/coverage/index.html").exists():
        fail("target/debug/coverage/index.html was not written")
    print("PASS: coverage report written")

    print("\nAll post-conditions passed!")


if __name__ == "__main__":
    main()
