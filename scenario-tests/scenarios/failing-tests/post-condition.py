#!/usr/bin/env python3
"""Post-condition assertions for failing-tests scenario.

Verifies that grcov and the opener never ran after the test step failed.
"""

import sys
from pathlib import Path

from scenario_tests.fake_tools import format_call, read_calls


def main():
    """Run post-condition assertions."""
    commands = [format_call(call) for call in read_calls(Path.cwd())]
    expected = [
        "rustup toolchain list",
        "cargo clean",
        "cargo +nightly test -- --test-threads=1",
    ]
    if commands != expected:
        print(f"FAIL: unexpected calls: {commands}", file=sys.stderr)
        sys.exit(1)
    print("PASS: pipeline stopped after the test step")

    if Path("target/debug/coverage/index.html").exists():
        print("FAIL: a report was generated for a failed run", file=sys.stderr)
        sys.exit(1)
    print("PASS: no report generated")


if __name__ == "__main__":
    main()
