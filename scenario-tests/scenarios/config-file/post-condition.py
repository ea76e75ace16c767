#!/usr/bin/env python3
"""Post-condition assertions for config-file scenario.

Verifies that:
1. The pinned toolchain was used for cargo test
2. grcov wrote to the configured directory
3. --no-open skipped the opener
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
        "cargo +nightly-2024-06-01 test -- --test-threads=1",
        "grcov . -s . --binary-path ./target/debug/ -t html --ignore-not-existing -o ./target/cov/",
    ]
    if commands != expected:
        print(f"FAIL: unexpected calls: {commands}", file=sys.stderr)
        sys.exit(1)
    print("PASS: configured toolchain and output directory used, nothing opened")

    if not Path("target/cov/index.html").exists():
        print("FAIL: target/cov/index.html was not written", file=sys.stderr)
        sys.exit(1)
    print("PASS: coverage report written")


if __name__ == "__main__":
    main()
