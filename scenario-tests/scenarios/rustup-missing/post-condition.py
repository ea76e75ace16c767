#!/usr/bin/env python3
"""Post-condition assertions for rustup-missing scenario.

Verifies that no external tool was run once rustup was found missing.
"""

import sys
from pathlib import Path

from scenario_tests.fake_tools import format_call, read_calls


def main():
    """Run post-condition assertions."""
    calls = read_calls(Path.cwd())
    if calls:
        commands = [format_call(call) for call in calls]
        print(f"FAIL: tools ran after a failed check: {commands}", file=sys.stderr)
        sys.exit(1)
    print("PASS: no external tool was invoked")

    if Path("target").exists():
        print("FAIL: build output was created", file=sys.stderr)
        sys.exit(1)
    print("PASS: no build output")


if __name__ == "__main__":
    main()
