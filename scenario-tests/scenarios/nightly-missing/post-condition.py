#!/usr/bin/env python3
"""Post-condition assertions for nightly-missing scenario.

Verifies that:
1. The failure names the channel, not a missing tool
2. rustup was only asked for its toolchain list
"""

import sys
from pathlib import Path

from scenario_tests.fake_tools import format_call, read_calls


def main():
    """Run post-condition assertions."""
    output = Path("orchestrator-output.txt").read_text()
    if "Read the Docs:" in output:
        print("FAIL: reported a missing tool instead of the channel", file=sys.stderr)
        sys.exit(1)
    print("PASS: channel-specific diagnostic")

    commands = [format_call(call) for call in read_calls(Path.cwd())]
    if commands != ["rustup toolchain list"]:
        print(f"FAIL: unexpected calls: {commands}", file=sys.stderr)
        sys.exit(1)
    print("PASS: only rustup toolchain list was run")


if __name__ == "__main__":
    main()
