#!/usr/bin/env python3
"""Setup for rustup-missing scenario.

Every tool except rustup is installed.
"""

from pathlib import Path

from scenario_tests.fake_tools import install_fake_tools, write_fake_crate


def main():
    """Set up the scenario environment."""
    cwd = Path.cwd()
    write_fake_crate(cwd)
    install_fake_tools(cwd, tools=["cargo", "grcov", "open", "xdg-open"])


if __name__ == "__main__":
    main()
