#!/usr/bin/env python3
"""Setup for all-tools-present scenario.

A crate with rustup, cargo, grcov and both openers installed and the
nightly toolchain listed by rustup.
"""

from pathlib import Path

from scenario_tests.fake_tools import install_fake_tools, write_fake_crate


def main():
    """Set up the scenario environment."""
    cwd = Path.cwd()
    write_fake_crate(cwd)
    install_fake_tools(cwd)


if __name__ == "__main__":
    main()
