#!/usr/bin/env python3
"""Setup for failing-tests scenario.

Everything is installed, but `cargo test` exits with 101 like a failing
Rust test suite.
"""

from pathlib import Path

from scenario_tests.fake_tools import install_fake_tools, write_fake_crate


def main():
    """Set up the scenario environment."""
    cwd = Path.cwd()
    write_fake_crate(cwd)
    install_fake_tools(cwd, exit_codes={"cargo test": 101})


if __name__ == "__main__":
    main()
