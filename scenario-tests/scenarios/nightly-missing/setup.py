#!/usr/bin/env python3
"""Setup for nightly-missing scenario.

All tools are installed but rustup only knows the stable toolchain.
"""

from pathlib import Path

from scenario_tests.fake_tools import install_fake_tools, write_fake_crate


def main():
    """Set up the scenario environment."""
    cwd = Path.cwd()
    write_fake_crate(cwd)
    install_fake_tools(cwd, toolchains=["stable-x86_64-unknown-linux-gnu (default)"])


if __name__ == "__main__":
    main()
