#!/usr/bin/env python3
"""Setup for config-file scenario.

The crate ships a coverage.yaml that pins a dated nightly and moves the
report directory.
"""

from pathlib import Path

from scenario_tests.fake_tools import install_fake_tools, write_fake_crate


def main():
    """Set up the scenario environment."""
    cwd = Path.cwd()
    write_fake_crate(cwd)
    (cwd / "coverage.yaml").write_text(
        "toolchain: nightly-2024-06-01\n"
        "output_dir: ./target/cov/\n"
    )
    install_fake_tools(
        cwd,
        toolchains=[
            "stable-x86_64-unknown-linux-gnu (default)",
            "nightly-2024-06-01-x86_64-unknown-linux-gnu",
        ],
    )


if __name__ == "__main__":
    main()
