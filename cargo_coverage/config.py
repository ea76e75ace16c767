"""Coverage run configuration.

Holds the toolchain channel, the instrumentation flags handed to cargo and
rustdoc, and where grcov writes its report. Child processes receive the
flags through an environment built from this record; the orchestrator's own
environment is never modified.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

# Looked up in the project root when no --config is given
DEFAULT_CONFIG_NAME = "coverage.yaml"

DEFAULT_RUSTFLAGS = [
    "-Zprofile",
    "-Ccodegen-units=1",
    "-Copt-level=0",
    "-Clink-dead-code",
    "-Coverflow-checks=off",
    "-Zpanic_abort_tests",
    "-Cpanic=abort",
]

DEFAULT_RUSTDOCFLAGS = ["-Cpanic=abort"]

# Keys a coverage.yaml may set. test_threads is fixed at 1.
CONFIGURABLE_KEYS = {
    "toolchain",
    "rustflags",
    "rustdocflags",
    "binary_path",
    "output_dir",
    "output_type",
    "opener",
}


class ConfigError(ValueError):
    """Raised when a coverage config file cannot be used."""


def default_opener() -> str:
    """Return the command that opens a file in the default viewer."""
    if sys.platform == "darwin":
        return "open"
    return "xdg-open"


@dataclass
class CoverageConfig:
    """Settings for one coverage run."""

    toolchain: str = "nightly"
    incremental: str = "0"
    rustflags: list[str] = field(default_factory=lambda: list(DEFAULT_RUSTFLAGS))
    rustdocflags: list[str] = field(default_factory=lambda: list(DEFAULT_RUSTDOCFLAGS))
    test_threads: int = field(default=1, init=False)
    binary_path: str = "./target/debug/"
    output_dir: str = "./target/debug/coverage/"
    output_type: str = "html"
    opener: str | None = None

    def instrumentation_env(self) -> dict[str, str]:
        """Variables that switch on coverage instrumentation in cargo/rustdoc."""
        return {
            "CARGO_INCREMENTAL": self.incremental,
            "RUSTFLAGS": " ".join(self.rustflags),
            "RUSTDOCFLAGS": " ".join(self.rustdocflags),
        }

    def child_env(self, base: Mapping[str, str]) -> dict[str, str]:
        """Build the environment for a child process.

        Args:
            base: Environment to start from (usually os.environ)

        Returns:
            A new dict with the instrumentation variables layered on top.
            ``base`` itself is left untouched.
        """
        env = dict(base)
        env.update(self.instrumentation_env())
        return env

    @property
    def report_index(self) -> Path:
        return Path(self.output_dir) / "index.html"

    @property
    def resolved_opener(self) -> str:
        return self.opener or default_opener()


def _check_string_list(key: str, value: Any) -> list[str]:
    if isinstance(value, str):
        return value.split()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a string or a list of strings")
    return list(value)


def config_from_mapping(data: Mapping[str, Any]) -> CoverageConfig:
    """Create a CoverageConfig from parsed YAML data.

    Args:
        data: Mapping of option names to values

    Returns:
        CoverageConfig with the given options applied over the defaults

    Raises:
        ConfigError: If a key is unknown or a value has the wrong type
    """
    unknown = set(data) - CONFIGURABLE_KEYS
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    options: dict[str, Any] = {}
    for key, value in data.items():
        if key in ("rustflags", "rustdocflags"):
            options[key] = _check_string_list(key, value)
        elif value is None and key == "opener":
            options[key] = None
        elif not isinstance(value, str):
            raise ConfigError(f"'{key}' must be a string")
        elif key == "toolchain" and value.split() != [value]:
            raise ConfigError("'toolchain' must be a non-empty channel name")
        else:
            options[key] = value

    return CoverageConfig(**options)


def load_config(project_dir: Path, config_path: Path | None = None) -> CoverageConfig:
    """Load the coverage configuration for a project.

    An explicit ``config_path`` must exist. Without one, ``coverage.yaml`` in
    the project root is used if present, otherwise the defaults apply.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    if config_path is None:
        config_path = project_dir / DEFAULT_CONFIG_NAME
        if not config_path.exists():
            return CoverageConfig()
    elif not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        data = yaml.safe_load(config_path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    return config_from_mapping(data)

