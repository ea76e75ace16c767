from pathlib import Path

import pytest

from cargo_coverage.config import (
    DEFAULT_RUSTFLAGS,
    ConfigError,
    CoverageConfig,
    config_from_mapping,
    default_opener,
    load_config,
)


def test_defaults_match_instrumented_build() -> None:
    config = CoverageConfig()
    assert config.toolchain == "nightly"
    assert config.test_threads == 1
    assert config.instrumentation_env() == {
        "CARGO_INCREMENTAL": "0",
        "RUSTFLAGS": (
            "-Zprofile -Ccodegen-units=1 -Copt-level=0 -Clink-dead-code "
            "-Coverflow-checks=off -Zpanic_abort_tests -Cpanic=abort"
        ),
        "RUSTDOCFLAGS": "-Cpanic=abort",
    }


def test_child_env_layers_over_base_without_mutating_it() -> None:
    base = {"PATH": "/usr/bin", "RUSTFLAGS": "-Copt-level=3"}
    env = CoverageConfig().child_env(base)
    assert env["PATH"] == "/usr/bin"
    assert env["RUSTFLAGS"].startswith("-Zprofile")
    assert base == {"PATH": "/usr/bin", "RUSTFLAGS": "-Copt-level=3"}


def test_default_flag_lists_are_not_shared() -> None:
    first = CoverageConfig()
    first.rustflags.append("-Cdebuginfo=2")
    assert CoverageConfig().rustflags == DEFAULT_RUSTFLAGS


def test_report_index_is_under_output_dir() -> None:
    assert CoverageConfig().report_index == Path("target/debug/coverage/index.html")


def test_default_opener_per_platform(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("cargo_coverage.config.sys.platform", "darwin")
    assert default_opener() == "open"
    monkeypatch.setattr("cargo_coverage.config.sys.platform", "linux")
    assert default_opener() == "xdg-open"
    assert CoverageConfig(opener="firefox").resolved_opener == "firefox"


def test_config_from_mapping_accepts_string_flags() -> None:
    config = config_from_mapping({"rustflags": "-Cinstrument-coverage -Copt-level=0"})
    assert config.rustflags == ["-Cinstrument-coverage", "-Copt-level=0"]


def test_config_from_mapping_rejects_unknown_keys() -> None:
    with pytest.raises(ConfigError, match="test_threads"):
        config_from_mapping({"test_threads": 8})


def test_config_from_mapping_rejects_bad_types() -> None:
    with pytest.raises(ConfigError):
        config_from_mapping({"toolchain": 7})
    with pytest.raises(ConfigError):
        config_from_mapping({"rustdocflags": ["-Cpanic=abort", 3]})


def test_load_config_without_file_uses_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path) == CoverageConfig()


def test_load_config_reads_project_file(tmp_path: Path) -> None:
    (tmp_path / "coverage.yaml").write_text(
        "toolchain: nightly-2024-06-01\n"
        "output_dir: ./target/cov/\n"
        "opener: firefox\n"
    )
    config = load_config(tmp_path)
    assert config.toolchain == "nightly-2024-06-01"
    assert config.output_dir == "./target/cov/"
    assert config.resolved_opener == "firefox"
    assert config.binary_path == "./target/debug/"


def test_load_config_empty_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / "coverage.yaml").write_text("")
    assert load_config(tmp_path) == CoverageConfig()


def test_load_config_missing_explicit_path(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path, tmp_path / "nope.yaml")


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "custom.yaml"
    path.write_text("toolchain: [unclosed\n")
    with pytest.raises(ConfigError, match="Could not read"):
        load_config(tmp_path, path)


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "custom.yaml"
    path.write_text("- nightly\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(tmp_path, path)


@pytest.mark.parametrize("toolchain", ["", "   ", "nightly 2024-06-01", " nightly"])
def test_config_from_mapping_rejects_blank_or_spaced_toolchain(toolchain: str) -> None:
    with pytest.raises(ConfigError, match="non-empty channel name"):
        config_from_mapping({"toolchain": toolchain})


def test_blank_toolchain_in_file_is_a_config_error(tmp_path: Path) -> None:
    (tmp_path / "coverage.yaml").write_text('toolchain: ""\n')
    with pytest.raises(ConfigError, match="non-empty channel name"):
        load_config(tmp_path)


def test_test_threads_cannot_be_overridden() -> None:
    with pytest.raises(TypeError):
        CoverageConfig(test_threads=4)  # type: ignore[call-arg]
    assert CoverageConfig(toolchain="nightly-2024-06-01").test_threads == 1
