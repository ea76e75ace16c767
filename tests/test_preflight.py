import os
import subprocess
from pathlib import Path

import pytest

from cargo_coverage.config import CoverageConfig
from cargo_coverage.preflight import (
    PreflightFailure,
    RequirementKind,
    check_command,
    requirements_for,
    run_preflight,
    toolchain_installed,
    toolchain_requirement,
)


class FakeTTY:
    def __init__(self, tty: bool) -> None:
        self.tty = tty
        self.written = ""

    def write(self, text: str) -> None:
        self.written += text

    def flush(self) -> None:
        pass

    def isatty(self) -> bool:
        return self.tty


def make_tool(bin_dir: Path, name: str) -> None:
    path = bin_dir / name
    path.write_text("#!/bin/sh\nexit 0\n")
    os.chmod(path, 0o755)


def fake_rustup(monkeypatch: pytest.MonkeyPatch, stdout: str, returncode: int = 0) -> list:
    calls = []

    def run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")

    monkeypatch.setattr("cargo_coverage.preflight.subprocess.run", run)
    return calls


def test_requirements_are_checked_in_order() -> None:
    reqs = requirements_for(CoverageConfig())
    assert [r.name for r in reqs] == ["rustup", "cargo", "grcov", "nightly"]
    assert [r.kind for r in reqs] == [RequirementKind.TOOL] * 3 + [RequirementKind.TOOLCHAIN]


def test_toolchain_requirement_uses_channel() -> None:
    req = toolchain_requirement("nightly-2024-06-01")
    assert req.message == "Rust nightly-2024-06-01 channel could not be found!"
    assert req.hint == "rustup toolchain install nightly-2024-06-01"


@pytest.mark.skipif(os.name == "nt", reason="shell scripts as executables")
def test_check_command_searches_given_path(tmp_path: Path) -> None:
    make_tool(tmp_path, "grcov")
    env = {"PATH": str(tmp_path)}
    assert check_command("grcov", env)
    assert not check_command("rustup", env)


def test_toolchain_installed_matches_listed_channel(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = fake_rustup(
        monkeypatch,
        "stable-x86_64-unknown-linux-gnu (default)\nnightly-x86_64-unknown-linux-gnu\n",
    )
    assert toolchain_installed("nightly")
    assert calls == [["rustup", "toolchain", "list"]]


def test_toolchain_installed_false_when_not_listed(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_rustup(monkeypatch, "stable-x86_64-unknown-linux-gnu (default)\n")
    assert not toolchain_installed("nightly")


def test_toolchain_installed_false_when_rustup_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_rustup(monkeypatch, "nightly-x86_64-unknown-linux-gnu\n", returncode=1)
    assert not toolchain_installed("nightly")


def test_toolchain_installed_false_when_rustup_cannot_start(monkeypatch: pytest.MonkeyPatch) -> None:
    def run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr("cargo_coverage.preflight.subprocess.run", run)
    assert not toolchain_installed("nightly")


@pytest.mark.parametrize("missing", ["rustup", "cargo", "grcov"])
def test_first_missing_tool_is_reported(monkeypatch: pytest.MonkeyPatch, missing: str) -> None:
    available = {"rustup", "cargo", "grcov"} - {missing}
    monkeypatch.setattr(
        "cargo_coverage.preflight.check_command",
        lambda name, env=None: name in available,
    )
    rustup_calls = fake_rustup(monkeypatch, "nightly-x86_64-unknown-linux-gnu\n")

    failure = run_preflight(CoverageConfig())

    assert failure is not None
    assert failure.requirement.name == missing
    assert rustup_calls == []


def test_only_first_failure_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    checked = []

    def check(name, env=None):
        checked.append(name)
        return False

    monkeypatch.setattr("cargo_coverage.preflight.check_command", check)
    failure = run_preflight(CoverageConfig())
    assert failure is not None
    assert failure.requirement.name == "rustup"
    assert checked == ["rustup"]


def test_missing_channel_with_all_tools(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("cargo_coverage.preflight.check_command", lambda name, env=None: True)
    fake_rustup(monkeypatch, "stable-x86_64-unknown-linux-gnu (default)\n")

    failure = run_preflight(CoverageConfig())

    assert failure is not None
    assert failure.requirement.kind is RequirementKind.TOOLCHAIN
    assert "rustup toolchain install nightly" in failure.render()


def test_all_checks_pass(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("cargo_coverage.preflight.check_command", lambda name, env=None: True)
    fake_rustup(monkeypatch, "nightly-x86_64-unknown-linux-gnu\n")
    assert run_preflight(CoverageConfig()) is None


def test_render_layout() -> None:
    failure = PreflightFailure(requirements_for(CoverageConfig())[0])
    assert failure.render() == (
        "error: rustup could not be found!\n"
        "\n"
        "Read the Docs:\n"
        "    https://rustup.rs/\n"
    )


def test_report_is_bold_only_on_terminal() -> None:
    failure = PreflightFailure(requirements_for(CoverageConfig())[1])

    tty = FakeTTY(tty=True)
    failure.report(tty)
    assert tty.written.startswith("\x1b[1merror: \x1b[0mcargo could not be found!")

    plain = FakeTTY(tty=False)
    failure.report(plain)
    assert plain.written.startswith("error: cargo could not be found!")
    assert "https://doc.rust-lang.org/cargo/" in plain.written


def test_blank_channel_is_never_installed(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = fake_rustup(monkeypatch, "stable-x86_64-unknown-linux-gnu (default)\n")
    assert not toolchain_installed("")
    assert not toolchain_installed("  ")
    assert calls == []


def test_check_command_without_path_uses_default_path(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = []

    def which(name, path=None):
        seen.append(path)
        return None

    monkeypatch.setattr("cargo_coverage.preflight.shutil.which", which)
    monkeypatch.setenv("PATH", "/orchestrator/only")

    assert not check_command("grcov", {})
    assert seen == [os.defpath]
