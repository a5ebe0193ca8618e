"""Tests for the cargo build step."""

import subprocess
from pathlib import Path

import pytest

from dependency_risk.build import CargoBuild, parse_messages
from dependency_risk.exceptions import BuildError

MEMCHR = "registry+https://github.com/rust-lang/crates.io-index#memchr@2.7.1"
CFG_IF = "registry+https://github.com/rust-lang/crates.io-index#cfg-if@1.0.0"
APP = "path+file:///ws/app#0.1.0"


def test_runs_cargo_check(mocker, tmp_path: Path) -> None:
    run = mocker.patch(
        "dependency_risk.build.subprocess.run",
        return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr=""),
    )

    CargoBuild().run(tmp_path / "Cargo.toml", tmp_path / "target")

    cmd = run.call_args.args[0]
    assert cmd[:2] == ["cargo", "check"]
    assert "--manifest-path" in cmd
    assert str(tmp_path / "Cargo.toml") in cmd
    assert cmd[cmd.index("--target-dir") + 1] == str(tmp_path / "target")


def test_failed_build_raises(mocker, tmp_path: Path) -> None:
    """Test that a failed build reports the tail of cargo's output."""
    mocker.patch(
        "dependency_risk.build.subprocess.run",
        return_value=subprocess.CompletedProcess(
            args=[], returncode=101, stdout="", stderr="error[E0432]: unresolved import\n"
        ),
    )

    with pytest.raises(BuildError, match="E0432"):
        CargoBuild().run(tmp_path / "Cargo.toml", tmp_path / "target")


def test_missing_cargo_raises(mocker, tmp_path: Path) -> None:
    mocker.patch(
        "dependency_risk.build.subprocess.run",
        side_effect=FileNotFoundError("cargo"),
    )

    with pytest.raises(BuildError, match="Could not run cargo"):
        CargoBuild().run(tmp_path / "Cargo.toml", tmp_path / "target")


@pytest.fixture
def cargo_messages(fixtures_dir: Path) -> str:
    return (fixtures_dir / "cargo_check_messages.jsonl").read_text(encoding="utf-8")


def test_parse_messages_counts_unsafe_code(cargo_messages: str) -> None:
    """Test that unsafe_code diagnostics are attributed to their package."""
    result = parse_messages(cargo_messages)

    assert result.compiled == {MEMCHR, CFG_IF, APP}
    assert result.unsafe_count(MEMCHR) == 2
    assert result.unsafe_count(CFG_IF) == 0
    assert result.unsafe_count(APP) == 0
    assert result.unsafe_count("never-built 1.0.0") is None


def test_parse_messages_ignores_noise() -> None:
    stdout = "   Compiling memchr v2.7.1\n{not json\n" + '{"reason":"build-finished","success":true}\n'

    result = parse_messages(stdout)

    assert result.compiled == set()


def test_run_forbids_unsafe_code(mocker, tmp_path: Path, cargo_messages: str) -> None:
    """Test that the build flags unsafe code and returns the parsed messages."""
    mocker.patch.dict("os.environ", {"RUSTFLAGS": "-Ctarget-cpu=native"})
    run = mocker.patch(
        "dependency_risk.build.subprocess.run",
        return_value=subprocess.CompletedProcess(
            args=[], returncode=0, stdout=cargo_messages, stderr=""
        ),
    )

    result = CargoBuild().run(tmp_path / "Cargo.toml", tmp_path / "target")

    env = run.call_args.kwargs["env"]
    assert env["RUSTFLAGS"] == "-Ctarget-cpu=native -Funsafe-code --cap-lints=warn"
    assert "-vv" in run.call_args.args[0]
    assert result.unsafe_count(MEMCHR) == 2
