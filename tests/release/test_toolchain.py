# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the cargo build driver. subprocess.run is patched; no cargo needed.
"""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from relpack.release.errors import BuildError
from relpack.release.toolchain import CargoToolchain


def _completed(returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestCommand:
    def test_reference_invocation(self, tmp_path: Path) -> None:
        toolchain = CargoToolchain(tmp_path, "prog")
        assert toolchain.command("x86_64-unknown-linux-gnu") == [
            "cargo", "build", "--profile", "release", "--target", "x86_64-unknown-linux-gnu",
            "--target-dir", str(tmp_path / "target"),
        ]

    def test_extra_args_are_appended(self, tmp_path: Path) -> None:
        toolchain = CargoToolchain(tmp_path, "prog", extra_args=["--locked"])
        assert toolchain.command("aarch64-apple-darwin")[-1] == "--locked"


class TestBuild:
    def test_success_returns_expected_binary_path(self, tmp_path: Path) -> None:
        toolchain = CargoToolchain(tmp_path, "prog", timeout_seconds=600)
        with patch("relpack.release.process.subprocess.run", return_value=_completed(0)) as run:
            binary = toolchain.build("x86_64-pc-windows-gnu")

        assert binary == tmp_path / "target" / "x86_64-pc-windows-gnu" / "release" / "prog.exe"
        kwargs = run.call_args.kwargs
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["timeout"] == 600

    def test_custom_target_directory_and_profile(self, tmp_path: Path) -> None:
        toolchain = CargoToolchain(tmp_path, "prog", profile="dev", target_directory=tmp_path / "out")
        with patch("relpack.release.process.subprocess.run", return_value=_completed(0)) as run:
            binary = toolchain.build("x86_64-unknown-linux-gnu")
        assert binary == tmp_path / "out" / "x86_64-unknown-linux-gnu" / "debug" / "prog"
        assert run.call_args.args[0][-2:] == ["--target-dir", str(tmp_path / "out")]

    def test_non_zero_exit_raises_build_error(self, tmp_path: Path) -> None:
        failure = _completed(101, stderr="error: could not compile `prog`")
        with patch("relpack.release.process.subprocess.run", return_value=failure):
            with pytest.raises(BuildError) as exc_info:
                CargoToolchain(tmp_path, "prog").build("x86_64-unknown-linux-gnu")

        err = exc_info.value
        assert err.target == "x86_64-unknown-linux-gnu"
        assert err.step == "build"
        assert "101" in err.message
        assert "could not compile" in err.diagnostic

    def test_timeout_raises_build_error(self, tmp_path: Path) -> None:
        with patch(
            "relpack.release.process.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="cargo", timeout=5),
        ):
            with pytest.raises(BuildError, match="timed out"):
                CargoToolchain(tmp_path, "prog", timeout_seconds=5).build("aarch64-apple-darwin")

    def test_missing_cargo_raises_build_error(self, tmp_path: Path) -> None:
        with patch("relpack.release.process.subprocess.run", side_effect=FileNotFoundError("cargo")):
            with pytest.raises(BuildError) as exc_info:
                CargoToolchain(tmp_path, "prog").build("aarch64-apple-darwin")
        assert "not found" in exc_info.value.diagnostic
