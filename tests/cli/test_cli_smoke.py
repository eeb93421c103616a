# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI smoke tests.

We run the actual entrypoint in a subprocess the way a user would. Builds use
a small Python script standing in for cargo: it writes the binary where cargo
would and fails for targets named in FAKE_CARGO_FAIL.
"""

import json
import os
import subprocess
import sys
import textwrap
import zipfile
from pathlib import Path

import pytest

FAKE_CARGO = textwrap.dedent("""\
    import os, sys
    from pathlib import Path

    args = sys.argv[1:]
    target = args[args.index("--target") + 1]
    profile = args[args.index("--profile") + 1]
    if target in os.environ.get("FAKE_CARGO_FAIL", "").split(","):
        sys.stderr.write(f"error: could not compile for {target}\\n")
        sys.exit(101)
    target_dir = args[args.index("--target-dir") + 1] if "--target-dir" in args else "target"
    name = "prog.exe" if "windows" in target else "prog"
    out = Path(target_dir) / target / profile / name
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(target.encode())
""")


def _run_cli(*args: str, cwd: Path | None = None, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    """Run `relpack` with the given arguments and capture output."""
    return subprocess.run(
        [sys.executable, "-m", "relpack.cli.main", *args],
        capture_output=True,
        text=True,
        timeout=60,
        cwd=str(cwd) if cwd is not None else None,
        env=env,
    )


@pytest.fixture()
def fake_cargo_config(project_root: Path) -> Path:
    """relpack.yaml whose toolchain is the fake cargo script."""
    if os.name != "posix" or len(sys.executable) > 120:
        pytest.skip("fake toolchain script needs a short POSIX shebang")
    script = project_root / "fake-cargo"
    script.write_text(f"#!{sys.executable}\n" + FAKE_CARGO, encoding="utf-8")
    script.chmod(0o755)

    config = project_root / "relpack.yaml"
    config.write_text(
        textwrap.dedent(f"""\
            global:
              config_version: "1.0.0"
              log_level: "DEBUG"
              log_file: "release.log"
            release:
              program_name: prog
              targets: [x86_64-unknown-linux-gnu, x86_64-pc-windows-gnu]
              toolchain:
                program: "{script}"
              versioning:
                mode: disabled
        """),
        encoding="utf-8",
    )
    return config


class TestHelpTexts:
    @pytest.mark.parametrize("subcommand", ["build", "targets", "version", "check", "info"])
    def test_subcommand_help_exits_zero(self, subcommand: str) -> None:
        result = _run_cli(subcommand, "--help")
        assert result.returncode == 0
        assert "usage" in result.stdout.lower()

    def test_root_help_exits_with_user_error(self) -> None:
        result = _run_cli()
        assert result.returncode == 1


class TestConfigHandling:
    def test_info_runs_without_config(self) -> None:
        assert _run_cli("info").returncode == 0

    def test_nonexistent_config_returns_config_error(self) -> None:
        result = _run_cli("build", "--config", "/nonexistent/relpack.yaml")
        assert result.returncode == 2

    def test_invalid_config_returns_config_error(self, invalid_config_file: Path) -> None:
        assert _run_cli("targets", "--config", str(invalid_config_file)).returncode == 2

    def test_config_without_release_section(self, tmp_path: Path) -> None:
        config = tmp_path / "relpack.yaml"
        config.write_text('global:\n  config_version: "1.0.0"\n', encoding="utf-8")
        assert _run_cli("build", "--config", str(config)).returncode == 2


class TestQueries:
    def test_targets_lists_names(self, tmp_config_file: Path) -> None:
        result = _run_cli("targets", "--config", str(tmp_config_file))
        assert result.returncode == 0
        assert result.stdout.splitlines() == [
            "x86_64-unknown-linux-gnu\tprog\tx86_64-unknown-linux-gnu.zip",
            "x86_64-pc-windows-gnu\tprog.exe\tx86_64-pc-windows-gnu.zip",
        ]

    def test_version_is_empty_when_disabled(self, tmp_config_file: Path) -> None:
        result = _run_cli("version", "--config", str(tmp_config_file))
        assert result.returncode == 0
        assert result.stdout == "\n"

    def test_required_version_outside_repo_is_validation_error(self, tmp_path: Path) -> None:
        config = tmp_path / "relpack.yaml"
        config.write_text(
            'global:\n  config_version: "1.0.0"\nrelease:\n  program_name: prog\n',
            encoding="utf-8",
        )
        env = {**os.environ, "GIT_CEILING_DIRECTORIES": str(tmp_path.parent)}
        result = _run_cli("version", "--config", str(config), env=env)
        assert result.returncode == 4

    def test_config_is_found_from_subdirectory(self, tmp_config_file: Path) -> None:
        nested = tmp_config_file.parent / "src"
        nested.mkdir()
        result = _run_cli("targets", cwd=nested)
        assert result.returncode == 0
        assert len(result.stdout.splitlines()) == 2


class TestBuild:
    def test_dry_run_touches_nothing(self, fake_cargo_config: Path) -> None:
        result = _run_cli("build", "--dry-run", "--config", str(fake_cargo_config))
        assert result.returncode == 0
        assert not (fake_cargo_config.parent / "build").exists()
        assert not (fake_cargo_config.parent / "target").exists()

    def test_build_produces_archives(self, fake_cargo_config: Path) -> None:
        result = _run_cli("build", "--config", str(fake_cargo_config))
        assert result.returncode == 0, result.stderr

        build = fake_cargo_config.parent / "build"
        assert sorted(p.name for p in build.iterdir()) == [
            "x86_64-pc-windows-gnu.zip",
            "x86_64-unknown-linux-gnu.zip",
        ]
        with zipfile.ZipFile(build / "x86_64-pc-windows-gnu.zip") as archive:
            assert archive.namelist() == ["prog.exe"]

    def test_second_target_failure_exits_non_zero(self, fake_cargo_config: Path) -> None:
        env = {**os.environ, "FAKE_CARGO_FAIL": "x86_64-pc-windows-gnu"}
        result = _run_cli("build", "--config", str(fake_cargo_config), env=env)

        assert result.returncode == 3
        build = fake_cargo_config.parent / "build"
        assert (build / "x86_64-unknown-linux-gnu.zip").is_file()
        assert not (build / "x86_64-pc-windows-gnu.zip").exists()
        assert "x86_64-pc-windows-gnu" in result.stderr
        assert "could not compile" in result.stderr

    def test_check_passes_with_fake_toolchain(self, fake_cargo_config: Path) -> None:
        result = _run_cli("check", "--config", str(fake_cargo_config))
        assert result.returncode == 0, result.stderr


class TestGlobalOptions:
    def test_config_before_subcommand(self, tmp_config_file: Path, tmp_path: Path) -> None:
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        result = _run_cli("--config", str(tmp_config_file), "targets", cwd=elsewhere)
        assert result.returncode == 0, result.stderr
        assert len(result.stdout.splitlines()) == 2

    def test_config_level_reaches_pipeline_modules(self, fake_cargo_config: Path) -> None:
        result = _run_cli("build", "--config", str(fake_cargo_config))
        assert result.returncode == 0, result.stderr
        assert "Running command" in result.stderr

    def test_explicit_info_overrides_debug_config(self, fake_cargo_config: Path) -> None:
        result = _run_cli("--log-level", "INFO", "build", "--config", str(fake_cargo_config))
        assert result.returncode == 0, result.stderr
        assert "Running command" not in result.stderr
        assert "Release complete" in result.stderr

    def test_log_level_after_subcommand(self, fake_cargo_config: Path) -> None:
        result = _run_cli("build", "--config", str(fake_cargo_config), "--log-level", "WARNING")
        assert result.returncode == 0, result.stderr
        assert '"level": "INFO"' not in result.stderr


class TestLogFile:
    def test_target_failure_reaches_log_file(self, fake_cargo_config: Path) -> None:
        env = {**os.environ, "FAKE_CARGO_FAIL": "x86_64-pc-windows-gnu"}
        result = _run_cli("build", "--config", str(fake_cargo_config), env=env)
        assert result.returncode == 3

        log_file = fake_cargo_config.parent / "release.log"
        records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
        failed = [r for r in records if r["msg"] == "Target failed"]
        assert {r["module"] for r in failed} == {"relpack.release.pipeline", "relpack.cli.build"}
        assert all(r["target"] == "x86_64-pc-windows-gnu" for r in failed)
        assert any(r["module"] == "relpack.release.toolchain" for r in records)
