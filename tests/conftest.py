# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for relpack tests.

The external tools (compiler toolchain, git, signer) are replaced by fakes
that record what they were asked to do and write plausible output files, so
the pipeline can be exercised end to end without cargo or gpg installed.
"""

import textwrap
from pathlib import Path
from typing import Optional

import pytest

from relpack.release.errors import BuildError, SigningError
from relpack.release.naming import binary_path, signature_path


class FakeToolchain:
    """
    Writes a fake binary where cargo would and records each target built.

    Targets listed in `failing` raise BuildError; targets in `no_output`
    "succeed" without producing a binary.
    """

    def __init__(
        self,
        target_root: Path,
        program_name: str,
        profile: str = "release",
        failing: tuple[str, ...] = (),
        no_output: tuple[str, ...] = (),
    ) -> None:
        self.target_root = target_root
        self.program_name = program_name
        self.profile = profile
        self.failing = set(failing)
        self.no_output = set(no_output)
        self.calls: list[str] = []

    def build(self, target: str) -> Path:
        self.calls.append(target)
        if target in self.failing:
            raise BuildError("cargo build exited with code 101", target=target, diagnostic="error[E0425]")
        output = binary_path(self.target_root, target, self.profile, self.program_name)
        if target not in self.no_output:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(f"binary for {target}".encode("utf-8"))
        return output


class FakeVersionSource:
    def __init__(self, tag: Optional[str]) -> None:
        self.tag = tag
        self.calls = 0

    def latest_tag(self) -> Optional[str]:
        self.calls += 1
        return self.tag


class FakeSigner:
    """Writes an armored-looking signature next to the file, or fails on request."""

    def __init__(self, fail: bool = False, suffix: str = ".asc") -> None:
        self.fail = fail
        self.suffix = suffix
        self.signed: list[Path] = []

    def sign(self, path: Path) -> Path:
        if self.fail:
            raise SigningError("gpg failed to sign", diagnostic="gpg: signing failed: No secret key")
        self.signed.append(path)
        output = signature_path(path, self.suffix)
        output.write_text(
            "-----BEGIN PGP SIGNATURE-----\nfake\n-----END PGP SIGNATURE-----\n",
            encoding="utf-8",
        )
        return output


@pytest.fixture()
def project_root(tmp_path: Path) -> Path:
    """An empty project directory with a Cargo.toml marker."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "Cargo.toml").write_text('[package]\nname = "prog"\n', encoding="utf-8")
    return root


@pytest.fixture()
def tmp_config_file(project_root: Path) -> Path:
    """
    A minimal valid relpack.yaml.

    Versioning is disabled so it runs without a git repository.
    """
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "relpack-test"
          log_level: "DEBUG"
        release:
          program_name: "prog"
          targets:
            - x86_64-unknown-linux-gnu
            - x86_64-pc-windows-gnu
          versioning:
            mode: disabled
    """)
    config_file = project_root / "relpack.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML that fails schema validation (missing program_name)."""
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
        release:
          targets: [x86_64-unknown-linux-gnu]
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file


@pytest.fixture()
def make_toolchain(project_root: Path):
    """Factory for FakeToolchain rooted at the project's target/ directory."""

    def _make(program_name: str = "prog", **kwargs) -> FakeToolchain:  # type: ignore[no-untyped-def]
        return FakeToolchain(project_root / "target", program_name, **kwargs)

    return _make


@pytest.fixture()
def make_version_source():
    """Factory for FakeVersionSource."""

    def _make(tag: Optional[str] = "1.2.0") -> FakeVersionSource:
        return FakeVersionSource(tag)

    return _make


@pytest.fixture()
def make_signer():
    """Factory for FakeSigner."""

    def _make(fail: bool = False) -> FakeSigner:
        return FakeSigner(fail=fail)

    return _make
