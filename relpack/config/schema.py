# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for relpack.

Every config section gets its own frozen pydantic model:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked

A release config is a single YAML file:

    global:
      config_version: "1.0.0"
    release:
      program_name: "ћирко"
      targets: [x86_64-unknown-linux-gnu, x86_64-pc-windows-gnu]
      signing:
        enabled: true

Every policy the pipeline applies on failure (missing tag, failed target,
failed signature) is a named field here rather than a hardcoded behavior.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from relpack.release.targets import DEFAULT_TARGETS, validate_catalog

VersioningMode = Literal["required", "optional", "disabled"]
FailurePolicy = Literal["abort", "continue"]
SigningFailurePolicy = Literal["fatal", "warn"]
ArchiveBackend = Literal["builtin", "zip"]


class GlobalConfig(BaseModel):
    """Cross-cutting settings: schema version, identity, observability."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="relpack", description="Human-readable project identifier"
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output, relative to project root",
    )


class ToolchainConfig(BaseModel):
    """How the external compiler toolchain is invoked for each target."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    program: str = Field(default="cargo", description="Toolchain executable")
    profile: str = Field(
        default="release",
        min_length=1,
        description="Build profile passed as --profile",
    )
    target_directory: str = Field(
        default="target",
        description="Toolchain output root, relative to project root. Passed to cargo as --target-dir",
    )
    extra_args: list[str] = Field(
        default_factory=list,
        description="Additional arguments appended to every build invocation",
    )
    timeout_seconds: Optional[int] = Field(
        default=None,
        ge=1,
        description="Upper bound on a single build invocation, None means unbounded",
    )


class VersioningConfig(BaseModel):
    """
    Where the release identifier comes from and what happens when there is none.

    mode:
      required: no tag is a fatal error
      optional: no tag degrades to unversioned archive names
      disabled: never look, archive names are always unversioned
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    mode: VersioningMode = Field(default="required")
    tag_pattern: Optional[str] = Field(
        default=None,
        description="Glob passed to `git describe --match`, e.g. 'v*'",
    )
    strip_prefix: str = Field(
        default="",
        description="Prefix removed from the tag before it is used in names, e.g. 'v'",
    )
    timeout_seconds: int = Field(default=30, ge=1)


class ArchiveConfig(BaseModel):
    """Which archiver bundles each binary."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    backend: ArchiveBackend = Field(
        default="builtin",
        description="'builtin' writes zips in-process, 'zip' shells out to the zip utility",
    )
    program: str = Field(default="zip", description="Executable used by the 'zip' backend")
    compression_level: int = Field(default=9, ge=0, le=9)
    timeout_seconds: Optional[int] = Field(default=None, ge=1)


class SigningConfig(BaseModel):
    """Detached signature production. Off unless explicitly enabled."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    enabled: bool = Field(default=False, description="Produce a .asc next to every archive")
    program: str = Field(default="gpg", description="Signing utility executable")
    key_id: Optional[str] = Field(
        default=None,
        description="Key passed as --local-user; the utility's default key when None",
    )
    home: Optional[str] = Field(
        default=None,
        description="Keyring directory passed as --homedir",
    )
    passphrase_env: Optional[str] = Field(
        default="GPG_PASSPHRASE",
        description="Environment variable holding the key passphrase, if any",
    )
    suffix: str = Field(default=".asc", min_length=1)
    failure_policy: SigningFailurePolicy = Field(
        default="fatal",
        description="'fatal' stops the run, 'warn' keeps the unsigned archive and continues",
    )
    serialize: bool = Field(
        default=True,
        description="Never run two signing invocations at once when jobs > 1",
    )
    timeout_seconds: Optional[int] = Field(default=120, ge=1)


class ReleaseConfig(BaseModel):
    """The release pipeline: what to build, where to put it, and the failure policy."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    program_name: str = Field(
        min_length=1,
        description="Binary name produced by the toolchain, without platform suffix",
    )
    targets: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TARGETS),
        description="Target catalog, built in this order",
    )
    output_directory: str = Field(
        default="build",
        description="Archive output directory, relative to project root. Reset on every run.",
    )
    failure_policy: FailurePolicy = Field(
        default="abort",
        description="'abort' stops at the first failed target, 'continue' isolates failures",
    )
    jobs: int = Field(
        default=1,
        ge=1,
        description="Targets processed concurrently; 1 is strictly sequential",
    )
    checksums: bool = Field(
        default=False,
        description="Write SHA256SUMS over the produced archives",
    )
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    versioning: VersioningConfig = Field(default_factory=VersioningConfig)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    signing: SigningConfig = Field(default_factory=SigningConfig)

    @field_validator("targets")
    @classmethod
    def _check_targets(cls, value: list[str]) -> list[str]:
        return list(validate_catalog(value))

    @field_validator("program_name")
    @classmethod
    def _check_program_name(cls, value: str) -> str:
        if "/" in value or "\\" in value:
            raise ValueError(f"program_name must be a bare file name, got '{value}'")
        return value


class RelpackConfig(BaseModel):
    """
    Top-level config container.

    `release` is optional so a file with only `global:` still loads; commands
    that need it report a config error when it's missing.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    release: Optional[ReleaseConfig] = Field(default=None)
