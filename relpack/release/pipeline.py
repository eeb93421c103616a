# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release pipeline: builds, packages and signs every target in the catalog.

Run-level steps happen once, in this order:
  1. resolve the release identifier (may be fatal, see versioning.py)
  2. reset the output directory (fatal on failure)

The identifier is resolved first so that a missing tag in 'required' mode
leaves the previous run's output untouched.

Then each target walks its own state machine:

    PENDING → BUILT → PACKAGED → [SIGNED] → DONE
                 any failure → FAILED

Targets share nothing but the output directory, and every path they write is
derived from the target string, so they can run sequentially (jobs: 1, the
default) or on a thread pool. The failure policy is explicit:

    abort    : the first FAILED target stops the run; targets not yet started stay PENDING
    continue : every target is attempted; the run fails if any target failed

Output of a failed run is left in place for inspection. The next run resets it.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from relpack.config.schema import ReleaseConfig
from relpack.logging.logger import get_logger
from relpack.release.checksums.integrity import generate_checksums, write_checksum_file
from relpack.release.errors import PackagingError, ReleaseError, SigningError
from relpack.release.naming import archive_name, binary_path, signature_path
from relpack.release.packaging.archiver import (
    Archiver,
    ZipCommandArchiver,
    ZipfileArchiver,
    package_binary,
)
from relpack.release.signing.signer import GpgSigner, Signer
from relpack.release.toolchain import CargoToolchain, Toolchain
from relpack.release.versioning import GitTagSource, VersionSource, resolve_release_id
from relpack.release.workspace import prepare_workspace
from relpack.utils.paths import resolve_within

_logger = get_logger(__name__)


class TargetState(str, Enum):
    PENDING = "pending"
    BUILT = "built"
    PACKAGED = "packaged"
    SIGNED = "signed"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TargetOutcome:
    """Where one target ended up, and what it produced on the way."""

    target: str
    state: TargetState = TargetState.PENDING
    binary: Optional[Path] = None
    archive: Optional[Path] = None
    signature: Optional[Path] = None
    error: Optional[ReleaseError] = None
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PlannedTarget:
    """The paths a target will produce. Computed without touching the filesystem."""

    target: str
    binary: Path
    archive: Path
    signature: Optional[Path]


@dataclass(frozen=True)
class ReleaseReport:
    """Outcome of a complete run."""

    release_id: Optional[str]
    output_dir: Path
    outcomes: tuple[TargetOutcome, ...]
    checksum_file: Optional[Path] = None

    @property
    def succeeded(self) -> bool:
        return all(outcome.state is TargetState.DONE for outcome in self.outcomes)

    @property
    def failures(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if o.state is TargetState.FAILED]

    @property
    def skipped(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if o.state is TargetState.PENDING]

    @property
    def archives(self) -> list[Path]:
        return [o.archive for o in self.outcomes if o.archive is not None]

    @property
    def signatures(self) -> list[Path]:
        return [o.signature for o in self.outcomes if o.signature is not None]


class ReleasePipeline:
    """
    Drives the collaborators for every target in `config.targets`.

    The toolchain, version source, archiver and signer are injected, so the
    orchestration can be exercised with fakes. `build_pipeline` wires up the
    real ones from config.
    """

    def __init__(
        self,
        config: ReleaseConfig,
        project_root: Path,
        toolchain: Toolchain,
        version_source: VersionSource,
        archiver: Archiver,
        signer: Optional[Signer] = None,
    ) -> None:
        if config.signing.enabled and signer is None:
            raise ValueError("Signing is enabled in config but no signer was provided")

        self.config = config
        self.project_root = project_root
        self.toolchain = toolchain
        self.version_source = version_source
        self.archiver = archiver
        self.signer = signer if config.signing.enabled else None
        self.output_dir = resolve_within(project_root, config.output_directory)
        self.target_root = resolve_within(project_root, config.toolchain.target_directory)
        self._sign_lock = threading.Lock()

    def resolve_release_id(self) -> Optional[str]:
        return resolve_release_id(self.version_source, self.config.versioning.mode)

    def plan(self, release_id: Optional[str]) -> list[PlannedTarget]:
        """Every path the run will produce, in catalog order."""
        planned = []
        for target in self.config.targets:
            archive = self.output_dir / archive_name(target, release_id)
            planned.append(
                PlannedTarget(
                    target=target,
                    binary=binary_path(
                        self.target_root,
                        target,
                        self.config.toolchain.profile,
                        self.config.program_name,
                    ),
                    archive=archive,
                    signature=(
                        signature_path(archive, self.config.signing.suffix)
                        if self.config.signing.enabled
                        else None
                    ),
                )
            )
        return planned

    def run(self) -> ReleaseReport:
        """
        Execute the whole release.

        Returns:
            ReleaseReport. Per-target failures are recorded on the outcomes,
            not raised; check `report.succeeded`.

        Raises:
            VersionResolutionError: No tag in 'required' versioning mode.
            WorkspaceError: The output directory could not be reset.
            PackagingError: The checksum file could not be written.
        """
        release_id = self.resolve_release_id()
        prepare_workspace(self.output_dir)

        outcomes = tuple(TargetOutcome(target=target) for target in self.config.targets)
        _logger.info(
            "Release started",
            extra={
                "release_id": release_id,
                "targets": len(outcomes),
                "jobs": self.config.jobs,
                "failure_policy": self.config.failure_policy,
                "signing": self.signer is not None,
            },
        )

        if self.config.jobs == 1:
            self._run_sequential(outcomes, release_id)
        else:
            self._run_parallel(outcomes, release_id)

        checksum_file = None
        archives = [o.archive for o in outcomes if o.archive is not None]
        if self.config.checksums and archives:
            try:
                checksum_file = write_checksum_file(self.output_dir, generate_checksums(archives))
            except OSError as err:
                raise PackagingError("Cannot write checksum file", diagnostic=str(err)) from err

        report = ReleaseReport(
            release_id=release_id,
            output_dir=self.output_dir,
            outcomes=outcomes,
            checksum_file=checksum_file,
        )

        log_fn = _logger.info if report.succeeded else _logger.error
        log_fn(
            "Release finished",
            extra={
                "release_id": release_id,
                "succeeded": report.succeeded,
                "done": sum(1 for o in outcomes if o.state is TargetState.DONE),
                "failed": len(report.failures),
                "not_attempted": len(report.skipped),
            },
        )
        return report

    def _stop_after(self, outcome: TargetOutcome) -> bool:
        return outcome.state is TargetState.FAILED and self.config.failure_policy == "abort"

    def _run_sequential(self, outcomes: tuple[TargetOutcome, ...], release_id: Optional[str]) -> None:
        for outcome in outcomes:
            self._process_target(outcome, release_id)
            if self._stop_after(outcome):
                _logger.error(
                    "Aborting release after failed target",
                    extra={"target": outcome.target},
                )
                break

    def _run_parallel(self, outcomes: tuple[TargetOutcome, ...], release_id: Optional[str]) -> None:
        stop = threading.Event()

        def work(outcome: TargetOutcome) -> None:
            if stop.is_set():
                return
            self._process_target(outcome, release_id)
            if self._stop_after(outcome):
                stop.set()

        with ThreadPoolExecutor(max_workers=self.config.jobs) as pool:
            futures = [pool.submit(work, outcome) for outcome in outcomes]
            for future in futures:
                future.result()

        if stop.is_set():
            _logger.error("Aborted release after failed target")

    def _process_target(self, outcome: TargetOutcome, release_id: Optional[str]) -> None:
        target = outcome.target
        try:
            outcome.binary = self.toolchain.build(target)
            outcome.state = TargetState.BUILT

            archive = package_binary(
                self.archiver, outcome.binary, self.output_dir, target, release_id
            )
            outcome.archive = archive
            outcome.state = TargetState.PACKAGED

            if self.signer is not None:
                self._sign(outcome, self.signer, archive)

            outcome.state = TargetState.DONE
            _logger.info("Target done", extra={"target": target, "archive": str(outcome.archive)})

        except ReleaseError as err:
            if err.target is None:
                err.target = target
            outcome.error = err
            failed_in = outcome.state
            outcome.state = TargetState.FAILED
            _logger.error(
                "Target failed",
                extra={
                    "target": target,
                    "step": err.step,
                    "last_state": failed_in.value,
                    "error": err.message,
                    "diagnostic": err.diagnostic,
                },
            )

    def _sign(self, outcome: TargetOutcome, signer: Signer, archive: Path) -> None:
        try:
            if self.config.signing.serialize:
                with self._sign_lock:
                    outcome.signature = signer.sign(archive)
            else:
                outcome.signature = signer.sign(archive)
        except SigningError as err:
            if self.config.signing.failure_policy != "warn":
                raise
            err.target = outcome.target
            outcome.warnings.append(str(err))
            _logger.warning(
                "Signing failed, keeping unsigned archive",
                extra={"target": outcome.target, "error": err.message, "diagnostic": err.diagnostic},
            )
            return
        outcome.state = TargetState.SIGNED


def build_pipeline(config: ReleaseConfig, project_root: Path) -> ReleasePipeline:
    """Wire the real toolchain, git, archiver and signer from configuration."""
    toolchain = CargoToolchain(
        project_root=project_root,
        program_name=config.program_name,
        profile=config.toolchain.profile,
        target_directory=resolve_within(project_root, config.toolchain.target_directory),
        program=config.toolchain.program,
        extra_args=config.toolchain.extra_args,
        timeout_seconds=config.toolchain.timeout_seconds,
    )

    version_source = GitTagSource(
        repo_dir=project_root,
        tag_pattern=config.versioning.tag_pattern,
        strip_prefix=config.versioning.strip_prefix,
        timeout_seconds=config.versioning.timeout_seconds,
    )

    archiver: Archiver
    if config.archive.backend == "zip":
        archiver = ZipCommandArchiver(
            program=config.archive.program,
            compression_level=config.archive.compression_level,
            timeout_seconds=config.archive.timeout_seconds,
        )
    else:
        archiver = ZipfileArchiver(compression_level=config.archive.compression_level)

    signer: Optional[Signer] = None
    if config.signing.enabled:
        signer = GpgSigner(
            program=config.signing.program,
            key_id=config.signing.key_id,
            home=(
                resolve_within(project_root, config.signing.home)
                if config.signing.home is not None
                else None
            ),
            passphrase_env=config.signing.passphrase_env,
            suffix=config.signing.suffix,
            timeout_seconds=config.signing.timeout_seconds,
        )

    return ReleasePipeline(
        config=config,
        project_root=project_root,
        toolchain=toolchain,
        version_source=version_source,
        archiver=archiver,
        signer=signer,
    )
