# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Pre-flight environment validation for a release run.

Checks, before anything is deleted or built:
- Python version
- every external executable the configured pipeline will call
- free disk space where the archives will be written

A missing `gpg` discovered after three targets have been compiled is an
expensive way to find out. `relpack check` runs these up front.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from relpack.config.schema import ReleaseConfig
from relpack.logging.logger import get_logger
from relpack.runtime.environment import (
    MINIMUM_PYTHON_MAJOR,
    MINIMUM_PYTHON_MINOR,
    get_python_version,
)

_logger: logging.Logger = get_logger(__name__)

MIN_DISK_SPACE_BYTES: int = 268_435_456  # 256 MB


@dataclass(frozen=True)
class EnvironmentCheck:
    """Result of a single environment check."""

    name: str
    passed: bool
    message: str
    value: str


def check_python_version() -> EnvironmentCheck:
    """Verify Python >= 3.11."""
    major, minor, micro = get_python_version()
    version_str = f"{major}.{minor}.{micro}"
    passed = (major, minor) >= (MINIMUM_PYTHON_MAJOR, MINIMUM_PYTHON_MINOR)
    if passed:
        msg = f"Python {version_str} meets minimum {MINIMUM_PYTHON_MAJOR}.{MINIMUM_PYTHON_MINOR}"
    else:
        msg = (
            f"Python {version_str} does NOT meet minimum "
            f"{MINIMUM_PYTHON_MAJOR}.{MINIMUM_PYTHON_MINOR}"
        )
    return EnvironmentCheck(name="python_version", passed=passed, message=msg, value=version_str)


def check_executable(program: str, purpose: str) -> EnvironmentCheck:
    """Check that `program` resolves on PATH (or is an existing path)."""
    resolved = shutil.which(program)
    if resolved is not None:
        return EnvironmentCheck(
            name=f"executable:{program}",
            passed=True,
            message=f"{program} found for {purpose}",
            value=resolved,
        )
    return EnvironmentCheck(
        name=f"executable:{program}",
        passed=False,
        message=f"{program} not found on PATH, needed for {purpose}",
        value="not_found",
    )


def check_disk_space(path: Path | None = None) -> EnvironmentCheck:
    """
    Check available disk space at `path`, or its nearest existing ancestor.

    The output directory usually doesn't exist yet before the first run.
    """
    check_path = path or Path.cwd()
    while not check_path.exists() and check_path != check_path.parent:
        check_path = check_path.parent

    try:
        usage = shutil.disk_usage(str(check_path))
    except OSError as err:
        return EnvironmentCheck(
            name="disk_space",
            passed=False,
            message=f"Cannot check disk space: {err}",
            value="error",
        )

    free_mb = usage.free / (1024**2)
    passed = usage.free >= MIN_DISK_SPACE_BYTES
    if passed:
        msg = f"{free_mb:.0f} MB free (minimum {MIN_DISK_SPACE_BYTES / (1024**2):.0f} MB)"
    else:
        msg = (
            f"Only {free_mb:.0f} MB free, need at least "
            f"{MIN_DISK_SPACE_BYTES / (1024**2):.0f} MB"
        )
    return EnvironmentCheck(name="disk_space", passed=passed, message=msg, value=f"{free_mb:.0f}MB")


def required_executables(config: ReleaseConfig) -> list[tuple[str, str]]:
    """(program, purpose) pairs the configured pipeline will invoke."""
    programs = [(config.toolchain.program, "building targets")]
    if config.versioning.mode != "disabled":
        programs.append(("git", "release tag lookup"))
    if config.archive.backend == "zip":
        programs.append((config.archive.program, "archive packaging"))
    if config.signing.enabled:
        programs.append((config.signing.program, "archive signing"))
    return programs


def validate_environment(
    config: ReleaseConfig,
    output_dir: Path | None = None,
) -> list[EnvironmentCheck]:
    """
    Run all pre-flight checks for `config`.

    Returns:
        List of EnvironmentCheck results, one per check. Callers decide what a
        failure means; `relpack check` turns any failure into a non-zero exit.
    """
    checks = [check_python_version()]
    checks.extend(
        check_executable(program, purpose) for program, purpose in required_executables(config)
    )
    checks.append(check_disk_space(output_dir))

    passed_count = sum(1 for c in checks if c.passed)
    failed_count = len(checks) - passed_count

    for check in checks:
        log_fn = _logger.info if check.passed else _logger.error
        log_fn(
            "Environment check",
            extra={
                "check": check.name,
                "passed": check.passed,
                "check_message": check.message,
            },
        )

    _logger.info(
        "Environment validation complete",
        extra={"passed": passed_count, "failed": failed_count},
    )

    return checks
