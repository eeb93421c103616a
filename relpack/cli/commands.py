# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the relpack CLI.

Each function here corresponds to one CLI subcommand and returns an exit code.
Diagnostics go through the structured logger (stderr); only the data a
command exists to print (`version`, `targets`) is written to stdout.
"""

import argparse
import logging
import sys
from pathlib import Path

from relpack.cli.exit_codes import (
    CONFIG_ERROR,
    RUNTIME_ERROR,
    SUCCESS,
    VALIDATION_ERROR,
)
from relpack.config.exceptions import ConfigError
from relpack.config.loader import default_config_path, load_config
from relpack.config.schema import ReleaseConfig
from relpack.logging.logger import get_logger
from relpack.release.errors import ReleaseError, VersionResolutionError
from relpack.runtime.bootstrap import bootstrap


def _resolve_config_path(args: argparse.Namespace) -> tuple[Path, Path]:
    """
    Return (config_path, project_root).

    An explicit --config makes its directory the project root. Otherwise we
    walk up from cwd to the project root and expect relpack.yaml there.
    """
    if args.config is not None:
        config_path = Path(args.config).resolve()
        return config_path, config_path.parent

    from relpack.utils.paths import resolve_project_root

    try:
        project_root = resolve_project_root()
    except RuntimeError:
        project_root = Path.cwd().resolve()
    return default_config_path(project_root), project_root


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, ReleaseConfig | None, Path, logging.Logger]:
    """
    Shared setup: load config, require a release section, run bootstrap.

    Returns (exit_code, release_config, project_root, logger). If exit_code is
    not SUCCESS the caller should return it immediately.
    """
    logger = get_logger(f"relpack.cli.{command_name}", log_level=args.log_level or "INFO")
    config_path, project_root = _resolve_config_path(args)

    try:
        config = load_config(config_path)
    except ConfigError as err:
        logger.error(
            "Configuration error",
            extra={"command": command_name, "config": str(config_path), "error": str(err)},
        )
        return CONFIG_ERROR, None, project_root, logger

    if config.release is None:
        logger.error(
            "Config has no 'release' section",
            extra={"command": command_name, "config": str(config_path)},
        )
        return CONFIG_ERROR, None, project_root, logger

    global_config = config.global_config
    # An explicit --log-level wins over the config file's level.
    if args.log_level is not None:
        global_config = global_config.model_copy(update={"log_level": args.log_level})
    bootstrap(global_config, project_root)

    return SUCCESS, config.release, project_root, logger


def handle_build(args: argparse.Namespace) -> int:
    """Build, package and (optionally) sign every target in the catalog."""
    exit_code, release, project_root, logger = _load_and_bootstrap(args, "build")
    if exit_code != SUCCESS or release is None:
        return exit_code

    from relpack.release.pipeline import build_pipeline

    pipeline = build_pipeline(release, project_root)

    try:
        if args.dry_run:
            release_id = pipeline.resolve_release_id()
            for planned in pipeline.plan(release_id):
                logger.info(
                    "Dry run: would build",
                    extra={
                        "target": planned.target,
                        "binary": str(planned.binary),
                        "archive": str(planned.archive),
                        "signature": str(planned.signature) if planned.signature else None,
                    },
                )
            logger.info(
                "Dry run: would reset output directory",
                extra={"output_dir": str(pipeline.output_dir)},
            )
            return SUCCESS

        logger.info(
            "Starting release",
            extra={"command": "build", "targets": list(release.targets)},
        )
        report = pipeline.run()

    except VersionResolutionError as err:
        logger.error("Version resolution failed", extra={"error": str(err)})
        return VALIDATION_ERROR
    except ReleaseError as err:
        logger.error(
            "Release failed",
            extra={"step": err.step, "target": err.target, "error": str(err)},
        )
        return RUNTIME_ERROR

    for outcome in report.failures:
        logger.error(
            "Target failed",
            extra={
                "target": outcome.target,
                "step": outcome.error.step if outcome.error else None,
                "error": outcome.error.message if outcome.error else None,
            },
        )
    for outcome in report.outcomes:
        for warning in outcome.warnings:
            logger.warning("Target warning", extra={"target": outcome.target, "warning": warning})

    if not report.succeeded:
        if report.skipped:
            logger.error(
                "Targets not attempted",
                extra={"targets": [o.target for o in report.skipped]},
            )
        return RUNTIME_ERROR

    logger.info(
        "Release complete",
        extra={
            "release_id": report.release_id,
            "output_dir": str(report.output_dir),
            "archives": [p.name for p in report.archives],
            "signatures": [p.name for p in report.signatures],
        },
    )
    return SUCCESS


def handle_targets(args: argparse.Namespace) -> int:
    """Print the target catalog with the binary and archive name of each target."""
    exit_code, release, project_root, logger = _load_and_bootstrap(args, "targets")
    if exit_code != SUCCESS or release is None:
        return exit_code

    from relpack.release.pipeline import build_pipeline

    pipeline = build_pipeline(release, project_root)

    release_id = None
    if release.versioning.mode != "disabled":
        try:
            release_id = pipeline.resolve_release_id()
        except VersionResolutionError as err:
            logger.warning(
                "No release identifier, listing unversioned names",
                extra={"error": err.message},
            )

    for planned in pipeline.plan(release_id):
        sys.stdout.write(f"{planned.target}\t{planned.binary.name}\t{planned.archive.name}\n")
    return SUCCESS


def handle_version(args: argparse.Namespace) -> int:
    """Print the release identifier the next build would use."""
    exit_code, release, project_root, logger = _load_and_bootstrap(args, "version")
    if exit_code != SUCCESS or release is None:
        return exit_code

    from relpack.release.pipeline import build_pipeline

    try:
        release_id = build_pipeline(release, project_root).resolve_release_id()
    except VersionResolutionError as err:
        logger.error("Version resolution failed", extra={"error": str(err)})
        return VALIDATION_ERROR

    sys.stdout.write(f"{release_id or ''}\n")
    return SUCCESS


def handle_check(args: argparse.Namespace) -> int:
    """Run pre-flight checks for the configured pipeline."""
    exit_code, release, project_root, logger = _load_and_bootstrap(args, "check")
    if exit_code != SUCCESS or release is None:
        return exit_code

    from relpack.release.environment.validator import validate_environment
    from relpack.utils.paths import resolve_within

    try:
        checks = validate_environment(
            release, resolve_within(project_root, release.output_directory)
        )
    except Exception as err:
        logger.error("Environment check crashed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR

    failed = [c.name for c in checks if not c.passed]
    if failed:
        logger.error("Environment not ready", extra={"failed_checks": failed})
        return VALIDATION_ERROR
    return SUCCESS


def handle_info(args: argparse.Namespace) -> int:
    """Display relpack and host information. Needs no config."""
    logger = get_logger("relpack.cli.info", log_level=args.log_level or "INFO")

    from relpack import __version__
    from relpack.runtime.environment import get_system_info

    system_info = get_system_info()

    logger.info(
        "System information",
        extra={
            "relpack_version": __version__,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "hostname": system_info.hostname,
            "config": args.config,
        },
    )
    return SUCCESS
