# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release identifier resolution.

The identifier comes from the most recent git tag reachable from HEAD. What
happens when there is no such tag is a configuration decision, not something
this module guesses at:

    required : raise VersionResolutionError
    optional : warn and fall back to unversioned archive names
    disabled : never ask git; names are always unversioned
"""

from pathlib import Path
from typing import Optional, Protocol

from relpack.logging.logger import get_logger
from relpack.release.errors import VersionResolutionError
from relpack.release.process import run_command

_logger = get_logger(__name__)

VALID_MODES: frozenset[str] = frozenset({"required", "optional", "disabled"})


class VersionSource(Protocol):
    """Anything that can name the latest release tag, or report there is none."""

    def latest_tag(self) -> Optional[str]: ...


class GitTagSource:
    """
    Reads the latest tag with `git describe --tags --abbrev=0`.

    Lightweight and annotated tags both count. An optional `--match` glob
    restricts which tags are considered (e.g. only `v*`).
    """

    def __init__(
        self,
        repo_dir: Path,
        tag_pattern: Optional[str] = None,
        strip_prefix: str = "",
        program: str = "git",
        timeout_seconds: int = 30,
    ) -> None:
        self.repo_dir = repo_dir
        self.tag_pattern = tag_pattern
        self.strip_prefix = strip_prefix
        self.program = program
        self.timeout_seconds = timeout_seconds

    def command(self) -> list[str]:
        args = [self.program, "describe", "--tags", "--abbrev=0"]
        if self.tag_pattern:
            args.extend(["--match", self.tag_pattern])
        return args

    def latest_tag(self) -> Optional[str]:
        result = run_command(
            self.command(),
            cwd=self.repo_dir,
            timeout_seconds=self.timeout_seconds,
        )
        if not result.success:
            _logger.debug(
                "No tag found",
                extra={"repo_dir": str(self.repo_dir), "diagnostic": result.diagnostic},
            )
            return None

        tag = result.stdout.strip()
        if not tag:
            return None
        if self.strip_prefix and tag.startswith(self.strip_prefix):
            tag = tag[len(self.strip_prefix):]
        return tag or None


def resolve_release_id(source: VersionSource, mode: str) -> Optional[str]:
    """
    Resolve the release identifier once for the whole run.

    Args:
        source: Where tags come from.
        mode: 'required', 'optional' or 'disabled'.

    Returns:
        The identifier, or None for unversioned naming.

    Raises:
        VersionResolutionError: In 'required' mode when the source has no tag,
            and in any mode when the tag contains a path separator.
        ValueError: For an unknown mode.
    """
    if mode not in VALID_MODES:
        raise ValueError(f"Unknown versioning mode '{mode}', expected one of {sorted(VALID_MODES)}")

    if mode == "disabled":
        _logger.info("Versioning disabled, archives will be unversioned")
        return None

    release_id = source.latest_tag()
    if release_id is not None:
        # The identifier becomes part of a file name in the output directory.
        if "/" in release_id or "\\" in release_id:
            raise VersionResolutionError(
                f"Release tag '{release_id}' contains a path separator and cannot name an archive. "
                "Set release.versioning.strip_prefix (e.g. 'release/') or tag_pattern to select another tag."
            )
        _logger.info("Resolved release identifier", extra={"release_id": release_id})
        return release_id

    if mode == "required":
        raise VersionResolutionError(
            "No release tag reachable from the current revision and versioning mode is 'required'. "
            "Tag the release, or set release.versioning.mode to 'optional' or 'disabled'."
        )

    _logger.warning("No release tag found, falling back to unversioned archive names")
    return None
