# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release pipeline errors.

Every error carries the context needed to act on it without rerunning with
more logging: which target, which step, and what the external tool said.
"""

from typing import Optional


class ReleaseError(Exception):
    """Base for all pipeline failures."""

    step: str = "release"

    def __init__(
        self,
        message: str,
        target: Optional[str] = None,
        diagnostic: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.target = target
        self.diagnostic = diagnostic

    def __str__(self) -> str:
        prefix = f"[{self.step}]"
        if self.target is not None:
            prefix = f"[{self.step} {self.target}]"
        text = f"{prefix} {self.message}"
        if self.diagnostic:
            text = f"{text}\n{self.diagnostic.rstrip()}"
        return text


class WorkspaceError(ReleaseError):
    """Output directory could not be reset. Nothing has been built."""

    step = "workspace"


class VersionResolutionError(ReleaseError):
    """No release identifier while versioned naming is required."""

    step = "version"


class BuildError(ReleaseError):
    """The toolchain failed for a target."""

    step = "build"


class PackagingError(ReleaseError):
    """The binary was missing or the archive could not be written."""

    step = "package"


class SigningError(ReleaseError):
    """The signing utility failed or produced no signature."""

    step = "sign"
