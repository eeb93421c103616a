# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Output workspace preparation.

The output directory is reset at the start of every run: whatever a previous
run left behind (including a failed run's partial output) is removed, and an
empty directory is created in its place. Runs are never additive.
"""

import shutil
from pathlib import Path

from relpack.logging.logger import get_logger
from relpack.release.errors import WorkspaceError

_logger = get_logger(__name__)


def prepare_workspace(output_dir: Path) -> Path:
    """
    Delete `output_dir` recursively if it exists, then create it empty.

    Args:
        output_dir: The release output directory.

    Returns:
        The same path, now an empty directory.

    Raises:
        WorkspaceError: If the path is a file, or removal/creation fails.
    """
    if output_dir.exists() or output_dir.is_symlink():
        if not output_dir.is_dir() or output_dir.is_symlink():
            raise WorkspaceError(
                f"Output path {output_dir} exists and is not a directory; refusing to remove it"
            )
        try:
            entries = sum(1 for _ in output_dir.iterdir())
            _logger.warning(
                "Removing previous output directory",
                extra={"output_dir": str(output_dir), "entries": entries},
            )
            shutil.rmtree(output_dir)
        except OSError as err:
            raise WorkspaceError(
                f"Cannot remove previous output directory {output_dir}", diagnostic=str(err)
            ) from err

    try:
        output_dir.mkdir(parents=True, exist_ok=False)
    except OSError as err:
        raise WorkspaceError(
            f"Cannot create output directory {output_dir}", diagnostic=str(err)
        ) from err

    _logger.info("Workspace ready", extra={"output_dir": str(output_dir)})
    return output_dir
