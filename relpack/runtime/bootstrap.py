# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for relpack.

One-time setup before any command does real work:
  1. Validate the interpreter version
  2. Configure logging from the global config
  3. Record the host the release is produced on
"""

from pathlib import Path

from relpack.config.schema import GlobalConfig
from relpack.logging.logger import attach_package_log_file, get_logger, set_package_log_level
from relpack.runtime.environment import check_minimum_python, get_system_info


def bootstrap(config: GlobalConfig, project_root: Path | None = None) -> None:
    """
    Run the bootstrap sequence.

    Args:
        config: The validated global configuration.
        project_root: Base for a relative `log_file`. Defaults to cwd.
    """
    check_minimum_python()

    set_package_log_level("relpack", config.log_level)
    if config.log_file is not None:
        log_file = Path(config.log_file)
        if not log_file.is_absolute():
            log_file = (project_root if project_root is not None else Path.cwd()) / log_file
        attach_package_log_file("relpack", log_file, config.log_level)

    logger = get_logger("relpack.runtime", log_level=config.log_level)

    system_info = get_system_info()
    logger.info(
        "relpack bootstrap complete",
        extra={
            "project": config.project_name,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
        },
    )
