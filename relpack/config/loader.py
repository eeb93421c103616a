# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader: reads YAML from disk and produces a validated, frozen RelpackConfig.

The loading pipeline is linear:
  1. Read the file as UTF-8 (program names are often non-ASCII)
  2. Parse as YAML into a plain dict
  3. Hand the dict to pydantic for schema validation
  4. Return the frozen config object

Any failure stops the run before the workspace is touched.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from relpack.config.exceptions import ConfigLoadError, ConfigValidationError
from relpack.config.schema import RelpackConfig

DEFAULT_CONFIG_NAME = "relpack.yaml"


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed dict.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't a YAML mapping.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def load_config(config_path: Path) -> RelpackConfig:
    """
    Load, validate, and freeze a config file into a RelpackConfig.

    Args:
        config_path: Path to a YAML config file.

    Returns:
        A fully validated, frozen RelpackConfig instance.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations (missing fields, wrong types, unknown keys,
            invalid or duplicated targets).
    """
    raw_data = _read_yaml_file(config_path)

    try:
        config = RelpackConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(
            f"Config validation failed for {config_path}:\n{err}"
        ) from err

    return config


def default_config_path(cwd: Path | None = None) -> Path:
    """Where `relpack` looks for its config when `--config` is not given."""
    return (cwd if cwd is not None else Path.cwd()) / DEFAULT_CONFIG_NAME
