# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for relpack.

Every log entry is a single JSON line: timestamped, leveled, tagged with the
source module, plus whatever context the caller attached via `extra`. For a
release run that context is usually the target triple, the pipeline step, and
the path being produced, so a failed CI job can be grepped for the exact
target and step that broke.

How this works:
  - We use Python's standard `logging` module under the hood, but replace the
    default formatter with JsonFormatter.
  - Log output goes to stderr. stdout is reserved for command output that
    scripts consume (`relpack version`, `relpack targets`).
  - `get_logger` is the only way to create loggers.

The JSON structure looks like:
  {"ts": "2026-...", "level": "INFO", "module": "relpack.release.pipeline", "msg": "Target done", "target": "..."}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# LogRecord attributes that are plumbing, not context.
_STANDARD_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "relativeCreated",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "pathname",
        "filename",
        "module",
        "levelno",
        "levelname",
        "processName",
        "process",
        "threadName",
        "thread",
        "message",
        "msecs",
        "taskName",
    }
)

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Mandatory fields:
      ts    : ISO 8601 UTC timestamp
      level : log level name
      module: the logger name
      msg   : the formatted message string

    Fields passed through `extra` are merged in. Exception info, when present,
    is rendered into an `exc` field so tracebacks stay on one line.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


def _resolve_log_level(level_name: str) -> int:
    """Turn a level name string into the corresponding logging constant."""
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
    return getattr(logging, upper)


# Level and shared file handler applied to every logger under a package prefix,
# including loggers first created after the setting was made.
_package_levels: dict[str, int] = {}
_package_file_handlers: dict[str, logging.FileHandler] = {}


def _matches(name: str, prefix: str) -> bool:
    return name == prefix or name.startswith(prefix + ".")


def _package_loggers(prefix: str) -> list[logging.Logger]:
    return [
        logging.getLogger(name)
        for name in list(logging.Logger.manager.loggerDict)
        if _matches(name, prefix)
    ]


def _package_level(name: str) -> Optional[int]:
    """Level set for the longest configured prefix of `name`, if any."""
    matches = [prefix for prefix in _package_levels if _matches(name, prefix)]
    if not matches:
        return None
    return _package_levels[max(matches, key=len)]


def _attach_package_files(logger: logging.Logger) -> None:
    for prefix, file_handler in _package_file_handlers.items():
        if _matches(logger.name, prefix) and file_handler not in logger.handlers:
            logger.addHandler(file_handler)


def get_logger(
    name: str,
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Create a structured JSON logger.

    Args:
        name: Logger name, typically __name__ of the calling module.
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL. None takes
                   the level set for the logger's package by
                   `set_package_log_level`, falling back to INFO.
        log_file: Optional path to a log file. If provided, logs go to both
                  stderr and the file.

    Returns:
        A configured logging.Logger that outputs structured JSON. It also
        writes to any file attached to its package with
        `attach_package_log_file`.
    """
    logger = logging.getLogger(name)
    if log_level is not None:
        level = _resolve_log_level(log_level)
    else:
        package_level = _package_level(name)
        level = package_level if package_level is not None else logging.INFO
    logger.setLevel(level)

    # get_logger is called repeatedly for the same name (CLI handlers, tests).
    if logger.handlers:
        shared = set(_package_file_handlers.values())
        for handler in logger.handlers:
            if handler not in shared:
                handler.setLevel(level)
        return logger

    formatter = JsonFormatter()

    stream_handler = logging.StreamHandler(stream=sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    _attach_package_files(logger)

    return logger


def set_package_log_level(prefix: str, log_level: str) -> None:
    """
    Apply a level to every logger under `prefix`.

    Module loggers are created at import time with the default level, and the
    CLI imports the pipeline lazily, so the level is also remembered for
    loggers created later.
    """
    level = _resolve_log_level(log_level)
    _package_levels[prefix] = level
    for logger in _package_loggers(prefix):
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


def attach_package_log_file(prefix: str, log_file: Path, log_level: str = "INFO") -> None:
    """
    Send every logger under `prefix` to `log_file` as well as stderr.

    One FileHandler is shared by all of them. Calling again with a different
    file replaces the previous one.
    """
    level = _resolve_log_level(log_level)
    previous = _package_file_handlers.get(prefix)
    if previous is not None:
        if Path(previous.baseFilename) == log_file.absolute():
            previous.setLevel(level)
            return
        detach_package_log_file(prefix)

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(JsonFormatter())
    _package_file_handlers[prefix] = file_handler

    for logger in _package_loggers(prefix):
        if file_handler not in logger.handlers:
            logger.addHandler(file_handler)


def detach_package_log_file(prefix: str) -> None:
    """Remove and close the file handler attached for `prefix`, if any."""
    file_handler = _package_file_handlers.pop(prefix, None)
    if file_handler is None:
        return
    for logger in _package_loggers(prefix):
        if file_handler in logger.handlers:
            logger.removeHandler(file_handler)
    file_handler.close()
