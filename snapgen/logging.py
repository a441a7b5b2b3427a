"""Logging utilities for snapgen commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping

_LOGGER_NAME = "snapgen"
_CONSOLE_FORMAT = "[snapgen] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the snapgen hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class FamilyLogger(logging.LoggerAdapter):
    """Prefixes records with the image family a generation pass works on."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        family = (self.extra or {}).get("family", "?")
        return f"[{family}] {msg}", kwargs


def family_logger(name: str, family: str) -> FamilyLogger:
    return FamilyLogger(get_logger(name), {"family": family})


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the snapgen logger with console output and an optional file sink.

    ``quiet`` limits the console to warnings; the file sink always records at
    the verbose/normal level so generation traces survive a quiet run.
    """
    level = logging.DEBUG if verbose else logging.INFO
    console_level = logging.WARNING if quiet else level
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(console_level)
    stream_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["FamilyLogger", "configure_logging", "family_logger", "get_logger"]
