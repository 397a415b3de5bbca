"""Logging setup for the sshmenu server.

Both the application loggers (``sshmenu.*``) and paramiko's transport
loggers write through the same handlers, so SSH negotiation problems end up
in the configured format and log file next to the session log lines.
"""

from __future__ import annotations

import logging
import sys

from sshmenu.config.settings import LoggingConfig

APP_LOGGER = "sshmenu"
SSH_LOGGER = "paramiko"

# paramiko logs every negotiation step at INFO and DEBUG.
SSH_MIN_LEVEL = logging.WARNING

_CONSOLE_HANDLER = "sshmenu.console"
_FILE_HANDLER = "sshmenu.file"


def _build_handlers(config: LoggingConfig) -> list[logging.Handler]:
    formatter = logging.Formatter(config.format)

    console = logging.StreamHandler(sys.stderr)
    console.set_name(_CONSOLE_HANDLER)
    handlers: list[logging.Handler] = [console]

    if config.file:
        log_file = logging.FileHandler(config.file)
        log_file.set_name(_FILE_HANDLER)
        handlers.append(log_file)

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def _replace_handlers(logger: logging.Logger, handlers: list[logging.Handler]) -> None:
    """Swap out handlers installed by an earlier call, leaving foreign ones alone."""
    for old in list(logger.handlers):
        if old.get_name() in (_CONSOLE_HANDLER, _FILE_HANDLER):
            logger.removeHandler(old)
            old.close()
    for handler in handlers:
        logger.addHandler(handler)


def setup_logging(config: LoggingConfig | None = None) -> list[logging.Handler]:
    """Route sshmenu and paramiko logging to stderr and the optional log file.

    Safe to call more than once: each call replaces the handlers of the
    previous one instead of adding to them.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).

    Returns:
        The handlers now attached to both loggers.
    """
    if config is None:
        config = LoggingConfig()

    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handlers = _build_handlers(config)

    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(level)
    _replace_handlers(app_logger, handlers)

    ssh_logger = logging.getLogger(SSH_LOGGER)
    ssh_logger.setLevel(max(level, SSH_MIN_LEVEL))
    _replace_handlers(ssh_logger, handlers)

    app_logger.info("Logging initialized at %s level", logging.getLevelName(level))
    return handlers
