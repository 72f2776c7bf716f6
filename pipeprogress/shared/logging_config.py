"""Logging configuration for pipeprogress."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pipeprogress.shared.colors import Colors

DEFAULT_LOG_FILE = "~/.pipeprogress/logs/debug.log"

# Set once the root logger has a file handler
_file_logging_configured = False


class ColorFormatter(logging.Formatter):
    """Formatter that prefixes each message with a colored level tag."""

    LEVEL_COLORS = {
        logging.DEBUG: ('CYAN', '[DEBUG]'),
        logging.INFO: ('GREEN', '[INFO]'),
        logging.WARNING: ('YELLOW', '[WARN]'),
        logging.ERROR: ('RED', '[ERROR]'),
        logging.CRITICAL: ('RED', '[CRITICAL]'),
    }

    def format(self, record):
        color_name, prefix = self.LEVEL_COLORS.get(record.levelno, ('NC', '[LOG]'))
        color = getattr(Colors, color_name, '')
        message = f"{color}{prefix}{Colors.NC} {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logging(name, verbose=False, quiet=False, config=None):
    """Configure a stderr logger for a command.

    Args:
        name: Logger name. Use "pipeprogress" to cover every module.
        verbose: If True, show DEBUG messages (including every progress record)
        quiet: If True, show only WARNING and above
        config: Optional config dict; when its logging section is enabled a
                file handler is attached via configure_file_logging()

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorFormatter())
        logger.addHandler(handler)

    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.INFO)

    if config is not None:
        configure_file_logging(config)

    return logger


def configure_file_logging(config):
    """Attach a RotatingFileHandler to the root logger if config enables it.

    Reads the 'logging' section of the config:

        logging:
          enabled: true
          level: debug
          file: ~/.pipeprogress/logs/debug.log
          max_size_mb: 5
          backup_count: 3

    Args:
        config: Config dict (from load_config())

    Returns:
        The file handler if logging was enabled, None otherwise.
    """
    global _file_logging_configured

    if config is None:
        return None

    log_config = config.get("logging")
    if not isinstance(log_config, dict) or not log_config.get("enabled", False):
        return None

    if _file_logging_configured:
        return None

    level_str = str(log_config.get("level", "debug")).upper()
    level = getattr(logging, level_str, logging.DEBUG)
    log_file = os.path.expanduser(log_config.get("file", DEFAULT_LOG_FILE))
    max_bytes = log_config.get("max_size_mb", 5) * 1024 * 1024
    backup_count = log_config.get("backup_count", 3)

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    # Plain text, no ANSI codes in files
    handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    root = logging.getLogger()
    root.addHandler(handler)
    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)

    _file_logging_configured = True
    logging.getLogger("pipeprogress").debug(
        "File logging enabled: %s (level=%s)", log_file, level_str
    )

    return handler
