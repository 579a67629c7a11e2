"""Logging for the gate service and client.

Every module logs through ``get_logger("<component>")``, which places it under
the ``reviewgate`` logger. Handlers are attached once, to that root, by
``configure_logging`` when the service starts.
"""

import logging
import logging.handlers
import os

ROOT_LOGGER = "reviewgate"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def parse_level(level: str) -> int:
    """Turn a level name into its ``logging`` constant.

    Raises:
        ValueError: If the name is not a standard level
    """
    name = str(level).upper()
    if name not in LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of: {', '.join(LEVELS)}")
    return getattr(logging, name)


def setup_logger(
    name: str = ROOT_LOGGER,
    log_dir: str = "/var/log/reviewgate",
    level: str = "INFO",
    file_logging: bool = True,
) -> logging.Logger:
    """Set up a logger with a console handler and an optional rotating file.

    Calling it again only updates the level; handlers are never stacked.

    Args:
        name: Logger name; the log file is ``<log_dir>/<name>.log``
        log_dir: Directory for the log file
        level: Level name, case-insensitive
        file_logging: Also write to a rotating log file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(parse_level(level))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, f"{name}.log"),
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUPS,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def configure_logging(settings) -> logging.Logger:
    """Configure the ``reviewgate`` logger from service settings."""
    return setup_logger(
        ROOT_LOGGER,
        log_dir=settings.log_dir,
        level=settings.log_level,
        file_logging=settings.log_to_file,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a component logger under the ``reviewgate`` hierarchy."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
