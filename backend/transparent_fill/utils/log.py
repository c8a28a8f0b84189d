import logging
import os
import sys


def setup_logging(
    level: str | int = "INFO",
    format: str = "%(asctime)s %(name)s %(levelname)s: %(message)s",
    datefmt: str = "%Y-%m-%d %H:%M:%S",
) -> None:
    """Configure the root logger for command line and server entry points.

    Call once at the entry point. Library modules only create module
    loggers and never configure handlers.

    Args:
        level: Logging level name or constant. The LOG_LEVEL environment
               variable takes precedence when set.
        format: Log message format.
        datefmt: Date format for timestamps.
    """
    env_level = os.environ.get("LOG_LEVEL")
    if env_level:
        level = env_level

    if isinstance(level, str):
        numeric_level = getattr(logging, level.upper(), None)
        if not isinstance(numeric_level, int):
            raise ValueError(f"Invalid log level: {level}")
        level = numeric_level

    root_logger = logging.getLogger()

    # Remove existing handlers to avoid duplicates
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=format, datefmt=datefmt))
    root_logger.addHandler(handler)
