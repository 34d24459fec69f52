import logging
from typing import Any

# Library logging, silent unless the caller attaches a handler
logger = logging.getLogger("githours")
logger.addHandler(logging.NullHandler())

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance for the specified name.

    Args:
        name: The name of the logger to get. If None, returns the main githours logger.
              If specified, returns a child logger of the main githours logger.

    Returns:
        logging.Logger: The requested logger instance.
    """
    if name is None:
        return logger
    return logger.getChild(name)


def set_log_level(level: int | str) -> None:
    """Set the logging level for the githours library.

    Args:
        level: The logging level to set. Either a level name (e.g. 'INFO') or an int.
    """
    logger.setLevel(level)


def add_stream_handler(
    level: int | str = logging.INFO,
    format_string: str = DEFAULT_FORMAT,
    **handler_kwargs: Any,
) -> None:
    """Add a stream handler to the githours logger.

    Args:
        level: The logging level for the handler. Defaults to INFO.
        format_string: The format string for log messages.
        **handler_kwargs: Additional keyword arguments to pass to StreamHandler.
    """
    # FileHandler is a StreamHandler subclass, so only count plain stream handlers
    if any(type(h) is logging.StreamHandler for h in logger.handlers):
        logger.warning("StreamHandler already exists for githours logger.")
        return

    handler = logging.StreamHandler(**handler_kwargs)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string))
    logger.addHandler(handler)


def add_file_handler(
    filename: str,
    level: int | str = logging.INFO,
    format_string: str = DEFAULT_FORMAT,
    **handler_kwargs: Any,
) -> None:
    """Add a file handler to the githours logger.

    Args:
        filename: The name of the file to log to.
        level: The logging level for the handler. Defaults to INFO.
        format_string: The format string for log messages.
        **handler_kwargs: Additional keyword arguments to pass to FileHandler.
    """
    handler = logging.FileHandler(filename, **handler_kwargs)
    if any(isinstance(h, logging.FileHandler) and h.baseFilename == handler.baseFilename for h in logger.handlers):
        handler.close()
        logger.warning(f"FileHandler for {filename} already exists for githours logger.")
        return

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string))
    logger.addHandler(handler)


def remove_all_handlers() -> None:
    """Remove all handlers from the githours logger (except the default NullHandler)."""
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()


__all__ = [
    "logger",
    "get_logger",
    "set_log_level",
    "add_stream_handler",
    "add_file_handler",
    "remove_all_handlers",
]
