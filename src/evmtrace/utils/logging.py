"""
Logging configuration for evmtrace.

Library modules log through children of the ``evmtrace`` logger and never
install handlers themselves; ``setup_logging`` (called by the CLI) attaches a
colored console handler and an optional plain file handler.
"""

import logging
import sys
from typing import Optional

from evmtrace.utils.colors import Colors

# Below DEBUG: one record per attempted decode of a node, log or revert payload.
TRACE = 5
logging.addLevelName(TRACE, 'TRACE')

ROOT_LOGGER = 'evmtrace'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ColoredFormatter(logging.Formatter):
    """Console formatter coloring the level name of each record."""

    LEVEL_COLORS = {
        TRACE: Colors.DIM,
        logging.DEBUG: Colors.DIM,
        logging.INFO: Colors.BRIGHT_CYAN,
        logging.WARNING: Colors.BRIGHT_YELLOW,
        logging.ERROR: Colors.BRIGHT_RED,
        logging.CRITICAL: Colors.BOLD + Colors.BRIGHT_RED,
    }

    def __init__(self, fmt: str = CONSOLE_FORMAT, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors

    def formatMessage(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno) if self.use_colors else None
        if not color:
            return super().formatMessage(record)
        # the record is shared with the file handler; color a copy
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{Colors.RESET}"
        return super().formatMessage(colored)


def resolve_level(level: int = logging.INFO, debug: bool = False, verbose: bool = False) -> int:
    if verbose:
        return TRACE
    if debug:
        return logging.DEBUG
    return level


def _console_handler(level: int, use_colors: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    colored = use_colors and hasattr(sys.stderr, 'isatty') and sys.stderr.isatty()
    handler.setFormatter(ColoredFormatter(use_colors=colored))
    return handler


def _file_handler(path: str) -> logging.Handler:
    handler = logging.FileHandler(path)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def setup_logging(
    level: int = logging.INFO,
    quiet: bool = False,
    debug: bool = False,
    verbose: bool = False,
    log_file: Optional[str] = None,
    use_colors: bool = True
) -> logging.Logger:
    """
    Configure the ``evmtrace`` logger.

    Args:
        level: Base logging level
        quiet: If True, no console handler is installed
        debug: If True, set level to DEBUG
        verbose: If True, set level to TRACE (decode attempts of every node)
        log_file: Optional path of a log file receiving DEBUG and above
        use_colors: Color level names when stderr is a terminal

    Returns:
        The configured ``evmtrace`` logger
    """
    effective_level = resolve_level(level, debug, verbose)

    root = get_logger()
    # the file handler filters at DEBUG on its own
    root.setLevel(min(effective_level, logging.DEBUG) if log_file else effective_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.propagate = False

    if not quiet:
        root.addHandler(_console_handler(effective_level, use_colors))
    if log_file:
        root.addHandler(_file_handler(log_file))
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """The ``evmtrace`` logger, or its child ``evmtrace.<name>``."""
    root = logging.getLogger(ROOT_LOGGER)
    return root.getChild(name) if name else root


def log_trace(logger: logging.Logger, msg: str, *args, **kwargs):
    """Log at TRACE level on any logger."""
    logger.log(TRACE, msg, *args, **kwargs)


logger = get_logger()
