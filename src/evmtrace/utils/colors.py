"""
ANSI color helpers for terminal output.

Colors are disabled when stdout is not a TTY or when NO_COLOR is set.
"""

import os
import sys


class Colors:
    """ANSI escape sequences."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    UNDERLINE = '\033[4m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'

    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_CYAN = '\033[96m'


SUPPORTS_COLOR = (
    hasattr(sys.stdout, 'isatty')
    and sys.stdout.isatty()
    and 'NO_COLOR' not in os.environ
)


def _wrap(code: str, text) -> str:
    if not SUPPORTS_COLOR:
        return str(text)
    return f"{code}{text}{Colors.RESET}"


def red(text) -> str:
    return _wrap(Colors.RED, text)


def green(text) -> str:
    return _wrap(Colors.GREEN, text)


def yellow(text) -> str:
    return _wrap(Colors.YELLOW, text)


def cyan(text) -> str:
    return _wrap(Colors.CYAN, text)


def bold(text) -> str:
    return _wrap(Colors.BOLD, text)


def dim(text) -> str:
    return _wrap(Colors.DIM, text)


def error(text) -> str:
    return _wrap(Colors.BRIGHT_RED, f"Error: {text}")


def info(text) -> str:
    return _wrap(Colors.BRIGHT_CYAN, text)
