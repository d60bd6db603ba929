"""
Utilities module for evmtrace.

Provides exception handling, logging and colors.
"""

from .exceptions import (
    EvmTraceError,
    ArenaIndexError,
    ArenaInvariantError,
    DecodeError,
    AbiDecodeError,
    RevertDecodeError,
    NoCandidateFunctionsError,
    ParseError,
    AbiParseError,
    ArenaParseError,
    format_error,
)
from .logging import setup_logging, get_logger, logger, TRACE
from .colors import (
    Colors,
    SUPPORTS_COLOR,
    red, green, yellow, cyan,
    bold, dim,
    error, info,
)

__all__ = [
    # Exceptions
    'EvmTraceError',
    'ArenaIndexError',
    'ArenaInvariantError',
    'DecodeError',
    'AbiDecodeError',
    'RevertDecodeError',
    'NoCandidateFunctionsError',
    'ParseError',
    'AbiParseError',
    'ArenaParseError',
    # Formatting
    'format_error',
    # Logging
    'setup_logging',
    'get_logger',
    'logger',
    'TRACE',
    # Colors
    'Colors',
    'SUPPORTS_COLOR',
    'red', 'green', 'yellow', 'cyan',
    'bold', 'dim',
    'error', 'info',
]
