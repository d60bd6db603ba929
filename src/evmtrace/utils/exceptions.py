"""
Custom exceptions for evmtrace.

This module provides a hierarchy of exceptions for the different error classes
of the trace arena and the decoders, along with utilities for formatting
errors consistently.

Decoding is best-effort: decode errors are raised by the low level ABI helpers
and always caught by the node/decoder layer. Arena errors signal a programming
error in the producer and are never caught inside the package.
"""

import json
from typing import Any, Dict, Optional


class EvmTraceError(Exception):
    """
    Base exception for all evmtrace errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
        error_code: Optional error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": True,
            "type": self.error_code,
            "message": self.message,
            **self.details
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# ============================================================================
# Arena Errors
# ============================================================================

class ArenaIndexError(EvmTraceError, IndexError):
    """Raised when a node index does not exist in the arena."""

    def __init__(self, index: int, size: int, **kwargs):
        details = {"index": index, "size": size}
        details.update(kwargs)
        super().__init__(
            f"Node index {index} out of bounds for arena of {size} nodes",
            details,
            "ArenaIndexError"
        )
        self.index = index
        self.size = size


class ArenaInvariantError(EvmTraceError):
    """Raised when an arena does not form a well-ordered call tree."""

    def __init__(self, message: str, node: Optional[int] = None, **kwargs):
        details = {"node": node} if node is not None else {}
        details.update(kwargs)
        super().__init__(message, details, "ArenaInvariantError")


# ============================================================================
# Decoding Errors
# ============================================================================

class DecodeError(EvmTraceError):
    """Base class for payload decoding errors."""

    def __init__(self, message: str, data: Optional[bytes] = None, **kwargs):
        details = {"data": "0x" + data.hex()} if data is not None else {}
        details.update(kwargs)
        super().__init__(message, details, "DecodeError")


class AbiDecodeError(DecodeError):
    """Raised when bytes do not decode against a list of ABI types."""

    def __init__(self, message: str, data: Optional[bytes] = None, **kwargs):
        super().__init__(message, data=data, **kwargs)
        self.error_code = "AbiDecodeError"


class RevertDecodeError(DecodeError):
    """Raised when return data is not a recognisable revert payload."""

    def __init__(self, message: str, data: Optional[bytes] = None, **kwargs):
        super().__init__(message, data=data, **kwargs)
        self.error_code = "RevertDecodeError"


class NoCandidateFunctionsError(EvmTraceError, ValueError):
    """
    Raised when a node is decoded without any candidate function.

    This is a caller-side contract violation, not a data problem: decode
    must only be requested for selectors with at least one known function.
    """

    def __init__(self, node: Optional[int] = None):
        details = {"node": node} if node is not None else {}
        super().__init__(
            "decode_function requires at least one candidate function",
            details,
            "NoCandidateFunctionsError"
        )


# ============================================================================
# Parsing Errors
# ============================================================================

class ParseError(EvmTraceError):
    """Raised when parsing input files fails."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        details = {"source": source} if source else {}
        details.update(kwargs)
        super().__init__(message, details, "ParseError")


class AbiParseError(ParseError):
    """Raised when ABI parsing fails."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.error_code = "AbiParseError"


class ArenaParseError(ParseError):
    """Raised when an arena dump cannot be loaded."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.error_code = "ArenaParseError"


# ============================================================================
# Error Formatting Utilities
# ============================================================================

def format_error(e: Exception, json_mode: bool = False) -> str:
    """
    Format an exception for display.

    Args:
        e: The exception to format
        json_mode: If True, output as JSON; otherwise use colored text

    Returns:
        Formatted error string
    """
    from evmtrace.utils.colors import error

    if isinstance(e, EvmTraceError):
        if json_mode:
            return e.to_json()
        return error(e.message)
    if json_mode:
        return json.dumps({
            "error": True,
            "type": type(e).__name__,
            "message": str(e)
        }, indent=2)
    return error(str(e))
