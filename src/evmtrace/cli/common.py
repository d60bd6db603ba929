"""
Common utilities for CLI commands.

This module provides shared functionality used across multiple CLI commands
to reduce code duplication and ensure consistent behavior.
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from eth_utils import to_checksum_address
from eth_utils.address import is_address

from evmtrace.core import CallTraceArena, CallTraceDecoder
from evmtrace.decoding import SignatureLookup, load_abi
from evmtrace.utils.exceptions import ArenaParseError, ParseError, format_error
from evmtrace.utils.logging import logger


def normalize_address(address: str) -> str:
    """
    Normalize an Ethereum address to checksum format.

    Args:
        address: Ethereum address (with or without 0x prefix)

    Returns:
        Checksummed address

    Raises:
        ValueError: If address is invalid
    """
    if not address:
        raise ValueError("Address cannot be empty")

    if not address.startswith('0x'):
        address = '0x' + address

    if not is_address(address):
        raise ValueError(f"Invalid Ethereum address: {address}")

    return to_checksum_address(address)


def load_arena(path: str) -> CallTraceArena:
    """
    Load an arena dump written by ``CallTraceArena.to_dict``.

    Raises:
        ArenaParseError: If the file is missing or malformed
    """
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ArenaParseError(f"Could not read arena dump: {e}", source=path)
    return CallTraceArena.from_dict(data)


def load_labels(path: Optional[str]) -> Dict[str, str]:
    """
    Load an address label file (a JSON object of address -> label).

    Raises:
        ParseError: If the file is missing or not a JSON object
    """
    if not path:
        return {}
    try:
        with open(path) as f:
            labels = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ParseError(f"Could not read labels: {e}", source=path)
    if not isinstance(labels, dict):
        raise ParseError("Labels file must contain a JSON object", source=path)

    normalized = {}
    for address, name in labels.items():
        try:
            normalized[normalize_address(address)] = str(name)
        except ValueError as e:
            logger.warning(f"Skipping label {name!r}: {e}")
    return normalized


def get_abi_paths(args: Any) -> List[str]:
    """
    Extract ABI file paths from command arguments.

    Directories are expanded to the ``*.json`` and ``*.abi`` files they contain.
    """
    paths = []
    for entry in getattr(args, 'abi', None) or []:
        path = Path(entry)
        if path.is_dir():
            paths.extend(str(p) for p in sorted(path.glob('*.json')))
            paths.extend(str(p) for p in sorted(path.glob('*.abi')))
        else:
            paths.append(entry)
    return paths


def create_decoder(args: Any) -> CallTraceDecoder:
    """
    Build a decoder from ``--abi``, ``--labels`` and ``--lookup-signatures``.
    """
    lookup = SignatureLookup() if getattr(args, 'lookup_signatures', False) else None
    decoder = CallTraceDecoder(signature_lookup=lookup)
    decoder.add_labels(load_labels(getattr(args, 'labels', None)))
    for path in get_abi_paths(args):
        decoder.add_abi(load_abi(path))
        logger.debug(f"Loaded ABI from {path}")
    return decoder


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def handle_command_error(
    e: Exception,
    json_mode: bool = False,
    exit_code: int = 1
) -> int:
    """
    Handle command errors uniformly.

    Args:
        e: The exception that occurred
        json_mode: If True, output as JSON
        exit_code: Exit code to return

    Returns:
        Exit code
    """
    error_output = format_error(e, json_mode)
    if json_mode:
        print(error_output)
    else:
        print(error_output, file=sys.stderr)
    return exit_code
