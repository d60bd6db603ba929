"""
Export command implementation.

Loads an arena dump, decodes it with the given ABIs and prints one of the
supported trace formats as JSON.
"""

from evmtrace.core import TraceSerializer
from evmtrace.utils.exceptions import EvmTraceError
from evmtrace.utils.logging import logger
from evmtrace.cli.common import (
    create_decoder,
    handle_command_error,
    load_arena,
    print_json,
)

FORMATS = ('parity', 'geth', 'tree', 'arena')


def export_command(args) -> int:
    """
    Execute the export command.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    try:
        arena = load_arena(args.arena)
        if args.decode:
            create_decoder(args).decode(arena)
    except EvmTraceError as e:
        return handle_command_error(e, json_mode=True)

    logger.debug(f"Exporting {len(arena)} nodes as {args.format}")
    serializer = TraceSerializer()
    if args.format == 'parity':
        print_json(serializer.parity_traces(arena))
    elif args.format == 'geth':
        print_json(serializer.geth_traces(arena))
    elif args.format == 'tree':
        print_json(serializer.call_tree(arena))
    else:
        print_json(serializer.serialize_arena(arena))
    return 0
