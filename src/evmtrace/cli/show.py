"""
Show command implementation.

Prints a decoded call tree with child calls and emitted logs in the order
they happened.
"""

from typing import List

from evmtrace.core import CallTraceArena, CallTraceNode
from evmtrace.core.types import CallOrder, DecodedCall, DecodedLog, DecodedReturn, RawLog
from evmtrace.utils.colors import cyan, dim, green, red, yellow
from evmtrace.utils.exceptions import EvmTraceError
from evmtrace.cli.common import create_decoder, handle_command_error, load_arena

BRANCH = "├─ "
LAST_BRANCH = "└─ "
PIPE = "│  "
SPACE = "   "


def show_command(args) -> int:
    """
    Execute the show command.

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
        return handle_command_error(e)

    for line in render_arena(arena):
        print(line)
    return 0


def render_arena(arena: CallTraceArena) -> List[str]:
    """Render the call tree as text lines."""
    if not len(arena):
        return []
    lines: List[str] = []
    _render_node(arena, arena.root, "", lines)
    return lines


def format_call(node: CallTraceNode) -> str:
    trace = node.trace
    target = trace.label or trace.address
    if trace.kind.is_create:
        call = f"{yellow('→ new')} {target}"
    elif isinstance(trace.data, DecodedCall):
        call = f"{target}::{cyan(trace.data.name)}({', '.join(trace.data.args)})"
    else:
        call = f"{target}::{trace.data.to_raw().hex() or 'fallback'}()"

    if trace.value:
        call += f"{{value: {trace.value}}}"
    if trace.kind.value not in ('CALL', 'CREATE'):
        call += dim(f" [{trace.kind.value.lower()}]")

    gas = f"[{trace.gas_cost}]"
    return f"{green(gas) if trace.success else red(gas)} {call}"


def format_return(node: CallTraceNode) -> str:
    trace = node.trace
    if trace.kind.is_create and trace.success:
        value = f"{len(trace.output.to_raw())} bytes of code"
    elif isinstance(trace.output, DecodedReturn):
        value = trace.output.value
    else:
        value = '0x' + trace.output.to_raw().hex()
    if trace.success:
        arrow = "←"
    else:
        # failures with a successful status are reported as reverts
        halt = "Revert" if trace.status.is_ok else trace.status.display_name
        arrow = red(f"← [{halt}]")
    return f"{arrow} {value}"


def format_log(log) -> str:
    if isinstance(log, DecodedLog):
        params = ', '.join(f"{name}: {value}" for name, value in log.params)
        return f"emit {cyan(log.name)}({params})"
    if isinstance(log, RawLog):
        topics = ', '.join('0x' + t.hex() for t in log.topics)
        return f"emit topics: [{topics}] data: 0x{log.data.hex()}"
    return str(log)


def _render_node(arena: CallTraceArena, node: CallTraceNode, prefix: str, lines: List[str]) -> None:
    if node.parent is None:
        lines.append(format_call(node))

    for item in node.ordering:
        if isinstance(item, CallOrder):
            child = arena.get(node.children[item.index])
            lines.append(prefix + BRANCH + format_call(child))
            _render_node(arena, child, prefix + PIPE, lines)
        else:
            lines.append(prefix + BRANCH + format_log(node.logs[item.index]))
    lines.append(prefix + LAST_BRANCH + format_return(node))
