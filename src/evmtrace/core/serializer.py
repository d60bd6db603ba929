"""
JSON serialization of call trace arenas.

Provides the arena-level views used by the CLI and by downstream tools:
flat Parity ``trace_*`` lists, per-frame Geth struct-log traces and a
decoded call tree.
"""

import json
from typing import Any, Dict, List

from hexbytes import HexBytes

from .arena import CallTraceArena
from .node import CallTraceNode
from .types import CallOrder, DecodedCall, DecodedReturn, LogOrder, to_hex


class TraceSerializer:
    """Serializes an arena to JSON-compatible structures."""

    def _convert_to_serializable(self, obj: Any) -> Any:
        """Convert non-serializable objects to JSON-serializable format."""
        if isinstance(obj, (HexBytes, bytes, bytearray)):
            return to_hex(obj)
        elif isinstance(obj, dict):
            return {k: self._convert_to_serializable(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [self._convert_to_serializable(item) for item in obj]
        elif hasattr(obj, 'to_dict'):
            return self._convert_to_serializable(obj.to_dict())
        else:
            return obj

    def parity_traces(self, arena: CallTraceArena) -> List[Dict[str, Any]]:
        """Flat list of Parity trace entries in pre-order."""
        traces = []
        for node in arena.walk():
            action = node.parity_action()
            result = node.parity_result()
            entry = {
                'action': action.to_dict(),
                'result': result.to_dict() if result is not None and node.trace.success else None,
                'subtraces': len(node.children),
                'traceAddress': arena.trace_address(node.idx),
                'type': action.action_type,
            }
            if not node.trace.success and result is not None:
                entry['error'] = self._error_message(node)
            traces.append(entry)
        return traces

    def geth_traces(self, arena: CallTraceArena) -> Dict[str, Dict[str, Any]]:
        """Geth struct-log trace of every frame, keyed by node index."""
        return {str(node.idx): node.geth_trace().to_dict() for node in arena}

    def call_tree(self, arena: CallTraceArena) -> Dict[str, Any]:
        """Decoded call tree with child calls and logs in execution order."""
        if not len(arena):
            return {}
        return self._node_to_tree(arena, arena.root)

    def serialize_arena(self, arena: CallTraceArena) -> Dict[str, Any]:
        return self._convert_to_serializable(arena.to_dict())

    def to_json(self, obj: Any, indent: int = 2) -> str:
        return json.dumps(self._convert_to_serializable(obj), indent=indent)

    def _node_to_tree(self, arena: CallTraceArena, node: CallTraceNode) -> Dict[str, Any]:
        trace = node.trace
        entry = {
            'index': node.idx,
            'kind': trace.kind.value,
            'from': trace.caller,
            'to': trace.address,
            'label': trace.label,
            'value': hex(trace.value),
            'gasCost': trace.gas_cost,
            'success': trace.success,
            'status': trace.status.value,
        }

        if isinstance(trace.data, DecodedCall):
            entry['function'] = trace.data.name
            entry['signature'] = trace.data.signature
            entry['args'] = list(trace.data.args)
        else:
            entry['input'] = to_hex(trace.data.to_raw())

        if isinstance(trace.output, DecodedReturn):
            entry['returnValue'] = trace.output.value
        else:
            entry['output'] = to_hex(trace.output.to_raw())

        events = []
        for item in node.ordering:
            if isinstance(item, CallOrder):
                child = arena.get(node.children[item.index])
                events.append({'call': self._node_to_tree(arena, child)})
            elif isinstance(item, LogOrder):
                events.append({'log': node.logs[item.index].to_dict()})
        if events:
            entry['calls'] = events
        return entry

    def _error_message(self, node: CallTraceNode) -> str:
        if isinstance(node.trace.output, DecodedReturn):
            return node.trace.output.value.strip('"')
        return node.trace.status.display_name
