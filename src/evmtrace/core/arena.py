"""
Append-only arena of call trace nodes.

The call tree is encoded through integer indices (``parent``/``children``)
into the arena instead of object references. Nodes are never removed or
reordered, so an index stays valid for the lifetime of the arena.

The arena has a single producer (the VM executing one transaction) and no
internal locking.
"""

from collections import Counter
from typing import Any, Dict, Iterator, List, Optional

from evmtrace.utils.exceptions import ArenaIndexError, ArenaInvariantError, ArenaParseError
from evmtrace.utils.logging import get_logger

from .node import CallTraceNode
from .types import CallOrder, CallTrace, LogData, LogOrder

logger = get_logger('arena')

ARENA_FORMAT_VERSION = 1


class CallTraceArena:
    """An arena of recorded call traces."""

    def __init__(self):
        self.nodes: List[CallTraceNode] = []

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[CallTraceNode]:
        return iter(self.nodes)

    def __getitem__(self, idx: int) -> CallTraceNode:
        return self.get(idx)

    @property
    def root(self) -> CallTraceNode:
        return self.get(0)

    def get(self, idx: int) -> CallTraceNode:
        """Look up a node; an invalid index is a programming error."""
        if isinstance(idx, bool) or not isinstance(idx, int) or not 0 <= idx < len(self.nodes):
            raise ArenaIndexError(idx, len(self.nodes))
        return self.nodes[idx]

    def allocate(self, parent: Optional[int], trace: CallTrace) -> int:
        """Append a node for ``trace`` under ``parent`` and return its index."""
        if parent is not None:
            self.get(parent)
        elif self.nodes:
            raise ArenaInvariantError("Arena already has a root", node=0)
        idx = len(self.nodes)
        self.nodes.append(CallTraceNode(idx=idx, parent=parent, trace=trace))
        if parent is not None:
            self.add_child(parent, idx)
        return idx

    def add_child(self, idx: int, child: int) -> None:
        node = self.get(idx)
        self.get(child)
        node.ordering.append(CallOrder(len(node.children)))
        node.children.append(child)

    def add_log(self, idx: int, log: LogData) -> None:
        node = self.get(idx)
        node.ordering.append(LogOrder(len(node.logs)))
        node.logs.append(log)

    def push_trace(self, entry: int, trace: CallTrace) -> int:
        """
        Insert ``trace`` at the position implied by its depth.

        Starting from ``entry``, descend through the most recent child until
        reaching the frame one level above the new trace. A depth 0 trace
        becomes (or replaces) the root.
        """
        if trace.depth == 0:
            if not self.nodes:
                return self.allocate(None, trace)
            self.nodes[0].trace = trace
            return 0

        node = self.get(entry)
        while node.trace.depth != trace.depth - 1:
            if node.trace.depth >= trace.depth or not node.children:
                raise ArenaInvariantError(
                    f"Disconnected trace at depth {trace.depth}",
                    node=node.idx,
                    depth=trace.depth,
                )
            node = self.get(node.children[-1])
        return self.allocate(node.idx, trace)

    def walk(self, idx: int = 0) -> Iterator[CallTraceNode]:
        """Pre-order traversal of the subtree rooted at ``idx``."""
        if not self.nodes:
            return
        stack = [idx]
        while stack:
            node = self.get(stack.pop())
            yield node
            stack.extend(reversed(node.children))

    def trace_address(self, idx: int) -> List[int]:
        """Positions of the node and its ancestors among their siblings, root first."""
        address = []
        node = self.get(idx)
        while node.parent is not None:
            parent = self.get(node.parent)
            address.append(parent.children.index(node.idx))
            node = parent
        address.reverse()
        return address

    def check_invariants(self) -> None:
        """
        Validate the tree shape and the ordering of every node.

        Raises:
            ArenaInvariantError: on the first violation found
        """
        roots = [node.idx for node in self.nodes if node.parent is None]
        if self.nodes and roots != [0]:
            raise ArenaInvariantError(f"Expected node 0 as the only root, found {roots}")

        for position, node in enumerate(self.nodes):
            if node.idx != position:
                raise ArenaInvariantError(f"Node at position {position} has index {node.idx}", node=position)

            if node.parent is not None:
                if not 0 <= node.parent < len(self.nodes):
                    raise ArenaInvariantError(f"Invalid parent {node.parent}", node=node.idx)
                if self.nodes[node.parent].children.count(node.idx) != 1:
                    raise ArenaInvariantError(
                        f"Parent {node.parent} does not list node {node.idx} exactly once",
                        node=node.idx,
                    )

            for child in node.children:
                if not 0 <= child < len(self.nodes) or self.nodes[child].parent != node.idx:
                    raise ArenaInvariantError(f"Child {child} does not point back to its parent", node=node.idx)

            calls = Counter(o.index for o in node.ordering if isinstance(o, CallOrder))
            logs = Counter(o.index for o in node.ordering if isinstance(o, LogOrder))
            if (
                len(node.ordering) != len(node.children) + len(node.logs)
                or calls != Counter(range(len(node.children)))
                or logs != Counter(range(len(node.logs)))
            ):
                raise ArenaInvariantError("Ordering does not match children and logs", node=node.idx)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': ARENA_FORMAT_VERSION,
            'nodes': [node.to_dict() for node in self.nodes],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'CallTraceArena':
        """Load an arena dump; the result is checked for consistency."""
        if not isinstance(d, dict) or not isinstance(d.get('nodes'), list):
            raise ArenaParseError("Arena dump must be an object with a 'nodes' list")
        version = d.get('version', ARENA_FORMAT_VERSION)
        if version != ARENA_FORMAT_VERSION:
            raise ArenaParseError(f"Unsupported arena format version {version}")

        arena = cls()
        try:
            arena.nodes = [CallTraceNode.from_dict(n) for n in d['nodes']]
        except (KeyError, TypeError, ValueError) as e:
            raise ArenaParseError(f"Malformed node in arena dump: {e}")
        arena.check_invariants()
        logger.debug(f"Loaded arena with {len(arena)} nodes")
        return arena
