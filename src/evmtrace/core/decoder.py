"""
Post-execution decode pass over a call trace arena.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from evmtrace.decoding.abi import SELECTOR_LEN, Abi, Event, Function
from evmtrace.decoding.cheatcodes import CHEATCODE_ADDRESS, cheatcode_abi
from evmtrace.decoding.labels import label, normalize_labels
from evmtrace.decoding.precompiles import PRECOMPILES
from evmtrace.decoding.signatures import SignatureLookup
from evmtrace.utils.exceptions import AbiDecodeError
from evmtrace.utils.logging import get_logger, log_trace

from .arena import CallTraceArena
from .node import CallTraceNode
from .types import DecodedLog, RawCall, RawLog

logger = get_logger('decoder')


class CallTraceDecoder:
    """
    Decodes call data, return data and logs of every node of an arena.

    Known functions are keyed by selector, events by topic0. Nodes whose
    selector is unknown stay raw unless a ``SignatureLookup`` is attached.

    Example:
        decoder = CallTraceDecoder(labels={token: "USDC"})
        decoder.add_abi(load_abi("out/Token.json"))
        decoder.decode(arena)
    """

    def __init__(
        self,
        labels: Optional[Mapping[str, str]] = None,
        precompiles: Optional[Mapping[str, Function]] = None,
        signature_lookup: Optional[SignatureLookup] = None,
        include_cheatcodes: bool = True,
    ):
        self.functions: Dict[bytes, List[Function]] = {}
        self.events: Dict[bytes, List[Event]] = {}
        self.errors = Abi()
        self.labels: Dict[str, str] = {CHEATCODE_ADDRESS: 'VM'} if include_cheatcodes else {}
        self.labels.update(normalize_labels(labels))
        self.precompiles: Dict[str, Function] = dict(PRECOMPILES if precompiles is None else precompiles)
        self.signature_lookup = signature_lookup
        if include_cheatcodes:
            self.add_abi(cheatcode_abi())

    def add_labels(self, labels: Mapping[str, str]) -> None:
        self.labels.update(normalize_labels(labels))

    def add_function(self, func: Function) -> None:
        candidates = self.functions.setdefault(func.selector, [])
        if func not in candidates:
            candidates.append(func)

    def add_event(self, event: Event) -> None:
        candidates = self.events.setdefault(event.topic, [])
        if all(e.signature != event.signature for e in candidates):
            candidates.append(event)

    def add_abi(self, abi: Abi) -> None:
        for func in abi.functions:
            self.add_function(func)
        for event in abi.events:
            self.add_event(event)
        self.errors.extend(Abi(errors=abi.errors))

    def add_abis(self, abis: Iterable[Abi]) -> None:
        for abi in abis:
            self.add_abi(abi)

    def decode(self, arena: CallTraceArena) -> CallTraceArena:
        """Decode every node in place and return the arena."""
        for node in arena:
            self.decode_node(node)
        return arena

    def decode_node(self, node: CallTraceNode) -> None:
        trace = node.trace
        if trace.label is None:
            trace.label = self.labels.get(trace.address)

        if isinstance(trace.data, RawCall):
            precompile = self.precompiles.get(trace.address)
            if precompile is not None:
                node.decode_precompile(precompile, self.labels)
            else:
                funcs = self._candidates(trace.data.data)
                if funcs:
                    node.decode_function(funcs, self.labels, self.errors)
                else:
                    log_trace(logger, "node %d: no function known for its selector", node.idx)

        node.logs = [self.decode_log(log) for log in node.logs]

    def decode_log(self, log):
        if not isinstance(log, RawLog) or not log.topics:
            return log
        for event in self.events.get(bytes(log.topics[0]), []):
            try:
                params = event.decode_log(log.topics, log.data)
            except AbiDecodeError as e:
                log_trace(logger, "log did not decode as %s: %s", event.signature, e)
                continue
            return DecodedLog(event.name, [(name, label(t, self.labels)) for name, t in params], log)
        return log

    def _candidates(self, data: bytes) -> List[Function]:
        if len(data) < SELECTOR_LEN:
            return []
        selector = bytes(data[:SELECTOR_LEN])
        funcs = self.functions.get(selector)
        if funcs:
            return funcs
        if self.signature_lookup is not None:
            func = self.signature_lookup.lookup_function(selector)
            if func is not None and func.selector == selector:
                logger.debug(f"Resolved selector 0x{selector.hex()} to {func.signature}")
                self.add_function(func)
                return self.functions[selector]
        return []
