"""
A node of the call trace arena and its decoding logic.

Decoding is best-effort. Every fallback branch ends in an empty argument
list, a hex rendering or untouched raw data; the only error raised here is
the caller-side precondition of ``decode_function`` (no candidates).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from evmtrace.decoding.abi import SELECTOR_LEN, Abi, Function
from evmtrace.decoding.cheatcodes import CHEATCODE_ADDRESS, decode_cheatcode_inputs
from evmtrace.decoding.labels import label
from evmtrace.decoding.precompiles import PRECOMPILE_LABEL
from evmtrace.decoding.revert import decode_revert
from evmtrace.utils.exceptions import AbiDecodeError, NoCandidateFunctionsError, RevertDecodeError
from evmtrace.utils.logging import get_logger, log_trace

from .exporters import GethTrace, ParityAction, ParityResult, geth_trace, parity_action, parity_result
from .types import (
    CallKind,
    CallTrace,
    DecodedCall,
    DecodedReturn,
    InstructionResult,
    LogCallOrder,
    LogData,
    RawCall,
    RawReturn,
    log_from_dict,
    ordering_from_dict,
)

logger = get_logger('node')


@dataclass
class CallTraceNode:
    """A node in the arena."""
    idx: int = 0
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    trace: CallTrace = field(default_factory=CallTrace)
    logs: List[LogData] = field(default_factory=list)
    ordering: List[LogCallOrder] = field(default_factory=list)

    @property
    def kind(self) -> CallKind:
        return self.trace.kind

    @property
    def status(self) -> InstructionResult:
        return self.trace.status

    # ------------------------------------------------------------------
    # Exporters
    # ------------------------------------------------------------------

    def parity_action(self) -> ParityAction:
        return parity_action(self.trace)

    def parity_result(self) -> Optional[ParityResult]:
        return parity_result(self.trace)

    def geth_trace(self) -> GethTrace:
        return geth_trace(self.trace)

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode_function(
        self,
        funcs: Sequence[Function],
        labels: Mapping[str, str],
        errors: Optional[Abi],
    ) -> None:
        """
        Decode call and return data with the candidate functions of its selector.

        All candidates share a selector, so they share name and input types;
        the first one names the call. Output decoding tries every candidate,
        since only some of them may carry output types.
        """
        if not funcs:
            raise NoCandidateFunctionsError(self.idx)
        func = funcs[0]

        if not isinstance(self.trace.data, RawCall):
            return
        data = self.trace.data.data

        if len(data) >= SELECTOR_LEN:
            if self.trace.address == CHEATCODE_ADDRESS:
                inputs = decode_cheatcode_inputs(func, data, errors)
                if inputs is None:
                    inputs = self._decode_inputs(func, data[SELECTOR_LEN:], labels)
            else:
                inputs = self._decode_inputs(func, data[SELECTOR_LEN:], labels)
        else:
            inputs = []

        self.trace.data = DecodedCall(func.name, func.signature, inputs, data)

        if isinstance(self.trace.output, RawReturn):
            decoded = self._decode_return(funcs, labels, errors)
            if decoded is not None:
                self.trace.output = decoded

    def decode_precompile(self, precompile_fn: Function, labels: Mapping[str, str]) -> None:
        """Decode the node's data for the given precompile function."""
        if not isinstance(self.trace.data, RawCall):
            return
        data = self.trace.data.data

        self.trace.label = PRECOMPILE_LABEL
        try:
            inputs = [label(t, labels) for t in precompile_fn.decode_input(data)]
        except AbiDecodeError:
            inputs = [data.hex()]
        self.trace.data = DecodedCall(precompile_fn.name, precompile_fn.signature, inputs, data)

        if isinstance(self.trace.output, RawReturn):
            output = self.trace.output.data
            try:
                value = ', '.join(label(t, labels) for t in precompile_fn.decode_output(output))
            except AbiDecodeError:
                value = output.hex()
            self.trace.output = DecodedReturn(value, output)

    def _decode_inputs(self, func: Function, args: bytes, labels: Mapping[str, str]) -> List[str]:
        try:
            return [label(t, labels) for t in func.decode_input(args)]
        except AbiDecodeError as e:
            log_trace(logger, "node %d: inputs of %s did not decode: %s", self.idx, func.signature, e)
            return []

    def _decode_return(
        self,
        funcs: Sequence[Function],
        labels: Mapping[str, str],
        errors: Optional[Abi],
    ) -> Optional[DecodedReturn]:
        output = self.trace.output.data

        if output and self.trace.success:
            for func in funcs:
                try:
                    tokens = func.decode_output(output)
                except AbiDecodeError:
                    continue
                # Functions from signature databases have no outputs and
                # "decode" anything into an empty list.
                if tokens:
                    return DecodedReturn(', '.join(label(t, labels) for t in tokens), output)
            return None

        try:
            reason = decode_revert(output, errors, self.trace.status)
        except RevertDecodeError as e:
            log_trace(logger, "node %d: return data is not a revert reason: %s", self.idx, e)
            return None
        return DecodedReturn(f'"{reason}"', output)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'idx': self.idx,
            'parent': self.parent,
            'children': list(self.children),
            'trace': self.trace.to_dict(),
            'logs': [log.to_dict() for log in self.logs],
            'ordering': [o.to_dict() for o in self.ordering],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'CallTraceNode':
        return cls(
            idx=d['idx'],
            parent=d.get('parent'),
            children=list(d.get('children', [])),
            trace=CallTrace.from_dict(d.get('trace', {})),
            logs=[log_from_dict(log) for log in d.get('logs', [])],
            ordering=[ordering_from_dict(o) for o in d.get('ordering', [])],
        )
