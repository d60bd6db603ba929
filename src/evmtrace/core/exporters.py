"""
Projections of a call trace into external trace formats.

Parity-style ``action``/``result`` objects (as returned by ``trace_*`` RPC
methods) and Geth-style struct-log traces (``debug_traceTransaction``).
These are pure functions of a ``CallTrace``; they never mutate it.

Known gaps of the exported data:
    - Suicide actions carry the zero address as ``refundAddress``; the
      beneficiary is not recorded on the trace.
    - Geth ``gas``, ``gasCost``, ``refundCounter`` and per-step ``error``
      are not recorded per step and are exported as 0 / absent.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .types import ZERO_ADDRESS, CallTrace, InstructionResult, to_hex

WORD_SIZE = 32


def _word(value: int) -> str:
    return '0x' + value.to_bytes(WORD_SIZE, 'big').hex()


# ============================================================================
# Parity
# ============================================================================

@dataclass
class CallAction:
    from_address: str
    to: str
    value: int
    gas: int
    input: bytes
    call_type: str

    action_type = 'call'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.from_address,
            'to': self.to,
            'value': hex(self.value),
            'gas': hex(self.gas),
            'input': to_hex(self.input),
            'callType': self.call_type,
        }


@dataclass
class CreateAction:
    from_address: str
    value: int
    gas: int
    init: bytes

    action_type = 'create'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.from_address,
            'value': hex(self.value),
            'gas': hex(self.gas),
            'init': to_hex(self.init),
        }


@dataclass
class SuicideAction:
    address: str
    balance: int
    refund_address: str = ZERO_ADDRESS

    action_type = 'suicide'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'address': self.address,
            'refundAddress': self.refund_address,
            'balance': hex(self.balance),
        }


@dataclass
class CallResult:
    gas_used: int
    output: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {'gasUsed': hex(self.gas_used), 'output': to_hex(self.output)}


@dataclass
class CreateResult:
    gas_used: int
    code: bytes
    address: str

    def to_dict(self) -> Dict[str, Any]:
        return {'gasUsed': hex(self.gas_used), 'code': to_hex(self.code), 'address': self.address}


ParityAction = Union[CallAction, CreateAction, SuicideAction]
ParityResult = Union[CallResult, CreateResult]


def parity_action(trace: CallTrace) -> ParityAction:
    """The Parity ``action`` of a call frame."""
    if trace.status == InstructionResult.SELF_DESTRUCT:
        return SuicideAction(address=trace.address, balance=trace.value)
    if trace.kind.is_create:
        return CreateAction(
            from_address=trace.caller,
            value=trace.value,
            gas=trace.gas_cost,
            init=trace.data.to_raw(),
        )
    return CallAction(
        from_address=trace.caller,
        to=trace.address,
        value=trace.value,
        gas=trace.gas_cost,
        input=trace.data.to_raw(),
        call_type=trace.kind.parity_call_type,
    )


def parity_result(trace: CallTrace) -> Optional[ParityResult]:
    """The Parity ``result`` of a call frame; None for suicides."""
    if trace.status == InstructionResult.SELF_DESTRUCT:
        return None
    if trace.kind.is_create:
        return CreateResult(gas_used=trace.gas_cost, code=trace.output.to_raw(), address=trace.address)
    return CallResult(gas_used=trace.gas_cost, output=trace.output.to_raw())


# ============================================================================
# Geth
# ============================================================================

@dataclass
class StructLog:
    depth: int
    op: str
    pc: int
    stack: Optional[List[int]] = None
    memory: Optional[bytes] = None
    storage: Dict[int, int] = field(default_factory=dict)
    # Not recorded per step; see module docstring.
    gas: int = 0
    gas_cost: int = 0
    refund_counter: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'depth': self.depth,
            'gas': self.gas,
            'gasCost': self.gas_cost,
            'op': self.op,
            'pc': self.pc,
            'storage': {_word(k): _word(v) for k, v in self.storage.items()},
        }
        if self.stack is not None:
            result['stack'] = [hex(v) for v in self.stack]
        if self.memory is not None:
            result['memory'] = [
                self.memory[i:i + WORD_SIZE].hex()
                for i in range(0, len(self.memory), WORD_SIZE)
            ]
        if self.refund_counter is not None:
            result['refundCounter'] = self.refund_counter
        if self.error is not None:
            result['error'] = self.error
        return result


@dataclass
class GethTrace:
    failed: bool
    return_value: bytes
    struct_logs: List[StructLog] = field(default_factory=list)
    gas: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'failed': self.failed,
            'gas': self.gas,
            'returnValue': to_hex(self.return_value),
            'structLogs': [log.to_dict() for log in self.struct_logs],
        }


def geth_trace(trace: CallTrace) -> GethTrace:
    """The Geth struct-log trace of a call frame's own steps."""
    return GethTrace(
        failed=not trace.success,
        return_value=trace.output.to_raw(),
        struct_logs=[
            StructLog(
                depth=trace.depth,
                op=step.op,
                pc=step.pc,
                stack=list(step.stack),
                memory=bytes(step.memory),
                storage={slot: s.present_value for slot, s in step.state.items()},
            )
            for step in trace.steps
        ],
    )
