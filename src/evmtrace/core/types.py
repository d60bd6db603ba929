"""
Data model of recorded call traces.

Call data, return data and logs each start out raw and may be replaced by a
decoded variant exactly once. Decoded variants keep the bytes they were
decoded from so exporters can always emit the original payload.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from eth_utils import to_checksum_address
from hexbytes import HexBytes

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'


def to_hex(data: bytes) -> str:
    """``0x``-prefixed hex of a byte string."""
    return '0x' + bytes(data).hex()


def from_hex(value: Optional[str]) -> bytes:
    if not value:
        return b''
    return bytes(HexBytes(value))


def to_int(value: Union[int, str]) -> int:
    """Accept ints as well as hex/decimal strings from JSON dumps."""
    if isinstance(value, int):
        return value
    return int(value, 16) if value.startswith(('0x', '0X')) else int(value)


class CallKind(Enum):
    """Kind of a call frame."""
    CALL = 'CALL'
    STATICCALL = 'STATICCALL'
    CALLCODE = 'CALLCODE'
    DELEGATECALL = 'DELEGATECALL'
    CREATE = 'CREATE'
    CREATE2 = 'CREATE2'

    @property
    def is_create(self) -> bool:
        return self in (CallKind.CREATE, CallKind.CREATE2)

    @property
    def parity_call_type(self) -> str:
        """``callType`` tag of a Parity call action."""
        return self.value.lower()


class InstructionResult(Enum):
    """Status a call frame halted with."""
    CONTINUE = 'Continue'
    STOP = 'Stop'
    RETURN = 'Return'
    SELF_DESTRUCT = 'SelfDestruct'
    REVERT = 'Revert'
    CALL_TOO_DEEP = 'CallTooDeep'
    OUT_OF_FUND = 'OutOfFund'
    OUT_OF_GAS = 'OutOfGas'
    OPCODE_NOT_FOUND = 'OpcodeNotFound'
    CALL_NOT_ALLOWED_INSIDE_STATIC = 'CallNotAllowedInsideStatic'
    INVALID_OPCODE = 'InvalidOpcode'
    INVALID_JUMP = 'InvalidJump'
    INVALID_MEMORY_RANGE = 'InvalidMemoryRange'
    NOT_ACTIVATED = 'NotActivated'
    STACK_UNDERFLOW = 'StackUnderflow'
    STACK_OVERFLOW = 'StackOverflow'
    OUT_OF_OFFSET = 'OutOfOffset'
    FATAL_EXTERNAL_ERROR = 'FatalExternalError'
    CREATE_COLLISION = 'CreateCollision'
    OVERFLOW_PAYMENT = 'OverflowPayment'
    PRECOMPILE_ERROR = 'PrecompileError'
    NONCE_OVERFLOW = 'NonceOverflow'
    CREATE_CONTRACT_SIZE_LIMIT = 'CreateContractSizeLimit'
    CREATE_CONTRACT_WITH_EF = 'CreateContractWithEF'

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def is_ok(self) -> bool:
        return self in (
            InstructionResult.CONTINUE,
            InstructionResult.STOP,
            InstructionResult.RETURN,
            InstructionResult.SELF_DESTRUCT,
        )


# ============================================================================
# Raw / decoded payloads
# ============================================================================

@dataclass
class RawCall:
    """Undecoded call data (selector included)."""
    data: bytes = b''

    is_raw = True

    def to_raw(self) -> bytes:
        return self.data

    def to_dict(self) -> Dict[str, Any]:
        return {'raw': to_hex(self.data)}


@dataclass
class DecodedCall:
    """Call data resolved to a function and its rendered arguments."""
    name: str
    signature: str
    args: List[str] = field(default_factory=list)
    raw: bytes = b''

    is_raw = False

    def to_raw(self) -> bytes:
        return self.raw

    def to_dict(self) -> Dict[str, Any]:
        return {
            'raw': to_hex(self.raw),
            'decoded': {'name': self.name, 'signature': self.signature, 'args': list(self.args)},
        }


@dataclass
class RawReturn:
    """Undecoded return data (or deployed code for creates)."""
    data: bytes = b''

    is_raw = True

    def to_raw(self) -> bytes:
        return self.data

    def to_dict(self) -> Dict[str, Any]:
        return {'raw': to_hex(self.data)}


@dataclass
class DecodedReturn:
    """Return data rendered as a single string."""
    value: str
    raw: bytes = b''

    is_raw = False

    def to_raw(self) -> bytes:
        return self.raw

    def to_dict(self) -> Dict[str, Any]:
        return {'raw': to_hex(self.raw), 'decoded': self.value}


@dataclass
class RawLog:
    """An emitted log as recorded by the VM."""
    topics: List[bytes] = field(default_factory=list)
    data: bytes = b''

    is_raw = True

    def to_dict(self) -> Dict[str, Any]:
        return {'raw': {'topics': [to_hex(t) for t in self.topics], 'data': to_hex(self.data)}}


@dataclass
class DecodedLog:
    """A log resolved to an event name and ``(param, rendered value)`` pairs."""
    name: str
    params: List[Tuple[str, str]] = field(default_factory=list)
    raw: Optional[RawLog] = None

    is_raw = False

    def to_dict(self) -> Dict[str, Any]:
        result = {'decoded': {'name': self.name, 'params': [list(p) for p in self.params]}}
        if self.raw is not None:
            result.update(self.raw.to_dict())
        return result


CallData = Union[RawCall, DecodedCall]
ReturnData = Union[RawReturn, DecodedReturn]
LogData = Union[RawLog, DecodedLog]


def call_data_from_dict(d: Dict[str, Any]) -> CallData:
    raw = from_hex(d.get('raw'))
    decoded = d.get('decoded')
    if decoded is None:
        return RawCall(raw)
    return DecodedCall(decoded['name'], decoded['signature'], list(decoded.get('args', [])), raw)


def return_data_from_dict(d: Dict[str, Any]) -> ReturnData:
    raw = from_hex(d.get('raw'))
    if d.get('decoded') is None:
        return RawReturn(raw)
    return DecodedReturn(d['decoded'], raw)


def log_from_dict(d: Dict[str, Any]) -> LogData:
    raw = None
    if d.get('raw') is not None:
        raw = RawLog([from_hex(t) for t in d['raw'].get('topics', [])], from_hex(d['raw'].get('data')))
    decoded = d.get('decoded')
    if decoded is None:
        return raw if raw is not None else RawLog()
    return DecodedLog(decoded['name'], [tuple(p) for p in decoded.get('params', [])], raw)


# ============================================================================
# Steps and traces
# ============================================================================

@dataclass
class StorageSlot:
    """A touched storage slot: value before the call and current value."""
    original_value: int = 0
    present_value: int = 0


@dataclass
class CallTraceStep:
    """One executed instruction with the VM state around it."""
    pc: int
    op: str
    stack: List[int] = field(default_factory=list)
    memory: bytes = b''
    state: Dict[int, StorageSlot] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pc': self.pc,
            'op': self.op,
            'stack': [hex(v) for v in self.stack],
            'memory': to_hex(self.memory),
            'state': {
                hex(slot): {'original': hex(s.original_value), 'present': hex(s.present_value)}
                for slot, s in self.state.items()
            },
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'CallTraceStep':
        return cls(
            pc=to_int(d['pc']),
            op=d['op'],
            stack=[to_int(v) for v in d.get('stack', [])],
            memory=from_hex(d.get('memory')),
            state={
                to_int(slot): StorageSlot(to_int(s.get('original', 0)), to_int(s.get('present', 0)))
                for slot, s in d.get('state', {}).items()
            },
        )


@dataclass
class CallTrace:
    """A single call frame."""
    depth: int = 0
    success: bool = False
    label: Optional[str] = None
    caller: str = ZERO_ADDRESS
    address: str = ZERO_ADDRESS
    kind: CallKind = CallKind.CALL
    value: int = 0
    data: CallData = field(default_factory=RawCall)
    output: ReturnData = field(default_factory=RawReturn)
    gas_cost: int = 0
    status: InstructionResult = InstructionResult.CONTINUE
    steps: List[CallTraceStep] = field(default_factory=list)

    def __post_init__(self):
        self.caller = to_checksum_address(self.caller)
        self.address = to_checksum_address(self.address)
        if isinstance(self.data, (bytes, bytearray)):
            self.data = RawCall(bytes(self.data))
        if isinstance(self.output, (bytes, bytearray)):
            self.output = RawReturn(bytes(self.output))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'depth': self.depth,
            'success': self.success,
            'label': self.label,
            'caller': self.caller,
            'address': self.address,
            'kind': self.kind.value,
            'value': hex(self.value),
            'data': self.data.to_dict(),
            'output': self.output.to_dict(),
            'gasCost': self.gas_cost,
            'status': self.status.value,
            'steps': [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'CallTrace':
        return cls(
            depth=to_int(d.get('depth', 0)),
            success=bool(d.get('success', False)),
            label=d.get('label'),
            caller=d.get('caller', ZERO_ADDRESS),
            address=d.get('address', ZERO_ADDRESS),
            kind=CallKind(d.get('kind', 'CALL')),
            value=to_int(d.get('value', 0)),
            data=call_data_from_dict(d.get('data', {})),
            output=return_data_from_dict(d.get('output', {})),
            gas_cost=to_int(d.get('gasCost', 0)),
            status=InstructionResult(d.get('status', 'Continue')),
            steps=[CallTraceStep.from_dict(s) for s in d.get('steps', [])],
        )


# ============================================================================
# Ordering of child calls and logs
# ============================================================================

@dataclass(frozen=True)
class CallOrder:
    """A child call happened; ``index`` is its position in ``children``."""
    index: int

    def to_dict(self) -> Dict[str, int]:
        return {'call': self.index}


@dataclass(frozen=True)
class LogOrder:
    """A log was emitted; ``index`` is its position in ``logs``."""
    index: int

    def to_dict(self) -> Dict[str, int]:
        return {'log': self.index}


LogCallOrder = Union[CallOrder, LogOrder]


def ordering_from_dict(d: Dict[str, int]) -> LogCallOrder:
    if 'call' in d:
        return CallOrder(to_int(d['call']))
    if 'log' in d:
        return LogOrder(to_int(d['log']))
    raise ValueError(f"Unknown ordering entry: {d!r}")
