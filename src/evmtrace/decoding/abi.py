"""
ABI model used by the trace decoders.

Wraps JSON ABI items into small objects that know their canonical signature,
selector/topic and how to decode payloads with eth_abi. Decoded values are
returned as ``Token`` objects so that renderers keep the ABI type of every
value (an address and a string holding an address render differently).
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from eth_abi import decode as abi_decode
from eth_abi import grammar
from eth_abi.exceptions import DecodingError
from eth_abi.exceptions import ParseError as TypeStringError
from eth_utils import event_signature_to_log_topic, function_signature_to_4byte_selector
from eth_utils.abi import collapse_if_tuple

from evmtrace.utils.exceptions import AbiDecodeError, AbiParseError

SELECTOR_LEN = 4

# eth_abi reports malformed payloads through several exception families
# (DecodingError, ValueError from value validation, OverflowError on huge
# lengths); any of them means "does not decode".
_DECODE_FAILURES = (DecodingError, TypeStringError, ValueError, OverflowError, TypeError)


@dataclass(frozen=True)
class Token:
    """A decoded ABI value together with its canonical type string."""
    abi_type: str
    value: Any


@dataclass(frozen=True)
class Param:
    """A function/event/error parameter."""
    name: str
    abi_type: str
    indexed: bool = False

    @classmethod
    def from_abi(cls, item: Dict[str, Any]) -> 'Param':
        try:
            abi_type = collapse_if_tuple(item)
        except (KeyError, TypeError, ValueError) as e:
            raise AbiParseError(f"Invalid ABI parameter {item!r}: {e}")
        return cls(item.get('name', ''), abi_type, bool(item.get('indexed', False)))


def decode_tokens(types: Sequence[str], data: bytes) -> List[Token]:
    """Decode ``data`` against ``types``, raising AbiDecodeError on mismatch."""
    try:
        values = abi_decode(list(types), bytes(data))
    except _DECODE_FAILURES as e:
        raise AbiDecodeError(f"Could not decode ({','.join(types)}): {e}", data=bytes(data))
    return [Token(t, v) for t, v in zip(types, values)]


def _parse_type_list(type_list: str, source: str) -> List[str]:
    """Split ``(t1,t2,...)`` into canonical type strings."""
    # eth_abi rejects zero-sized tuples
    if type_list.replace(' ', '') == '()':
        return []
    try:
        parsed = grammar.parse(type_list)
    except (TypeStringError, ValueError) as e:
        raise AbiParseError(f"Invalid type list {type_list!r}: {e}", source=source)
    if not isinstance(parsed, grammar.TupleType) or parsed.is_array:
        raise AbiParseError(f"Expected a parenthesised type list, got {type_list!r}", source=source)
    return [component.to_type_str() for component in parsed.components]


def _split_signature(signature: str) -> Tuple[str, List[str]]:
    signature = signature.strip()
    name, paren, rest = signature.partition('(')
    if not name or not paren or not signature.endswith(')'):
        raise AbiParseError(f"Invalid signature: {signature!r}", source=signature)
    return name, _parse_type_list(paren + rest, signature)


class Function:
    """A contract function (or precompile/cheatcode treated as one)."""

    def __init__(
        self,
        name: str,
        inputs: Sequence[Param] = (),
        outputs: Sequence[Param] = (),
        state_mutability: str = "nonpayable",
    ):
        self.name = name
        self.inputs = list(inputs)
        self.outputs = list(outputs)
        self.state_mutability = state_mutability

    @classmethod
    def from_abi(cls, item: Dict[str, Any]) -> 'Function':
        if 'name' not in item:
            raise AbiParseError(f"Function ABI item without a name: {item!r}")
        return cls(
            item['name'],
            [Param.from_abi(p) for p in item.get('inputs', [])],
            [Param.from_abi(p) for p in item.get('outputs', [])],
            item.get('stateMutability', 'nonpayable'),
        )

    @classmethod
    def from_signature(
        cls,
        signature: str,
        outputs: Optional[Union[str, Sequence[str]]] = None,
        input_names: Sequence[str] = (),
        output_names: Sequence[str] = (),
    ) -> 'Function':
        """
        Build a function from a text signature such as ``transfer(address,uint256)``.

        ``outputs`` is either a parenthesised type list or a sequence of types.
        Signatures coming from signature databases carry no outputs.
        """
        name, input_types = _split_signature(signature)
        if outputs is None:
            output_types: List[str] = []
        elif isinstance(outputs, str):
            output_types = _parse_type_list(outputs, signature)
        else:
            output_types = list(outputs)
        return cls(
            name,
            [Param(_name_at(input_names, i), t) for i, t in enumerate(input_types)],
            [Param(_name_at(output_names, i), t) for i, t in enumerate(output_types)],
        )

    @property
    def input_types(self) -> List[str]:
        return [p.abi_type for p in self.inputs]

    @property
    def output_types(self) -> List[str]:
        return [p.abi_type for p in self.outputs]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def decode_input(self, data: bytes) -> List[Token]:
        """Decode call data without the selector."""
        return decode_tokens(self.input_types, data)

    def decode_output(self, data: bytes) -> List[Token]:
        return decode_tokens(self.output_types, data)

    def __eq__(self, other):
        if not isinstance(other, Function):
            return NotImplemented
        return (self.name, self.inputs, self.outputs) == (other.name, other.inputs, other.outputs)

    def __hash__(self):
        return hash((self.name, tuple(self.inputs), tuple(self.outputs)))

    def __repr__(self):
        outputs = ','.join(self.output_types)
        return f"Function({self.signature} returns ({outputs}))"


class Event:
    """A contract event."""

    def __init__(self, name: str, inputs: Sequence[Param] = (), anonymous: bool = False):
        self.name = name
        self.inputs = list(inputs)
        self.anonymous = anonymous

    @classmethod
    def from_abi(cls, item: Dict[str, Any]) -> 'Event':
        if 'name' not in item:
            raise AbiParseError(f"Event ABI item without a name: {item!r}")
        return cls(
            item['name'],
            [Param.from_abi(p) for p in item.get('inputs', [])],
            bool(item.get('anonymous', False)),
        )

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(p.abi_type for p in self.inputs)})"

    @property
    def topic(self) -> bytes:
        return event_signature_to_log_topic(self.signature)

    def decode_log(self, topics: Sequence[bytes], data: bytes) -> List[Tuple[str, Token]]:
        """
        Decode a log into ``(param name, token)`` pairs in declaration order.

        Indexed parameters of dynamic type are only available as their
        keccak hash and are returned as ``bytes32`` tokens.
        """
        indexed = [p for p in self.inputs if p.indexed]
        if not self.anonymous:
            if not topics or bytes(topics[0]) != self.topic:
                raise AbiDecodeError(f"Log topic does not match {self.signature}")
            topics = topics[1:]
        topics = list(topics)
        if len(topics) != len(indexed):
            raise AbiDecodeError(
                f"{self.signature} expects {len(indexed)} indexed topics, got {len(topics)}"
            )

        indexed_tokens = []
        for param, topic in zip(indexed, topics):
            if _is_hashed_topic(param.abi_type):
                indexed_tokens.append(Token('bytes32', bytes(topic)))
            else:
                indexed_tokens.append(decode_tokens([param.abi_type], bytes(topic))[0])

        body_types = [p.abi_type for p in self.inputs if not p.indexed]
        body_tokens = iter(decode_tokens(body_types, data))
        indexed_iter = iter(indexed_tokens)

        decoded = []
        for i, param in enumerate(self.inputs):
            token = next(indexed_iter) if param.indexed else next(body_tokens)
            decoded.append((param.name or f"param{i}", token))
        return decoded

    def __repr__(self):
        return f"Event({self.signature})"


class AbiError:
    """A custom Solidity error (``error Name(...)``)."""

    def __init__(self, name: str, inputs: Sequence[Param] = ()):
        self.name = name
        self.inputs = list(inputs)

    @classmethod
    def from_abi(cls, item: Dict[str, Any]) -> 'AbiError':
        if 'name' not in item:
            raise AbiParseError(f"Error ABI item without a name: {item!r}")
        return cls(item['name'], [Param.from_abi(p) for p in item.get('inputs', [])])

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(p.abi_type for p in self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def decode(self, data: bytes) -> List[Token]:
        """Decode error arguments (payload without the selector)."""
        return decode_tokens([p.abi_type for p in self.inputs], data)

    def __repr__(self):
        return f"AbiError({self.signature})"


@dataclass
class Abi:
    """The subset of a contract ABI the decoders use."""
    functions: List[Function] = field(default_factory=list)
    events: List[Event] = field(default_factory=list)
    errors: List[AbiError] = field(default_factory=list)

    @classmethod
    def from_json(cls, items: Iterable[Dict[str, Any]]) -> 'Abi':
        abi = cls()
        for item in items:
            kind = item.get('type', 'function')
            if kind == 'function':
                abi.functions.append(Function.from_abi(item))
            elif kind == 'event':
                abi.events.append(Event.from_abi(item))
            elif kind == 'error':
                abi.errors.append(AbiError.from_abi(item))
            # constructor/fallback/receive carry nothing to decode by selector
        return abi

    def extend(self, other: 'Abi') -> 'Abi':
        """Merge ``other`` into this ABI, skipping items already present."""
        for func in other.functions:
            if func not in self.functions:
                self.functions.append(func)
        known_events = {e.signature for e in self.events}
        for event in other.events:
            if event.signature not in known_events:
                self.events.append(event)
                known_events.add(event.signature)
        known_errors = {e.signature for e in self.errors}
        for err in other.errors:
            if err.signature not in known_errors:
                self.errors.append(err)
                known_errors.add(err.signature)
        return self

    def functions_by_selector(self) -> Dict[bytes, List[Function]]:
        by_selector: Dict[bytes, List[Function]] = {}
        for func in self.functions:
            by_selector.setdefault(func.selector, []).append(func)
        return by_selector


def load_abi(path: Union[str, Path]) -> Abi:
    """
    Load an ABI file.

    Handles both direct ABI arrays and build artifacts with an ``abi`` key.
    """
    path = Path(path)
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise AbiParseError(f"Could not load ABI: {e}", source=str(path))

    if isinstance(data, list):
        items = data
    elif isinstance(data, dict) and 'abi' in data:
        items = data['abi']
    else:
        raise AbiParseError("Unknown ABI format", source=str(path))
    return Abi.from_json(items)


def _is_hashed_topic(abi_type: str) -> bool:
    # Indexed reference types are stored as keccak256 of their encoding.
    parsed = grammar.parse(abi_type)
    return parsed.is_dynamic or parsed.is_array or isinstance(parsed, grammar.TupleType)


def _name_at(names: Sequence[str], index: int) -> str:
    return names[index] if index < len(names) else ''
