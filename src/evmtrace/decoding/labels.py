"""
Rendering of decoded ABI values with address labels.
"""

from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from eth_abi import grammar
from eth_utils import is_address, to_checksum_address

from .abi import Token

Labels = Mapping[str, str]


def normalize_labels(labels: Optional[Mapping[Any, str]]) -> Dict[str, str]:
    """Key a label mapping by checksum address; invalid keys are dropped."""
    normalized = {}
    for address, name in (labels or {}).items():
        if isinstance(address, bytes):
            address = '0x' + address.hex()
        if is_address(address):
            normalized[to_checksum_address(address)] = name
    return normalized


def lookup_label(address: str, labels: Labels) -> Optional[str]:
    if not labels:
        return None
    if address in labels:
        return labels[address]
    return labels.get(address.lower())


def label(token: Token, labels: Optional[Labels] = None) -> str:
    """
    Render a decoded token, replacing known addresses with ``label (address)``.

    Arrays render as ``[a, b]`` and tuples as ``(a, b)``; substitution
    applies to every leaf.
    """
    return _render(grammar.parse(token.abi_type), token.value, labels or {})


def format_token(token: Token) -> str:
    """Canonical text of a token, without labels."""
    return label(token, None)


def _render(abi_type, value: Any, labels: Labels) -> str:
    if abi_type.is_array:
        item_type = abi_type.item_type
        return '[' + ', '.join(_render(item_type, v, labels) for v in value) + ']'

    if isinstance(abi_type, grammar.TupleType):
        return '(' + ', '.join(
            _render(component, v, labels)
            for component, v in zip(abi_type.components, value)
        ) + ')'

    base = abi_type.base
    if base == 'address':
        address = to_checksum_address(value)
        name = lookup_label(address, labels)
        return f"{name} ({address})" if name else address
    if base == 'bool':
        return 'true' if value else 'false'
    if base == 'string':
        return f'"{value}"'
    if base in ('bytes', 'function'):
        return '0x' + bytes(value).hex()
    if base in ('fixed', 'ufixed') and isinstance(value, Decimal):
        return format(value, 'f')
    return str(value)
