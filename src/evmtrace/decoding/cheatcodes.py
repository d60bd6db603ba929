"""
Cheatcode interface support.

Calls to the cheatcode address are not real contract calls; a few of them
take arguments that need special rendering (revert payloads, private keys).
"""

from typing import List, Optional

from eth_abi import grammar

from evmtrace.utils.exceptions import AbiDecodeError, RevertDecodeError

from .abi import SELECTOR_LEN, Abi, Function
from .labels import format_token
from .revert import decode_revert

# address(bytes20(uint160(uint256(keccak256('hevm cheat code')))))
CHEATCODE_ADDRESS = '0x7109709ECfa91a80626fF3989D68f67F5b1DD12D'

REDACTED_KEY = '<pk>'

# Functions taking a private key as their first uint256 argument.
_PRIVATE_KEY_FUNCTIONS = ('rememberKey', 'addr', 'startBroadcast', 'broadcast')

CHEATCODE_FUNCTIONS = [
    Function.from_signature('warp(uint256)'),
    Function.from_signature('roll(uint256)'),
    Function.from_signature('fee(uint256)'),
    Function.from_signature('load(address,bytes32)', outputs=['bytes32']),
    Function.from_signature('store(address,bytes32,bytes32)'),
    Function.from_signature('sign(uint256,bytes32)', outputs=['uint8', 'bytes32', 'bytes32']),
    Function.from_signature('addr(uint256)', outputs=['address']),
    Function.from_signature('deriveKey(string,uint32)', outputs=['uint256']),
    Function.from_signature('rememberKey(uint256)', outputs=['address']),
    Function.from_signature('deal(address,uint256)'),
    Function.from_signature('etch(address,bytes)'),
    Function.from_signature('prank(address)'),
    Function.from_signature('prank(address,address)'),
    Function.from_signature('startPrank(address)'),
    Function.from_signature('startPrank(address,address)'),
    Function.from_signature('stopPrank()'),
    Function.from_signature('expectRevert()'),
    Function.from_signature('expectRevert(bytes)'),
    Function.from_signature('expectRevert(bytes4)'),
    Function.from_signature('expectEmit(bool,bool,bool,bool)'),
    Function.from_signature('expectCall(address,bytes)'),
    Function.from_signature('mockCall(address,bytes,bytes)'),
    Function.from_signature('clearMockedCalls()'),
    Function.from_signature('label(address,string)'),
    Function.from_signature('assume(bool)'),
    Function.from_signature('broadcast()'),
    Function.from_signature('broadcast(address)'),
    Function.from_signature('broadcast(uint256)'),
    Function.from_signature('startBroadcast()'),
    Function.from_signature('startBroadcast(address)'),
    Function.from_signature('startBroadcast(uint256)'),
    Function.from_signature('stopBroadcast()'),
    Function.from_signature('snapshot()', outputs=['uint256']),
    Function.from_signature('revertTo(uint256)', outputs=['bool']),
]


def cheatcode_abi() -> Abi:
    """The built-in cheatcode interface as an ABI."""
    return Abi(functions=list(CHEATCODE_FUNCTIONS))


def decode_cheatcode_inputs(func: Function, data: bytes, errors: Optional[Abi]) -> Optional[List[str]]:
    """
    Custom argument rendering for cheatcode calls.

    ``data`` is the full call data including the selector. Returns None when
    the function has no special rendering or the special rendering does not
    apply, in which case the caller decodes the arguments generically.
    """
    if func.name == 'expectRevert':
        if not func.inputs:
            return None
        try:
            return [decode_revert(data, errors)]
        except RevertDecodeError:
            return None

    if func.name in _PRIVATE_KEY_FUNCTIONS:
        if func.inputs and _is_uint(func.inputs[0].abi_type):
            return [REDACTED_KEY]
        return None

    if func.name == 'sign':
        try:
            tokens = func.decode_input(data[SELECTOR_LEN:])
        except AbiDecodeError:
            return None
        rendered = [format_token(t) for t in tokens]
        if rendered and _is_uint(func.inputs[0].abi_type):
            rendered[0] = REDACTED_KEY
        return rendered

    if func.name == 'deriveKey':
        return [REDACTED_KEY]

    return None


def _is_uint(abi_type: str) -> bool:
    parsed = grammar.parse(abi_type)
    return not parsed.is_array and getattr(parsed, 'base', None) == 'uint'
