"""
Precompiled contracts at addresses 0x01 - 0x09.

Precompiles take raw positional input without a selector; the definitions
below describe the layout the way an ABI would. Inputs that are not laid out
as 32-byte words (sha256, identity, ...) fail to decode and are rendered as
hex by the node decoder.
"""

from typing import Dict, Optional

from eth_utils import to_checksum_address

from .abi import Function

PRECOMPILE_LABEL = 'PRECOMPILE'


def _address(n: int) -> str:
    return to_checksum_address(n.to_bytes(20, 'big'))


PRECOMPILES: Dict[str, Function] = {
    _address(1): Function.from_signature(
        'ecrecover(bytes32,uint256,uint256,uint256)',
        outputs=['address'],
        input_names=['hash', 'v', 'r', 's'],
        output_names=['publicAddress'],
    ),
    _address(2): Function.from_signature(
        'sha256(bytes)', outputs=['bytes32'], input_names=['data'], output_names=['hash'],
    ),
    _address(3): Function.from_signature(
        'ripemd(bytes)', outputs=['bytes32'], input_names=['data'], output_names=['hash'],
    ),
    _address(4): Function.from_signature(
        'identity(bytes)', outputs=['bytes'], input_names=['data'], output_names=['data'],
    ),
    _address(5): Function.from_signature(
        'modexp(uint256,uint256,uint256,bytes)',
        outputs=['bytes'],
        input_names=['Bsize', 'Esize', 'Msize', 'BEM'],
        output_names=['value'],
    ),
    _address(6): Function.from_signature(
        'ecadd(uint256,uint256,uint256,uint256)',
        outputs=['uint256', 'uint256'],
        input_names=['x1', 'y1', 'x2', 'y2'],
        output_names=['x', 'y'],
    ),
    _address(7): Function.from_signature(
        'ecmul(uint256,uint256,uint256)',
        outputs=['uint256', 'uint256'],
        input_names=['x1', 'y1', 's'],
        output_names=['x', 'y'],
    ),
    _address(8): Function.from_signature(
        'ecpairing(uint256,uint256,uint256,uint256,uint256,uint256)',
        outputs=['uint256'],
        input_names=['x1', 'y1', 'x2', 'y2', 'x3', 'y3'],
        output_names=['success'],
    ),
    _address(9): Function.from_signature(
        'blake2f(uint256,bytes32,bytes32,bytes32,bytes32,bytes32,bytes32,bytes32,bool)',
        outputs=['bytes32', 'bytes32'],
        input_names=['rounds', 'h0', 'h1', 'm0', 'm1', 'm2', 'm3', 't', 'f'],
        output_names=['h0', 'h1'],
    ),
}


def precompile_at(address: str) -> Optional[Function]:
    """The precompile definition for ``address``, if it is one."""
    try:
        return PRECOMPILES.get(to_checksum_address(address))
    except ValueError:
        return None
